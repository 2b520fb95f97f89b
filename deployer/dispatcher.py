"""
Command Dispatcher
Builds forge script invocations and runs them in deployment order
"""

import os
import shlex
import subprocess
from typing import Dict, List, Mapping, Optional
from loguru import logger

from .config import RunConfiguration


# Later artifacts may need addresses produced by earlier ones
DEPLOY_ORDER = ('factory', 'router')

SELECTION_ARTIFACTS = {
    'factory': ('factory',),
    'router': ('router',),
    'both': DEPLOY_ORDER
}


class CommandDispatcher:
    """
    Runs one forge script per requested artifact

    Commands run synchronously with inherited stdio. The first failure stops
    the run and later artifacts are not attempted.
    """

    def __init__(self, settings: dict, runner=subprocess.run):
        """
        Initialize dispatcher

        Args:
            settings: Deployment settings (forge + artifacts sections)
            runner: subprocess.run compatible callable
        """
        self.forge = settings['forge']
        self.artifacts = settings['artifacts']
        self.runner = runner

    def artifacts_for(self, selection: str) -> List[str]:
        """
        Artifacts to deploy for a selection, in deployment order

        Args:
            selection: router, factory or both

        Returns:
            Artifact keys
        """
        if selection not in SELECTION_ARTIFACTS:
            raise ValueError(f"Unknown deploy selection: {selection!r}")

        return list(SELECTION_ARTIFACTS[selection])

    def build_command(self, artifact: str, run_config: RunConfiguration) -> List[str]:
        """
        Build the forge script argv for one artifact

        Args:
            artifact: Artifact key (factory or router)
            run_config: Run configuration

        Returns:
            Command argv
        """
        target = self.artifacts[artifact]

        command = [
            self.forge['binary'],
            'script',
            f"{target['script']}:{target['contract']}",
            '--rpc-url',
            run_config.network
        ]

        if run_config.broadcast:
            command.append('--broadcast')

        if run_config.verify:
            command.append('--verify')

        command.append(self.forge['verbosity'])

        return command

    @staticmethod
    def render_command(command: List[str]) -> str:
        return shlex.join(command)

    def build_env(
        self,
        run_config: RunConfiguration,
        base_env: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        """
        Environment for the forge subprocess

        Args:
            run_config: Run configuration
            base_env: Environment to extend (None = current process)

        Returns:
            New environment dict, the base is left untouched
        """
        env = dict(os.environ if base_env is None else base_env)

        if run_config.profile:
            env[self.forge['profile_env']] = self.forge['production_profile']

        return env

    def deploy_artifact(self, artifact: str, run_config: RunConfiguration, env: Dict[str, str]) -> bool:
        """
        Run the forge script for one artifact

        Returns:
            True if forge exited successfully
        """
        name = self.artifacts[artifact]['name']
        command = self.build_command(artifact, run_config)

        logger.info(f"Deploying {name}...")
        logger.debug(f"Running: {self.render_command(command)}")

        try:
            self.runner(command, env=env, check=True)
        except (subprocess.CalledProcessError, OSError) as e:
            logger.error(f"{name} deployment failed: {e}")
            return False

        logger.success(f"{name} deployed")
        return True

    def dispatch(self, run_config: RunConfiguration) -> int:
        """
        Deploy every artifact of the selection

        Args:
            run_config: Run configuration

        Returns:
            Process exit code (0 success, 1 failure)
        """
        artifacts = self.artifacts_for(run_config.selection)
        env = self.build_env(run_config)

        if run_config.profile:
            logger.info(
                f"Using {self.forge['production_profile']} profile "
                f"({self.forge['profile_env']})"
            )

        for artifact in artifacts:
            if not self.deploy_artifact(artifact, run_config, env):
                return 1

        names = [self.artifacts[artifact]['name'] for artifact in artifacts]

        logger.success("✅ Deployment completed successfully!")
        logger.success(f"📦 Deployed: {' and '.join(names)}")

        return 0
