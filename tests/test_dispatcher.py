"""
Command Dispatcher Tests
"""

import os
import subprocess
import pytest
from unittest.mock import Mock
from loguru import logger

from deployer.config import RunConfiguration, load_settings
from deployer.dispatcher import CommandDispatcher, DEPLOY_ORDER

FACTORY_TARGET = "script/DeployFactory.s.sol:OnitInfiniteOutcomeDPMFactoryDeployer"
ROUTER_TARGET = "script/DeployOrderRouter.s.sol:OnitOrderRouterDeployer"


@pytest.fixture
def settings():
    """Built-in default settings"""
    return load_settings(None)


@pytest.fixture
def runner():
    """Stand-in for subprocess.run that always succeeds"""
    return Mock(return_value=subprocess.CompletedProcess(args=[], returncode=0))


@pytest.fixture
def dispatcher(settings, runner):
    return CommandDispatcher(settings, runner=runner)


@pytest.fixture
def messages():
    """Log messages captured through a loguru sink"""
    captured = []
    sink_id = logger.add(lambda message: captured.append(message.record['message']), level="DEBUG")
    yield captured
    logger.remove(sink_id)


def targets(runner):
    """forge script targets in invocation order"""
    return [call.args[0][2] for call in runner.call_args_list]


class TestCommandConstruction:
    """forge script argv"""

    def test_full_command(self, dispatcher):
        config = RunConfiguration('sepolia', 'factory', broadcast=True)

        assert dispatcher.build_command('factory', config) == [
            'forge', 'script', FACTORY_TARGET,
            '--rpc-url', 'sepolia',
            '--broadcast', '--verify',
            '-vvvv'
        ]

    def test_simulation_has_no_broadcast_or_verify(self, dispatcher):
        command = dispatcher.build_command('router', RunConfiguration('sepolia', 'router'))

        assert command == ['forge', 'script', ROUTER_TARGET, '--rpc-url', 'sepolia', '-vvvv']

    def test_local_broadcast_skips_verify(self, dispatcher):
        command = dispatcher.build_command('router', RunConfiguration('local', 'router', broadcast=True))

        assert '--broadcast' in command
        assert '--verify' not in command

    def test_render_command(self, dispatcher):
        command = dispatcher.build_command('factory', RunConfiguration('my net', 'factory'))

        assert dispatcher.render_command(command) == (
            f"forge script {FACTORY_TARGET} --rpc-url 'my net' -vvvv"
        )

    def test_artifact_order(self, dispatcher):
        assert DEPLOY_ORDER == ('factory', 'router')
        assert dispatcher.artifacts_for('both') == ['factory', 'router']
        assert dispatcher.artifacts_for('router') == ['router']

    def test_unknown_selection(self, dispatcher):
        with pytest.raises(ValueError):
            dispatcher.artifacts_for('token')


class TestEnvironment:
    """Profile override rendering"""

    def test_profile_sets_foundry_profile(self, dispatcher):
        base = {'PATH': '/usr/bin'}
        env = dispatcher.build_env(RunConfiguration('local', profile=True), base)

        assert env == {'PATH': '/usr/bin', 'FOUNDRY_PROFILE': 'prod'}
        assert base == {'PATH': '/usr/bin'}

    def test_no_profile_leaves_env_alone(self, dispatcher):
        env = dispatcher.build_env(RunConfiguration('local'), {'FOO': 'bar'})

        assert env == {'FOO': 'bar'}

    def test_process_environment_not_mutated(self, dispatcher, runner, monkeypatch):
        monkeypatch.delenv('FOUNDRY_PROFILE', raising=False)

        assert dispatcher.dispatch(RunConfiguration('local', 'router', profile=True)) == 0

        assert 'FOUNDRY_PROFILE' not in os.environ
        assert runner.call_args.kwargs['env']['FOUNDRY_PROFILE'] == 'prod'


class TestDispatch:
    """Ordering and failure propagation"""

    def test_both_runs_factory_then_router(self, dispatcher, runner):
        assert dispatcher.dispatch(RunConfiguration('local', 'both')) == 0

        assert targets(runner) == [FACTORY_TARGET, ROUTER_TARGET]
        for call in runner.call_args_list:
            assert call.kwargs['check'] is True

    def test_single_selection(self, dispatcher, runner):
        assert dispatcher.dispatch(RunConfiguration('local', 'factory')) == 0

        assert targets(runner) == [FACTORY_TARGET]

    def test_factory_failure_stops_run(self, dispatcher, runner):
        runner.side_effect = subprocess.CalledProcessError(1, 'forge')

        assert dispatcher.dispatch(RunConfiguration('local', 'both')) == 1

        assert targets(runner) == [FACTORY_TARGET]

    def test_router_failure(self, dispatcher, runner):
        runner.side_effect = [
            subprocess.CompletedProcess(args=[], returncode=0),
            subprocess.CalledProcessError(1, 'forge')
        ]

        assert dispatcher.dispatch(RunConfiguration('local', 'both')) == 1
        assert runner.call_count == 2

    def test_missing_forge_binary(self, dispatcher, runner):
        runner.side_effect = FileNotFoundError(2, "No such file or directory", 'forge')

        assert dispatcher.dispatch(RunConfiguration('local', 'router')) == 1


class TestReporting:
    """Failure report and success summary"""

    def test_failure_names_artifact(self, dispatcher, runner, messages):
        runner.side_effect = subprocess.CalledProcessError(1, 'forge')

        dispatcher.dispatch(RunConfiguration('local', 'both'))

        assert any(m.startswith("Factory deployment failed:") for m in messages)
        assert not any("Order Router" in m for m in messages)
        assert not any("Deployed:" in m for m in messages)

    def test_router_failure_names_router(self, dispatcher, runner, messages):
        runner.side_effect = [
            subprocess.CompletedProcess(args=[], returncode=0),
            subprocess.CalledProcessError(2, 'forge')
        ]

        dispatcher.dispatch(RunConfiguration('local', 'both'))

        assert any(m.startswith("Order Router deployment failed:") for m in messages)

    def test_summary_for_both(self, dispatcher, messages):
        dispatcher.dispatch(RunConfiguration('local', 'both'))

        assert "✅ Deployment completed successfully!" in messages
        assert "📦 Deployed: Factory and Order Router" in messages

    @pytest.mark.parametrize("selection, name", [('factory', 'Factory'), ('router', 'Order Router')])
    def test_summary_for_single_artifact(self, dispatcher, messages, selection, name):
        dispatcher.dispatch(RunConfiguration('local', selection))

        assert f"📦 Deployed: {name}" in messages
