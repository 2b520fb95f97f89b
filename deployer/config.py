"""
Deployment Configuration
Settings file loading, environment gate and per-run configuration
"""

import copy
import json
import os
from typing import Dict, NamedTuple, Optional
from loguru import logger


DEFAULT_CONFIG_PATH = "config/deploy_config.json"

DEPLOY_SELECTIONS = ('router', 'factory', 'both')
DEFAULT_SELECTION = 'both'

REQUIRED_APP_ENV = 'development'

DEFAULT_SETTINGS = {
    'node': {
        'name': 'Anvil',
        'rpc_url': 'http://localhost:8545',
        'local_network': 'local'
    },
    'readiness': {
        'max_check_count': 10,
        'check_delay_seconds': 1.0,
        'request_timeout_seconds': 2.0
    },
    'forge': {
        'binary': 'forge',
        'verbosity': '-vvvv',
        'profile_env': 'FOUNDRY_PROFILE',
        'production_profile': 'prod'
    },
    'artifacts': {
        'factory': {
            'name': 'Factory',
            'script': 'script/DeployFactory.s.sol',
            'contract': 'OnitInfiniteOutcomeDPMFactoryDeployer'
        },
        'router': {
            'name': 'Order Router',
            'script': 'script/DeployOrderRouter.s.sol',
            'contract': 'OnitOrderRouterDeployer'
        }
    },
    'bindings': {
        'forge_out': 'out',
        'out_dir': 'abis',
        'name': 'OnitInfiniteOutcomeDPMAbi',
        'include': [
            'OnitInfiniteOutcomeDPM.sol/**',
            'OnitInfiniteOutcomeDPMProxyFactory.sol/**',
            'OnitMarketOrderRouter.sol/**'
        ]
    }
}


class RunConfiguration(NamedTuple):
    """Values for a single deployment run, built once from the command line"""

    network: str
    selection: str = DEFAULT_SELECTION
    broadcast: bool = False
    profile: bool = False
    local_network: str = 'local'

    @property
    def is_local(self) -> bool:
        return self.network == self.local_network

    @property
    def verify(self) -> bool:
        """Contracts are only verified when broadcasting to a real network"""
        return self.broadcast and not self.is_local


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def load_settings(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load deployment settings, falling back to built-in defaults

    Args:
        config_path: JSON settings file (None = defaults only)

    Returns:
        Settings dict
    """
    if not config_path or not os.path.exists(config_path):
        logger.debug(f"No settings file at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    with open(config_path, 'r') as f:
        overrides = json.load(f)

    logger.debug(f"Loaded deployment settings from {config_path}")
    return _merge(DEFAULT_SETTINGS, overrides)


def is_development(env: Optional[Dict[str, str]] = None) -> bool:
    """Deployments only run when APP_ENV is set to development"""
    env = os.environ if env is None else env
    return env.get('APP_ENV') == REQUIRED_APP_ENV
