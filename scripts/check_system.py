"""
System Check Script
Verifies environment, settings and tooling before deploying

Usage:
    python -m scripts.check_system
"""

import asyncio
import json
import os
import shutil
import sys
from loguru import logger
from dotenv import load_dotenv

from blockchain.readiness import ReadinessProber
from deployer.bindings import BindingsExporter
from deployer.config import DEFAULT_CONFIG_PATH, is_development, load_settings
from utils.log_config import configure_logging


def check_environment_variables():
    """Check deployment mode and the variables forge scripts read"""
    logger.info("Checking environment variables...")

    if not is_development():
        logger.error(f"  APP_ENV is {os.getenv('APP_ENV')!r}, deployments need 'development'")
        return False

    optional_vars = [
        'DEPLOYER_PRIVATE_KEY',
        'ONIT_OWNER_ADDRESS',
        'ETHERSCAN_API_KEY'
    ]

    for var in optional_vars:
        if not os.getenv(var):
            logger.warning(f"  {var} not set (needed for broadcasts to real networks)")

    logger.success("✓ APP_ENV=development")
    return True


def check_configuration_file():
    """Check the deployment settings file parses"""
    logger.info("Checking configuration file...")

    if not os.path.exists(DEFAULT_CONFIG_PATH):
        logger.warning(f"  {DEFAULT_CONFIG_PATH} not found, built-in defaults will be used")
        return True

    try:
        with open(DEFAULT_CONFIG_PATH, 'r') as f:
            json.load(f)
    except ValueError as e:
        logger.error(f"  ✗ {DEFAULT_CONFIG_PATH}: {e}")
        return False

    logger.success(f"  ✓ {DEFAULT_CONFIG_PATH}")
    return True


def check_forge(settings):
    """Check forge is on PATH"""
    logger.info("Checking forge...")

    binary = settings['forge']['binary']
    path = shutil.which(binary)

    if not path:
        logger.error(f"  ✗ {binary} not found - install Foundry: https://book.getfoundry.sh")
        return False

    logger.success(f"  ✓ {binary}: {path}")
    return True


def check_deploy_scripts(settings):
    """Check the forge deploy scripts exist"""
    logger.info("Checking deploy scripts...")

    missing = []
    for artifact in settings['artifacts'].values():
        if os.path.exists(artifact['script']):
            logger.success(f"  ✓ {artifact['script']}")
        else:
            missing.append(artifact['script'])

    if missing:
        logger.error(f"Missing deploy scripts: {', '.join(missing)}")
        return False

    return True


def check_local_node(settings):
    """Single liveness probe against the local node"""
    logger.info("Checking local node...")

    prober = ReadinessProber.from_settings(settings)
    prober.max_attempts = 1

    if asyncio.run(prober.wait_until_ready()):
        return True

    logger.warning(f"  {prober.node_name} not running - start it before deploying to 'local'")
    return False


def check_forge_artifacts(settings):
    """Check forge build output for the bindings export"""
    logger.info("Checking forge artifacts...")

    abis = BindingsExporter(settings).collect_abis()

    if not abis:
        logger.warning("  No artifacts found")
        logger.info("  Run: forge build --via-ir")
    else:
        logger.success(f"  ✓ {len(abis)} contract ABIs available")

    return True


def main():
    """Run all system checks"""
    logger.info("=" * 70)
    logger.info("Onit Deployment System Check")
    logger.info("=" * 70)

    settings = load_settings()

    checks = [
        ("Environment Variables", check_environment_variables),
        ("Configuration File", check_configuration_file),
        ("Forge", lambda: check_forge(settings)),
        ("Deploy Scripts", lambda: check_deploy_scripts(settings)),
        ("Local Node", lambda: check_local_node(settings)),
        ("Forge Artifacts", lambda: check_forge_artifacts(settings))
    ]

    results = []

    for name, check_func in checks:
        logger.info("")
        try:
            result = check_func()
            results.append((name, result))
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            results.append((name, False))

    # Summary
    logger.info("")
    logger.info("=" * 70)
    logger.info("Summary")
    logger.info("=" * 70)

    passed = sum(1 for _, result in results if result)
    total = len(results)

    for name, result in results:
        status = "✓ PASS" if result else "✗ FAIL"
        logger.info(f"  {status}: {name}")

    logger.info("")
    logger.info(f"Total: {passed}/{total} checks passed")

    if passed == total:
        logger.success("✅ Ready to deploy: python deploy.py <network> [router|factory|both] [-b] [-p]")
        return 0

    logger.error("❌ Not ready - fix issues above")
    return 1


if __name__ == "__main__":
    load_dotenv()
    configure_logging()
    sys.exit(main())
