"""
Deployment CLI
Argument handling and control flow shared by the deploy entry points
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple
from dotenv import load_dotenv
from loguru import logger

from blockchain.readiness import ReadinessProber
from utils.log_config import configure_logging

from .config import (
    DEFAULT_SELECTION,
    DEPLOY_SELECTIONS,
    RunConfiguration,
    is_development,
    load_settings,
)
from .dispatcher import CommandDispatcher


KNOWN_FLAGS = ('-b', '--broadcast', '-p', '--prod', '-v', '--verbose', '-h', '--help')


def build_parser(selection: Optional[str] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser

    Args:
        selection: Fixed deploy selection (hides the deploy-type argument)
    """
    if selection is None:
        prog = "deploy.py"
        description = "Deploy the Onit factory and/or order router with forge"
    else:
        prog = "deploy_order_router.py"
        description = f"Deploy the Onit {selection} with forge"

    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("network", nargs="?", help="Network to deploy to")

    if selection is None:
        parser.add_argument(
            "deploy_type",
            nargs="?",
            default=DEFAULT_SELECTION,
            help="What to deploy - 'router', 'factory', or 'both' (default: both)"
        )

    parser.add_argument("-b", "--broadcast", action="store_true", help="Broadcast transactions")
    parser.add_argument("-p", "--prod", action="store_true", help="Use production profile")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def split_unknown_flags(argv: List[str]) -> Tuple[List[str], List[str]]:
    """
    Separate dash-prefixed tokens the parser does not know

    Unknown flags never take a value, so the positional after them is kept.

    Returns:
        (arguments for the parser, unknown flags)
    """
    known, unknown = [], []

    for arg in argv:
        if arg.startswith("-") and arg not in KNOWN_FLAGS:
            unknown.append(arg)
        else:
            known.append(arg)

    return known, unknown


async def run(
    argv: List[str],
    settings: Optional[dict] = None,
    selection: Optional[str] = None,
    prober: Optional[ReadinessProber] = None,
    dispatcher: Optional[CommandDispatcher] = None
) -> int:
    """
    Wait for the node, then deploy

    Args:
        argv: Command line arguments (without program name)
        settings: Deployment settings (None = load from file)
        selection: Fixed deploy selection for single-artifact entry points
        prober: Readiness prober override
        dispatcher: Command dispatcher override

    Returns:
        Process exit code
    """
    parser = build_parser(selection)
    known, unknown = split_unknown_flags(argv)
    args, extra = parser.parse_known_intermixed_args(known)
    unknown += extra

    if unknown:
        logger.warning(f"Ignoring unknown arguments: {' '.join(unknown)}")

    if not is_development():
        logger.info("Not running in development environment, exiting...")
        return 0

    deploy_type = selection or args.deploy_type

    if deploy_type not in DEPLOY_SELECTIONS:
        logger.error("Invalid deploy type. Use: router, factory, or both")
        parser.print_help()
        return 1

    if not args.network:
        logger.error("Missing network")
        parser.print_help()
        return 1

    settings = settings or load_settings()

    run_config = RunConfiguration(
        network=args.network,
        selection=deploy_type,
        broadcast=args.broadcast,
        profile=args.prod,
        local_network=settings['node']['local_network']
    )

    prober = prober or ReadinessProber.from_settings(settings)

    # Remote networks are assumed to be up
    if not await prober.wait_until_ready(skip=not run_config.is_local):
        logger.info(f"{prober.node_name} is not running, nothing deployed")
        return 0

    dispatcher = dispatcher or CommandDispatcher(settings)
    return dispatcher.dispatch(run_config)


def _wants_verbose(argv: List[str]) -> bool:
    return "-v" in argv or "--verbose" in argv


def main(argv: Optional[List[str]] = None) -> int:
    """Combined factory + order router deployment"""
    argv = sys.argv[1:] if argv is None else argv

    load_dotenv()
    configure_logging(verbose=_wants_verbose(argv))

    return asyncio.run(run(argv))


def main_router(argv: Optional[List[str]] = None) -> int:
    """Order router only deployment"""
    argv = sys.argv[1:] if argv is None else argv

    load_dotenv()
    configure_logging(verbose=_wants_verbose(argv))

    return asyncio.run(run(argv, selection='router'))
