"""
Order Router Deployment
Deploys only the OnitOrderRouter with forge

Usage:
    python -m scripts.deploy_order_router <network> [-b] [-p]
"""

import sys
from deployer.cli import main_router

if __name__ == "__main__":
    sys.exit(main_router())
