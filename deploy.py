"""
Contract Deployment
Deploys the Onit factory and/or order router with forge

Usage:
    python deploy.py <network> [router|factory|both] [-b] [-p]
"""

import sys
from deployer.cli import main

if __name__ == "__main__":
    sys.exit(main())
