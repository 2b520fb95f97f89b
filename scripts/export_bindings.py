"""
Bindings Export Script
Writes the versioned ABI bindings file from forge build output

Usage:
    forge build --via-ir
    python -m scripts.export_bindings [project_root]
"""

import sys
from loguru import logger

from deployer.bindings import BindingsExporter
from deployer.config import load_settings
from utils.log_config import configure_logging


def main(argv=None) -> int:
    """Export bindings, returns process exit code"""
    argv = sys.argv[1:] if argv is None else argv
    project_root = argv[0] if argv else "."

    exporter = BindingsExporter(load_settings(), project_root)

    try:
        exporter.export()
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
