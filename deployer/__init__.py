"""
Onit Deployment Package
Waits for the local node and runs the forge deployment scripts
"""

__version__ = "1.0.0"

from .config import RunConfiguration, load_settings
from .dispatcher import CommandDispatcher
from .bindings import BindingsExporter

__all__ = ['RunConfiguration', 'load_settings', 'CommandDispatcher', 'BindingsExporter']
