# compose_deploy/cli/commands/__init__.py
"""CLI commands"""

from . import config
from . import pack

__all__ = [
    "config",
    "pack",
]
