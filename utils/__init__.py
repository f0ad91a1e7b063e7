"""
Utils Package
-------------
Provides helper modules for configuration loading, logging, console output
and locating the external player.
"""

from .config_loader import load_config
from .environment import find_player
from .logger import setup_logging

__all__ = ["load_config", "find_player", "setup_logging"]
