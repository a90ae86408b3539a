"""
Core components for the manager system
"""

from .config import Config
from .module_base import ModuleInterface
from .command_base import BaseCommand

__all__ = [
    'Config',
    'ModuleInterface',
    'BaseCommand',
]
