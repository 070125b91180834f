"""
Developer convenience commands for CMS projects
"""

__version__ = "1.0.0"

from .core import SyncOrchestrator
from .errors import CommandFailure, ConfigError, ConvenienceError, UserDeclined

__all__ = [
    "SyncOrchestrator",
    "ConvenienceError",
    "ConfigError",
    "CommandFailure",
    "UserDeclined",
]
