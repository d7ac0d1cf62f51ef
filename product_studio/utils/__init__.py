"""Utility modules for configuration, logging, and error handling."""

from .config import load_config, get_config
from .logger import configure_logging, get_logger
from .messages import MessageCatalog
from .retry import retry_async

__all__ = [
    "load_config",
    "get_config",
    "get_logger",
    "configure_logging",
    "MessageCatalog",
    "retry_async",
]
