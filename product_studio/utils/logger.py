"""Structured logging utility with JSON output."""

import logging
import json
import sys
import os
from datetime import datetime
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""
    
    # Fields that Python's logging adds automatically (exclude these)
    BUILTIN_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
        'taskName', 'message',
    }
    
    MAX_VALUE_LENGTH = 500
    
    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        for key, value in record.__dict__.items():
            if key in self.BUILTIN_ATTRS or key.startswith('_'):
                continue
            log_data[key] = self._sanitize(value)
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        return json.dumps(log_data)
    
    def _sanitize(self, value: Any) -> Any:
        # Image payloads must never reach the log stream
        if isinstance(value, (bytes, bytearray)):
            return f"<bytes: {len(value)} bytes>"
        
        if isinstance(value, (list, tuple)):
            value = [self._sanitize(item) for item in value]
        
        try:
            json.dumps(value)
            return value
        except (TypeError, ValueError):
            str_value = str(value)
            if len(str_value) > self.MAX_VALUE_LENGTH:
                return str_value[:self.MAX_VALUE_LENGTH] + "...[truncated]"
            return str_value


PACKAGE_LOGGER = __name__.split(".")[0]

# Set by configure_logging; overrides LOG_LEVEL from the environment
_level_override: Optional[int] = None


def _resolve_level(level_name: str) -> int:
    level = getattr(logging, str(level_name).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level_name: str) -> int:
    """
    Apply a log level to every package logger, existing and future.
    
    Args:
        level_name: Standard level name such as "DEBUG"; unknown names mean INFO
        
    Returns:
        The numeric level applied
    """
    global _level_override
    
    _level_override = _resolve_level(level_name)
    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(existing, logging.Logger) and (
            name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + ".")
        ):
            existing.setLevel(_level_override)
    return _level_override


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    
    if not logger.handlers:
        if _level_override is not None:
            logger.setLevel(_level_override)
        else:
            logger.setLevel(_resolve_level(os.getenv("LOG_LEVEL", "INFO")))
        
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        
        logger.propagate = False
    
    return logger
