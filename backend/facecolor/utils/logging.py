"""
Facial Color Structured Logging
Centralized loguru configuration plus a small wrapper that carries
request context (request_id, batch_id) on every line.
"""
import sys
from typing import Any, Dict, Optional

from loguru import logger

from facecolor.config import config


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message} | {extra}"


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None):
    """Replace loguru's default sink with the service sink."""
    logger.remove()
    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=level or config.LOG_LEVEL,
        serialize=config.LOG_JSON if json_output is None else json_output,
    )


class StructuredLogger:
    """Structured logger for the facial color analysis service."""
    
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        self.context = dict(context or {})
    
    def bind(self, **context) -> "StructuredLogger":
        """Child logger that adds context to every message."""
        return StructuredLogger({**self.context, **context})
    
    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("INFO", message, extra)
    
    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("WARNING", message, extra)
    
    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("ERROR", message, extra)
    
    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("DEBUG", message, extra)
    
    def _emit(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        # depth=2 reports the caller of info()/warning(), not this helper
        logger.opt(depth=2).bind(**{**self.context, **(extra or {})}).log(level, message)


_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get the service logger, configuring the sink on first use."""
    global _logger
    if _logger is None:
        configure_logging()
        _logger = StructuredLogger()
    return _logger
