"""
Logging module for the Dexcom helper.

Structured logging with credential masking. Nothing is printed until the
application calls configure_logging() or configures the root logger.
"""

from .logger import (
    StructuredLogger,
    JsonFormatter,
    ConsoleFormatter,
    configure_logging,
    get_logger,
    mask_sensitive_data
)

__all__ = [
    'StructuredLogger',
    'JsonFormatter',
    'ConsoleFormatter',
    'configure_logging',
    'get_logger',
    'mask_sensitive_data'
]
