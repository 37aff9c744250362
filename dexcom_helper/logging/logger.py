"""
Structured logging for the Dexcom helper.

Modules log through get_logger(__name__), which wraps a standard library
logger and masks OAuth credentials in keyword context. As a library the
package emits nothing on its own: the 'dexcom_helper' logger carries a
NullHandler, and output is only attached by an application calling
configure_logging() or by its own root logging setup.
"""

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.settings import HelperSettings

PACKAGE_LOGGER = 'dexcom_helper'

# Keys containing one of these fragments are masked (refresh_token, client_secret, ...)
SENSITIVE_FRAGMENTS = ('token', 'secret', 'password', 'credential', 'authorization')

# Keys masked only on an exact match, so status_code or error_code stay readable
SENSITIVE_KEYS = frozenset({'code', 'authcode', 'auth_code'})

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Marks handlers installed by configure_logging()
_OWNED_HANDLER_ATTR = '_dexcom_helper_owned'

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return key in SENSITIVE_KEYS or any(fragment in key for fragment in SENSITIVE_FRAGMENTS)


def mask_sensitive_data(context: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mask sensitive values in a log context dictionary.

    Strings longer than 12 characters keep their first and last four
    characters so two tokens can still be told apart; anything else
    becomes "[REDACTED]".
    """
    masked = {}
    for key, value in context.items():
        if not is_sensitive_key(key):
            masked[key] = value
        elif isinstance(value, str) and len(value) > 12:
            masked[key] = f"{value[:4]}...{value[-4:]}"
        else:
            masked[key] = "[REDACTED]"
    return masked


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, 'context', None) or {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, context keys merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": created.isoformat(timespec='milliseconds').replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_context(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines with `key=value` context, optionally colored."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__(datefmt='%Y-%m-%d %H:%M:%S')
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        line = f"{self.formatTime(record, self.datefmt)} {level} [{record.name}] {record.getMessage()}"

        context = _record_context(record)
        if context:
            line += " | " + ", ".join(f"{key}={value}" for key, value in context.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class StructuredLogger:
    """
    Thin wrapper over a standard library logger taking context as kwargs:

        logger.info("Token refresh successful", base_url=base_url)

    Level and handlers belong to the wrapped logger and are never touched
    here.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self.logger.name

    def _log(self, level: int, message: str, **context):
        if not self.logger.isEnabledFor(level):
            return
        extra = {'context': mask_sensitive_data(context)} if context else None
        self.logger.log(level, message, extra=extra)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, **context)


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get the cached StructuredLogger for a module name."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


def _build_handlers(format_type: str, log_file: Optional[str], stream=None):
    console = logging.StreamHandler(stream)
    console.setFormatter(JsonFormatter() if format_type == 'json' else ConsoleFormatter())
    handlers = [console]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        )
        # Files are always JSON
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    return handlers


def configure_logging(settings: 'HelperSettings', stream=None) -> logging.Logger:
    """
    Attach console (and optional rotating file) output to the package logger.

    Only handlers installed by a previous call are replaced, so calling this
    again after a settings change never duplicates output and never drops
    handlers the host application added.

    Args:
        settings: Source of log_level, log_format and log_file
        stream: Console stream (defaults to stderr)

    Returns:
        logging.Logger: The configured 'dexcom_helper' logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(package_logger.handlers):
        if getattr(handler, _OWNED_HANDLER_ATTR, False):
            package_logger.removeHandler(handler)
            handler.close()

    for handler in _build_handlers(settings.log_format, settings.log_file, stream):
        setattr(handler, _OWNED_HANDLER_ATTR, True)
        package_logger.addHandler(handler)

    package_logger.setLevel(settings.log_level.upper())
    return package_logger
