"""
Configuration management for the Dexcom helper.

This module loads Dexcom application credentials and runtime settings from
environment variables (optionally via a .env file) or from a YAML secrets
file. Loading never validates the Dexcom fields themselves; callers pass the
result through validate_options() before use.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any, Mapping, Union

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

#: Production Dexcom API base URI
PRODUCTION_API_URI = "https://api.dexcom.com"

#: Sandbox Dexcom API base URI
SANDBOX_API_URI = "https://sandbox-api.dexcom.com"

# Accepted key spellings, first entry is the canonical (camelCase) form
_OPTION_KEYS = {
    'client_id': ('clientId', 'client_id'),
    'client_secret': ('clientSecret', 'client_secret'),
    'redirect_uri': ('redirectUri', 'redirect_uri'),
    'api_uri': ('apiUri', 'api_uri'),
}


@dataclass
class DexcomOptions:
    """Dexcom application credentials and endpoints."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    api_uri: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DexcomOptions':
        """
        Create DexcomOptions from a mapping.

        Both camelCase (clientId) and snake_case (client_id) keys are
        accepted. Missing keys become None.
        """
        values = {}
        for attr, keys in _OPTION_KEYS.items():
            values[attr] = next((data[key] for key in keys if key in data), None)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary form."""
        return {
            keys[0]: getattr(self, attr)
            for attr, keys in _OPTION_KEYS.items()
        }


@dataclass
class HelperSettings:
    """Runtime settings loaded from environment variables."""

    options: DexcomOptions
    use_sandbox: bool
    timeout: int
    log_level: str
    log_format: str
    log_file: Optional[str] = None

    @property
    def base_uri(self) -> Optional[str]:
        """Base URI selected by the sandbox flag."""
        return SANDBOX_API_URI if self.use_sandbox else self.options.api_uri


def load_settings() -> HelperSettings:
    """
    Load settings from environment variables.

    Returns:
        HelperSettings: Loaded settings

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    # Load environment variables from .env file if present
    load_dotenv()

    options = DexcomOptions(
        client_id=os.getenv('DEXCOM_CLIENT_ID'),
        client_secret=os.getenv('DEXCOM_CLIENT_SECRET'),
        redirect_uri=os.getenv('DEXCOM_REDIRECT_URI'),
        api_uri=os.getenv('DEXCOM_API_URI', PRODUCTION_API_URI),
    )

    use_sandbox = os.getenv('DEXCOM_USE_SANDBOX', 'false').lower() == 'true'
    timeout = int(os.getenv('DEXCOM_TIMEOUT', '30'))

    # Logging configuration
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_format = os.getenv('LOG_FORMAT', 'console')  # 'console' or 'json'
    log_file = os.getenv('LOG_FILE')

    return HelperSettings(
        options=options,
        use_sandbox=use_sandbox,
        timeout=timeout,
        log_level=log_level,
        log_format=log_format,
        log_file=log_file
    )


def validate_settings(settings: HelperSettings) -> None:
    """
    Validate runtime settings for consistency.

    Args:
        settings: Settings to validate

    Raises:
        ValueError: If settings are invalid
    """
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if settings.log_level not in valid_log_levels:
        raise ValueError(f"Invalid log level: {settings.log_level}")

    valid_log_formats = ['console', 'json']
    if settings.log_format not in valid_log_formats:
        raise ValueError(f"Invalid log format: {settings.log_format}")

    if settings.timeout <= 0:
        raise ValueError("Dexcom timeout must be positive")


def load_options_file(path: Union[str, Path], section: Optional[str] = None) -> DexcomOptions:
    """
    Load Dexcom options from a YAML secrets file.

    Args:
        path: Path to the YAML file
        section: Optional top-level key holding the options

    Returns:
        DexcomOptions: Options read from the file

    Raises:
        ValueError: If the file does not contain a mapping
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if section is not None:
        data = (data or {}).get(section)

    if not isinstance(data, Mapping):
        raise ValueError(f"Secrets file {path} does not contain a mapping of options")

    logger.debug(f"Loaded Dexcom options from {path}")
    return DexcomOptions.from_dict(data)
