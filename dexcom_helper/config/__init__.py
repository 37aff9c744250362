"""Configuration loading for Dexcom credentials and runtime settings."""

from .settings import (
    DexcomOptions,
    HelperSettings,
    PRODUCTION_API_URI,
    SANDBOX_API_URI,
    load_settings,
    validate_settings,
    load_options_file
)

__all__ = [
    'DexcomOptions',
    'HelperSettings',
    'PRODUCTION_API_URI',
    'SANDBOX_API_URI',
    'load_settings',
    'validate_settings',
    'load_options_file'
]
