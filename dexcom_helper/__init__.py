"""
Dexcom Helper

Validation and OAuth token refresh helpers for the Dexcom developer API,
with single-request clients for authorization and data reads.
"""

from .errors import DexcomError, ValidationError, UpstreamError
from .config.settings import DexcomOptions, PRODUCTION_API_URI, SANDBOX_API_URI
from .auth.tokens import DexcomOAuthToken, OAuthTokenBundle, is_access_token_expired
from .helpers import (
    SANDBOX_AUTHCODES,
    validate_options,
    validate_sandbox_authcode,
    dexcomify_epoch_time,
    validate_time_window,
    validate_oauth_tokens,
    refresh_access_token
)
from .auth.exchange import get_authentication_token, get_sandbox_authentication_token
from .api.client import DexcomClient
from .logging.logger import configure_logging

__version__ = "1.0.0"

__all__ = [
    'DexcomError',
    'ValidationError',
    'UpstreamError',
    'DexcomOptions',
    'PRODUCTION_API_URI',
    'SANDBOX_API_URI',
    'DexcomOAuthToken',
    'OAuthTokenBundle',
    'is_access_token_expired',
    'SANDBOX_AUTHCODES',
    'validate_options',
    'validate_sandbox_authcode',
    'dexcomify_epoch_time',
    'validate_time_window',
    'validate_oauth_tokens',
    'refresh_access_token',
    'get_authentication_token',
    'get_sandbox_authentication_token',
    'DexcomClient',
    'configure_logging'
]
