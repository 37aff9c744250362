"""Authentication module for Dexcom OAuth tokens."""

from .oauth import DexcomOAuthClient
from .tokens import DexcomOAuthToken, OAuthTokenBundle, is_access_token_expired

__all__ = [
    'DexcomOAuthClient',
    'DexcomOAuthToken',
    'OAuthTokenBundle',
    'is_access_token_expired'
]
