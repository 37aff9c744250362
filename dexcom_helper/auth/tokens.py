"""
OAuth token models.

A token bundle pairs the token set returned by Dexcom with the epoch
millisecond timestamp of the authorization or refresh that produced it.
Bundles are replaced wholesale on refresh, never edited in place.
"""

import time
from dataclasses import dataclass
from typing import Optional, Dict, Any, Mapping

from ..errors import UpstreamError

#: Wire-format key holding the nested token set
DEXCOM_OAUTH_TOKEN_KEY = 'dexcomOAuthToken'

#: Fields every Dexcom token response must carry
TOKEN_FIELDS = ('access_token', 'expires_in', 'token_type', 'refresh_token')


def epoch_milliseconds() -> int:
    """Current UTC wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass
class DexcomOAuthToken:
    """Token set returned by the Dexcom OAuth token endpoint."""
    access_token: str
    expires_in: int
    token_type: str
    refresh_token: str

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> 'DexcomOAuthToken':
        """
        Create a token from a provider response body.

        Raises:
            UpstreamError: If the body is missing a required field
        """
        if not isinstance(data, Mapping):
            raise UpstreamError(f"Malformed token response: expected an object, got {type(data).__name__}")

        missing = [name for name in TOKEN_FIELDS if data.get(name) in (None, '')]
        if missing:
            raise UpstreamError(f"Malformed token response: missing {', '.join(missing)}")

        try:
            expires_in = int(data['expires_in'])
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Malformed token response: invalid expires_in {data['expires_in']!r}") from e

        return cls(
            access_token=data['access_token'],
            expires_in=expires_in,
            token_type=data['token_type'],
            refresh_token=data['refresh_token']
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_token': self.access_token,
            'expires_in': self.expires_in,
            'token_type': self.token_type,
            'refresh_token': self.refresh_token
        }


@dataclass
class OAuthTokenBundle:
    """Dexcom token set plus the time it was obtained."""
    timestamp: int
    dexcom_oauth_token: DexcomOAuthToken

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'OAuthTokenBundle':
        """Create a bundle from its wire form. Run validate_oauth_tokens() first."""
        token = data[DEXCOM_OAUTH_TOKEN_KEY]
        return cls(
            timestamp=data['timestamp'],
            dexcom_oauth_token=DexcomOAuthToken(
                access_token=token['access_token'],
                expires_in=token['expires_in'],
                token_type=token['token_type'],
                refresh_token=token['refresh_token']
            )
        )

    @classmethod
    def from_response(cls, data: Mapping[str, Any], timestamp: Optional[int] = None) -> 'OAuthTokenBundle':
        """Create a bundle from a provider response, stamped now unless given."""
        return cls(
            timestamp=epoch_milliseconds() if timestamp is None else timestamp,
            dexcom_oauth_token=DexcomOAuthToken.from_response(data)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire form used by callers for storage."""
        return {
            'timestamp': self.timestamp,
            DEXCOM_OAUTH_TOKEN_KEY: self.dexcom_oauth_token.to_dict()
        }

    @property
    def access_token(self) -> str:
        return self.dexcom_oauth_token.access_token

    @property
    def refresh_token(self) -> str:
        return self.dexcom_oauth_token.refresh_token

    @property
    def expires_at(self) -> int:
        """Expiry time in epoch milliseconds."""
        return self.timestamp + self.dexcom_oauth_token.expires_in * 1000


def is_access_token_expired(bundle: OAuthTokenBundle, now_ms: Optional[int] = None,
                            buffer_seconds: int = 300) -> bool:
    """
    Check if a bundle's access token is expired.

    Args:
        bundle: Token bundle to check
        now_ms: Current time in epoch milliseconds (defaults to the wall clock)
        buffer_seconds: Treat tokens expiring within this window as expired

    Returns:
        bool: True if expired or about to expire
    """
    if now_ms is None:
        now_ms = epoch_milliseconds()
    return now_ms >= bundle.expires_at - buffer_seconds * 1000
