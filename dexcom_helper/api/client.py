"""
Dexcom data API client.

Single-window reads of a user's records. Each call validates its inputs,
issues one GET, and returns the decoded body. Expired tokens are not
refreshed here: a 401 surfaces as UpstreamError and the caller decides
whether to call refresh_access_token().
"""

from typing import Optional, Dict, Any

from ..errors import ValidationError
from ..helpers import (
    OptionsLike,
    TokensLike,
    base_uri_for,
    coerce_oauth_tokens,
    coerce_options,
    dexcomify_epoch_time,
    validate_time_window
)
from ..http import DexcomHttpClient
from ..logging.logger import get_logger

logger = get_logger(__name__)

#: Record types readable over a time window
RECORD_TYPES = ('egvs', 'events', 'calibrations', 'devices', 'alerts')


class DexcomClient(DexcomHttpClient):
    """Reads user records from the Dexcom API."""

    def __init__(self, base_url: str, timeout: int = 30):
        super().__init__(base_url, timeout=timeout)
        self.users_url = f"{self.base_url}/v2/users/self"

    @classmethod
    def for_options(cls, options: OptionsLike, use_sandbox: bool, timeout: int = 30) -> 'DexcomClient':
        """Create a client for the sandbox or for options.api_uri."""
        options = coerce_options(options)
        return cls(base_uri_for(options, use_sandbox), timeout=timeout)

    async def _make_request(self, endpoint: str, access_token: str,
                            params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        GET a user endpoint.

        Args:
            endpoint: Path below /v2/users/self (e.g. "egvs")
            access_token: Bearer token
            params: Query parameters

        Returns:
            Response data as dictionary
        """
        headers = {'Authorization': f'Bearer {access_token}'}
        return await self._request_json('get', f"{self.users_url}/{endpoint}", f"GET {endpoint}",
                                        headers=headers, params=params)

    async def get_data_range(self, oauth_tokens: TokensLike) -> Dict[str, Any]:
        """
        Get the earliest and latest record times available for the user.

        Raises:
            ValidationError: If the token bundle is invalid
            UpstreamError: If the request fails
        """
        bundle = coerce_oauth_tokens(oauth_tokens)
        return await self._make_request('dataRange', bundle.access_token)

    async def get_records(self, record_type: str, oauth_tokens: TokensLike,
                          start_time: int, end_time: int) -> Dict[str, Any]:
        """
        Get records of one type for a time window.

        Args:
            record_type: One of RECORD_TYPES
            oauth_tokens: Token bundle with a valid access token
            start_time: Window start in epoch milliseconds
            end_time: Window end in epoch milliseconds

        Returns:
            Dict: Decoded response body

        Raises:
            ValidationError: If any argument is invalid
            UpstreamError: If the request fails
        """
        if record_type not in RECORD_TYPES:
            raise ValidationError(f"Unknown record type: {record_type!r}",
                                  field='record_type', constraint='record-type')
        bundle = coerce_oauth_tokens(oauth_tokens)
        validate_time_window(start_time, end_time)

        params = {
            'startDate': dexcomify_epoch_time(start_time),
            'endDate': dexcomify_epoch_time(end_time)
        }

        logger.debug("Fetching Dexcom records", record_type=record_type, **params)
        return await self._make_request(record_type, bundle.access_token, params)

    async def get_egvs(self, oauth_tokens: TokensLike, start_time: int, end_time: int) -> Dict[str, Any]:
        """Get estimated glucose values."""
        return await self.get_records('egvs', oauth_tokens, start_time, end_time)

    async def get_events(self, oauth_tokens: TokensLike, start_time: int, end_time: int) -> Dict[str, Any]:
        """Get user-entered events (carbs, insulin, exercise, health)."""
        return await self.get_records('events', oauth_tokens, start_time, end_time)

    async def get_calibrations(self, oauth_tokens: TokensLike, start_time: int, end_time: int) -> Dict[str, Any]:
        return await self.get_records('calibrations', oauth_tokens, start_time, end_time)

    async def get_devices(self, oauth_tokens: TokensLike, start_time: int, end_time: int) -> Dict[str, Any]:
        return await self.get_records('devices', oauth_tokens, start_time, end_time)

    async def get_alerts(self, oauth_tokens: TokensLike, start_time: int, end_time: int) -> Dict[str, Any]:
        return await self.get_records('alerts', oauth_tokens, start_time, end_time)
