"""
OAuth handling for Dexcom authentication.

This module talks to the Dexcom OAuth2 endpoints: building the login URL,
exchanging an authorization code for tokens, and refreshing an access
token. Each call performs exactly one HTTP request and never retries.
"""

from typing import Optional, Dict, Any
from urllib.parse import urlencode

from ..http import DexcomHttpClient
from ..logging.logger import get_logger

logger = get_logger(__name__)


class DexcomOAuthClient(DexcomHttpClient):
    """Handles Dexcom OAuth operations against one API base URI."""

    def __init__(self, base_url: str, timeout: int = 30):
        super().__init__(base_url, timeout=timeout)
        self.oauth_url = f"{self.base_url}/v2/oauth2"

    def get_authorization_url(self, client_id: str, redirect_uri: str, state: Optional[str] = None) -> str:
        """
        Generate the login URL the user visits to authorize the application.

        Args:
            client_id: Dexcom application client ID
            redirect_uri: Redirect URI registered with Dexcom
            state: Optional state parameter for CSRF protection

        Returns:
            str: Authorization URL
        """
        params = {
            'client_id': client_id,
            'redirect_uri': redirect_uri,
            'response_type': 'code',
            'scope': 'offline_access'
        }

        if state:
            params['state'] = state

        return f"{self.oauth_url}/login?{urlencode(params)}"

    async def _request_token(self, data: Dict[str, str], operation: str) -> Dict[str, Any]:
        """POST a grant to the token endpoint and return the decoded response."""
        return await self._request_json('post', f"{self.oauth_url}/token", operation, data=data)

    async def authorize(self, code: str, client_id: str, client_secret: str,
                        redirect_uri: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the OAuth callback
            client_id: Dexcom application client ID
            client_secret: Dexcom application client secret
            redirect_uri: Redirect URI used in authorization

        Returns:
            Dict: Token data

        Raises:
            UpstreamError: If the exchange fails
        """
        data = {
            'client_id': client_id,
            'client_secret': client_secret,
            'code': code,
            'grant_type': 'authorization_code',
            'redirect_uri': redirect_uri
        }

        token_data = await self._request_token(data, "Authorization code exchange")
        logger.info("Authorization code exchange successful", base_url=self.base_url)
        return token_data

    async def refresh(self, refresh_token: str, client_id: str, client_secret: str,
                      redirect_uri: str) -> Dict[str, Any]:
        """
        Refresh an access token. Dexcom invalidates the refresh token on use.

        Args:
            refresh_token: Current refresh token
            client_id: Dexcom application client ID
            client_secret: Dexcom application client secret
            redirect_uri: Redirect URI registered with Dexcom

        Returns:
            Dict: New token data

        Raises:
            UpstreamError: If the refresh fails
        """
        data = {
            'client_id': client_id,
            'client_secret': client_secret,
            'refresh_token': refresh_token,
            'grant_type': 'refresh_token',
            'redirect_uri': redirect_uri
        }

        token_data = await self._request_token(data, "Token refresh")
        logger.info("Token refresh successful", base_url=self.base_url)
        return token_data
