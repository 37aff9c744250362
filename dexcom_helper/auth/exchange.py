"""
Authorization code exchange.

Turns the code Dexcom sends to the redirect URI into a token bundle, for
either the production API or the sandbox.
"""

from typing import Optional

from .oauth import DexcomOAuthClient
from .tokens import OAuthTokenBundle
from ..config.settings import SANDBOX_API_URI
from ..errors import ValidationError
from ..helpers import OptionsLike, coerce_options, validate_sandbox_authcode
from ..logging.logger import get_logger

logger = get_logger(__name__)


async def _exchange(options: OptionsLike, authcode: str, base_uri: Optional[str],
                    oauth_client: Optional[DexcomOAuthClient]) -> OAuthTokenBundle:
    options = coerce_options(options)
    base_uri = base_uri or options.api_uri

    owns_client = oauth_client is None
    if owns_client:
        oauth_client = DexcomOAuthClient(base_uri)

    try:
        token_data = await oauth_client.authorize(
            authcode,
            options.client_id,
            options.client_secret,
            options.redirect_uri
        )
    finally:
        if owns_client:
            await oauth_client.close()

    return OAuthTokenBundle.from_response(token_data)


async def get_authentication_token(options: OptionsLike, authcode: str,
                                   oauth_client: Optional[DexcomOAuthClient] = None) -> OAuthTokenBundle:
    """
    Exchange a production authorization code for a token bundle.

    Args:
        options: Dexcom application options
        authcode: Code received on the redirect URI
        oauth_client: Client to use; left open if supplied

    Returns:
        OAuthTokenBundle: Bundle stamped with the current time

    Raises:
        ValidationError: If options are invalid or authcode is empty
        UpstreamError: If Dexcom rejects the code
    """
    if not authcode:
        raise ValidationError("authcode is required", field='authcode', constraint='required')
    return await _exchange(options, authcode, None, oauth_client)


async def get_sandbox_authentication_token(options: OptionsLike, authcode: str,
                                           oauth_client: Optional[DexcomOAuthClient] = None) -> OAuthTokenBundle:
    """
    Exchange one of the fixed sandbox authorization codes for a token bundle.

    Raises:
        ValidationError: If options are invalid or authcode is not a sandbox code
        UpstreamError: If the sandbox rejects the code
    """
    validate_sandbox_authcode(authcode)
    logger.debug("Requesting sandbox token", authcode=authcode)
    return await _exchange(options, authcode, SANDBOX_API_URI, oauth_client)
