"""
Validation and token refresh helpers for the Dexcom API.

The validators are synchronous and side-effect free: they return None or
raise ValidationError on the first violated precondition.
refresh_access_token() is the only coroutine here and performs exactly one
upstream request per call.

Refreshing consumes the refresh token. Callers must serialize refreshes
for a given credential set; nothing here guards against concurrent use of
the same refresh token.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Mapping, Union

from yarl import URL

from .auth.oauth import DexcomOAuthClient
from .auth.tokens import DEXCOM_OAUTH_TOKEN_KEY, OAuthTokenBundle, epoch_milliseconds
from .config.settings import DexcomOptions, SANDBOX_API_URI
from .errors import ValidationError
from .logging.logger import get_logger

logger = get_logger(__name__)

MAX_CLIENT_ID_LENGTH = 32
MAX_CLIENT_SECRET_LENGTH = 16

#: Authorization codes accepted by the Dexcom sandbox
SANDBOX_AUTHCODES = frozenset({
    'authcode1',
    'authcode2',
    'authcode3',
    'authcode4',
    'authcode5',
    'authcode6',
})

DEXCOM_TIME_FORMAT = '%Y-%m-%dT%H:%M:%S'

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_UNSAFE_URI_CHARS = re.compile(r'[\s\x00-\x1f\x7f]')

OptionsLike = Union[DexcomOptions, Mapping[str, Any], None]
TokensLike = Union[OAuthTokenBundle, Mapping[str, Any], None]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_string(value: Any, field: str) -> str:
    if value is None:
        raise ValidationError(f"{field} is required", field=field, constraint='required')
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field, constraint='type')
    if not value:
        raise ValidationError(f"{field} must not be empty", field=field, constraint='non-empty')
    return value


def _require_uri(value: str, field: str) -> None:
    if _UNSAFE_URI_CHARS.search(value):
        raise ValidationError(f"{field} is not a valid URI: {value!r} contains whitespace or control characters",
                              field=field, constraint='uri')
    try:
        url = URL(value)
    except ValueError as e:
        raise ValidationError(f"{field} is not a valid URI: {e}", field=field, constraint='uri') from e
    if not url.scheme or not url.host:
        raise ValidationError(f"{field} is not a valid URI: {value!r}", field=field, constraint='uri')


def _require_max_length(value: str, field: str, limit: int) -> None:
    if len(value) > limit:
        raise ValidationError(
            f"{field} must be at most {limit} characters, got {len(value)}",
            field=field,
            constraint='max-length'
        )


def validate_options(options: OptionsLike) -> None:
    """
    Validate Dexcom application options.

    Args:
        options: DexcomOptions or a mapping with clientId, clientSecret,
            redirectUri and apiUri

    Raises:
        ValidationError: If options are missing, incomplete or malformed
    """
    if options is None:
        raise ValidationError("options are required", field='options', constraint='required')
    if isinstance(options, Mapping):
        options = DexcomOptions.from_dict(options)
    elif not isinstance(options, DexcomOptions):
        raise ValidationError(
            f"options must be DexcomOptions or a mapping, got {type(options).__name__}",
            field='options',
            constraint='type'
        )

    client_id = _require_string(options.client_id, 'client_id')
    client_secret = _require_string(options.client_secret, 'client_secret')
    redirect_uri = _require_string(options.redirect_uri, 'redirect_uri')
    api_uri = _require_string(options.api_uri, 'api_uri')

    _require_uri(redirect_uri, 'redirect_uri')
    _require_uri(api_uri, 'api_uri')
    _require_max_length(client_id, 'client_id', MAX_CLIENT_ID_LENGTH)
    _require_max_length(client_secret, 'client_secret', MAX_CLIENT_SECRET_LENGTH)


def validate_sandbox_authcode(authcode: Any) -> None:
    """
    Validate a sandbox authorization code.

    Raises:
        ValidationError: If the code is not one of SANDBOX_AUTHCODES
    """
    if not isinstance(authcode, str) or authcode not in SANDBOX_AUTHCODES:
        raise ValidationError(
            f"Invalid sandbox authcode: {authcode!r}",
            field='authcode',
            constraint='sandbox-authcode'
        )


def dexcomify_epoch_time(epoch_milliseconds: int) -> str:
    """
    Convert epoch milliseconds to Dexcom's date format.

    The result is UTC, with no timezone suffix and milliseconds truncated:

        >>> dexcomify_epoch_time(1586101155000)
        '2020-04-05T15:39:15'

    Raises:
        ValidationError: If the value is not a non-negative integer or lies
            past the last representable date
    """
    if not _is_int(epoch_milliseconds):
        raise ValidationError(
            f"epoch time must be an integer, got {type(epoch_milliseconds).__name__}",
            field='epoch_milliseconds',
            constraint='type'
        )
    if epoch_milliseconds < 0:
        raise ValidationError("epoch time must not be negative",
                              field='epoch_milliseconds', constraint='non-negative')

    try:
        moment = _EPOCH + timedelta(milliseconds=epoch_milliseconds)
    except (OverflowError, ValueError) as e:
        raise ValidationError(f"epoch time {epoch_milliseconds} is out of range",
                              field='epoch_milliseconds', constraint='range') from e
    return moment.strftime(DEXCOM_TIME_FORMAT)


def validate_time_window(start_time: Optional[int], end_time: Optional[int]) -> None:
    """
    Validate a [start_time, end_time] window in epoch milliseconds.

    Zero-length windows are accepted.

    Raises:
        ValidationError: If either bound is missing or negative, or the
            window runs backwards
    """
    for field, value in (('start_time', start_time), ('end_time', end_time)):
        if value is None:
            raise ValidationError(f"{field} is required", field=field, constraint='required')
        if not _is_int(value):
            raise ValidationError(f"{field} must be an integer", field=field, constraint='type')
        if value < 0:
            raise ValidationError(f"{field} must not be negative", field=field, constraint='non-negative')

    if start_time > end_time:
        raise ValidationError(
            f"start_time ({start_time}) is after end_time ({end_time})",
            field='start_time',
            constraint='ordering'
        )


def validate_oauth_tokens(oauth_tokens: TokensLike) -> None:
    """
    Validate an OAuth token bundle.

    Args:
        oauth_tokens: OAuthTokenBundle or its wire form
            {"timestamp": int, "dexcomOAuthToken": {...}}

    Raises:
        ValidationError: If the bundle or any required field is missing or
            malformed
    """
    if oauth_tokens is None:
        raise ValidationError("oauth tokens are required", field='oauth_tokens', constraint='required')
    if isinstance(oauth_tokens, OAuthTokenBundle):
        oauth_tokens = oauth_tokens.to_dict()
    elif not isinstance(oauth_tokens, Mapping):
        raise ValidationError(
            f"oauth tokens must be OAuthTokenBundle or a mapping, got {type(oauth_tokens).__name__}",
            field='oauth_tokens',
            constraint='type'
        )

    timestamp = oauth_tokens.get('timestamp')
    if timestamp is None:
        raise ValidationError("timestamp is required", field='timestamp', constraint='required')
    if not _is_int(timestamp):
        raise ValidationError("timestamp must be an integer", field='timestamp', constraint='type')
    if timestamp < 0:
        raise ValidationError("timestamp must not be negative", field='timestamp', constraint='non-negative')

    token = oauth_tokens.get(DEXCOM_OAUTH_TOKEN_KEY)
    if token is None:
        raise ValidationError(f"{DEXCOM_OAUTH_TOKEN_KEY} is required",
                              field=DEXCOM_OAUTH_TOKEN_KEY, constraint='required')
    if not isinstance(token, Mapping):
        raise ValidationError(f"{DEXCOM_OAUTH_TOKEN_KEY} must be a mapping",
                              field=DEXCOM_OAUTH_TOKEN_KEY, constraint='type')

    for field in ('access_token', 'token_type', 'refresh_token'):
        _require_string(token.get(field), field)

    expires_in = token.get('expires_in')
    if expires_in is None:
        raise ValidationError("expires_in is required", field='expires_in', constraint='required')
    if not _is_int(expires_in):
        raise ValidationError("expires_in must be an integer", field='expires_in', constraint='type')


def coerce_options(options: OptionsLike) -> DexcomOptions:
    """Validate options and return them as DexcomOptions."""
    validate_options(options)
    return DexcomOptions.from_dict(options) if isinstance(options, Mapping) else options


def coerce_oauth_tokens(oauth_tokens: TokensLike) -> OAuthTokenBundle:
    """Validate a token bundle and return it as OAuthTokenBundle."""
    validate_oauth_tokens(oauth_tokens)
    if isinstance(oauth_tokens, OAuthTokenBundle):
        return oauth_tokens
    return OAuthTokenBundle.from_dict(oauth_tokens)


def base_uri_for(options: DexcomOptions, use_sandbox: bool) -> str:
    """Select the sandbox or production base URI."""
    return SANDBOX_API_URI if use_sandbox else options.api_uri


async def refresh_access_token(options: OptionsLike, oauth_tokens: TokensLike, use_sandbox: bool,
                               oauth_client: Optional[DexcomOAuthClient] = None) -> OAuthTokenBundle:
    """
    Refresh an access token with one call to the Dexcom token endpoint.

    Args:
        options: Dexcom application options
        oauth_tokens: Current token bundle holding the refresh token to use
        use_sandbox: Refresh against the sandbox instead of options.api_uri
        oauth_client: Client to use; it is left open. When omitted a client
            is created for this call and closed afterwards.

    Returns:
        OAuthTokenBundle: New bundle stamped with the current time

    Raises:
        ValidationError: If options or tokens are invalid
        UpstreamError: If Dexcom rejects the refresh or cannot be reached
    """
    options = coerce_options(options)
    bundle = coerce_oauth_tokens(oauth_tokens)
    base_uri = base_uri_for(options, use_sandbox)

    owns_client = oauth_client is None
    if owns_client:
        oauth_client = DexcomOAuthClient(base_uri)

    try:
        logger.debug("Refreshing Dexcom access token", base_url=base_uri, sandbox=use_sandbox)
        token_data = await oauth_client.refresh(
            bundle.refresh_token,
            options.client_id,
            options.client_secret,
            options.redirect_uri
        )
    finally:
        if owns_client:
            await oauth_client.close()

    return OAuthTokenBundle.from_response(token_data, timestamp=epoch_milliseconds())
