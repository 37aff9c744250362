"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
from typing import Dict, Any, Optional
from unittest.mock import Mock, AsyncMock, MagicMock

from dexcom_helper.auth.oauth import DexcomOAuthClient
from dexcom_helper.auth.tokens import DexcomOAuthToken, OAuthTokenBundle
from dexcom_helper.config.settings import DexcomOptions


VALID_CLIENT_ID = 'jitzdjgkgzocbygphnzgpgeibqrybaxj'
VALID_CLIENT_SECRET = 'dnnukiodacexkmum'


@pytest.fixture
def valid_options_dict() -> Dict[str, Any]:
    """Options in the camelCase form read from a secrets file."""
    return {
        'clientId': VALID_CLIENT_ID,
        'clientSecret': VALID_CLIENT_SECRET,
        'redirectUri': 'https://foo.bar.com',
        'apiUri': 'https://api.dexcom.com'
    }


@pytest.fixture
def valid_options(valid_options_dict) -> DexcomOptions:
    return DexcomOptions.from_dict(valid_options_dict)


@pytest.fixture
def valid_tokens_dict() -> Dict[str, Any]:
    """A token bundle in wire form."""
    return create_test_tokens_dict()


@pytest.fixture
def token_response() -> Dict[str, Any]:
    """A token endpoint response body."""
    return {
        'access_token': 'new opaque access token',
        'expires_in': 7200,
        'token_type': 'Bearer',
        'refresh_token': 'new opaque refresh token'
    }


@pytest.fixture
def mock_oauth_client(token_response):
    """Create a mock Dexcom OAuth client."""
    client = Mock(spec=DexcomOAuthClient)
    client.base_url = "https://sandbox-api.dexcom.com"
    client.refresh = AsyncMock(return_value=token_response)
    client.authorize = AsyncMock(return_value=token_response)
    client.close = AsyncMock()
    return client


# Helper functions for tests
def create_test_tokens_dict(timestamp: Optional[int] = 10000, **token_overrides) -> Dict[str, Any]:
    """Create a token bundle dict with optional overrides."""
    token = {
        'access_token': 'some opaque access token',
        'expires_in': 7200,
        'token_type': 'Bearer',
        'refresh_token': 'some opaque refresh token',
    }
    token.update(token_overrides)
    bundle = {'dexcomOAuthToken': token}
    if timestamp is not None:
        bundle['timestamp'] = timestamp
    return bundle


def create_test_bundle(timestamp: int = 10000, expires_in: int = 7200) -> OAuthTokenBundle:
    """Create a token bundle object."""
    return OAuthTokenBundle(
        timestamp=timestamp,
        dexcom_oauth_token=DexcomOAuthToken(
            access_token='some opaque access token',
            expires_in=expires_in,
            token_type='Bearer',
            refresh_token='some opaque refresh token'
        )
    )


def create_mock_session(status: int = 200, json_data: Any = None, text: str = '',
                        json_error: Optional[Exception] = None, request_error: Optional[Exception] = None):
    """
    Create a mock aiohttp session whose get/post return one canned response.

    MagicMock supports the async context manager protocol, so
    ``async with session.post(...) as response`` yields ``response``.
    """
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=json_data)

    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    for method in (session.get, session.post):
        if request_error is not None:
            method.side_effect = request_error
        else:
            method.return_value.__aenter__.return_value = response
            method.return_value.__aexit__.return_value = False

    return session
