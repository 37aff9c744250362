"""
Shared aiohttp plumbing for the Dexcom clients.

One session per client, reused across calls. Every request is a single
attempt; failures of any kind are raised as UpstreamError.
"""

import asyncio
from typing import Optional, Dict, Any

import aiohttp

from .errors import UpstreamError
from .logging.logger import get_logger

logger = get_logger(__name__)


class DexcomHttpClient:
    """Base class owning the HTTP session and the error mapping."""

    def __init__(self, base_url: str, timeout: int = 30):
        """
        Args:
            base_url: Dexcom API base URI (production or sandbox)
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if not self._session or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request_json(self, method: str, url: str, operation: str, **kwargs) -> Dict[str, Any]:
        """
        Send one request and decode a JSON body.

        Args:
            method: 'get' or 'post'
            url: Absolute request URL
            operation: Name used in log and error messages
            **kwargs: Passed to the aiohttp session method

        Raises:
            UpstreamError: On non-200 status, transport failure, timeout or
                a body that is not JSON
        """
        session = await self._get_session()
        send = getattr(session, method)

        try:
            async with send(url, **kwargs) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(f"{operation} failed", status=response.status, base_url=self.base_url)
                    raise UpstreamError(
                        f"{operation} failed with status {response.status}: {error_text}",
                        status=response.status,
                        body=error_text
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamError(f"{operation} returned a malformed body: {e}",
                                        status=response.status) from e

        except asyncio.TimeoutError as e:
            logger.warning(f"{operation} timed out", base_url=self.base_url, timeout=self.timeout)
            raise UpstreamError(f"{operation} timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            logger.error(f"{operation} client error", base_url=self.base_url, error=str(e))
            raise UpstreamError(f"{operation} client error: {e}") from e
