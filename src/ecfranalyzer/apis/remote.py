"""
HTTP fetch layer with response caching, bounded retry and streaming bodies.

RemoteDataClient is the only component that talks to the network. It wraps a
single httpx.AsyncClient and adds the two behaviors every eCFR request needs:

    1. Caching: whole-buffer responses go through a shared ResponseCache, so a
       repeated request within the TTL never leaves the process, and
       concurrent requests for the same resource collapse into one.
    2. Retry: transport errors and non-2xx responses are retried up to
       max_attempts total attempts with a linearly increasing delay
       (1x, 2x, 3x the base backoff). Each failure logs how many retries are
       left. When attempts run out the whole-buffer fetch raises
       TransientFetchError and the caller decides what to do.

Full title XML can run to tens of megabytes, so fetch_stream() returns a
ContentStream that yields the body chunk by chunk and is never cached. A
stream that cannot be opened after all retries does not raise: it yields a
small placeholder document instead and marks itself degraded, so best-effort
consumers such as word counting always receive a value. The degraded flag and
a WARNING log line are how operators tell that placeholder apart from real
content.

Python Learning Notes:
    - async with / async for drive httpx's asynchronous streaming API
    - An async generator (async def with yield) is consumed with async for
    - raise ... from e keeps the original httpx error as __cause__
    - asyncio.sleep() yields to other tasks while backing off
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..errors import MalformedContent, TransientFetchError
from .cache import ResponseCache

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = b"<CONTENT>Content temporarily unavailable</CONTENT>"


class ContentStream:
    """
    Asynchronous iterator over the byte chunks of one remote document.

    Instances are created by RemoteDataClient.fetch_stream() and can be
    iterated once. Opening the stream is retried like any other request; if
    every attempt fails, the stream yields its placeholder bytes instead and
    sets degraded to True. A failure after real chunks have already been
    delivered cannot be healed (the consumer has seen a partial body), so it
    raises TransientFetchError.

    Attributes:
        url (str): Absolute URL being streamed.
        degraded (bool): True once the placeholder has been served.
        bytes_read (int): Bytes of real content delivered so far.
    """

    def __init__(
        self,
        client: "RemoteDataClient",
        url: str,
        params: Optional[Dict[str, Any]],
        placeholder: bytes,
        chunk_size: int,
    ):
        self._client = client
        self.url = url
        self._params = params
        self._placeholder = placeholder
        self._chunk_size = chunk_size
        self.degraded = False
        self.bytes_read = 0

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        max_attempts = self._client.max_attempts
        attempt = 0

        while attempt < max_attempts:
            attempt += 1
            delivered = False
            try:
                async with self._client.http.stream(
                    "GET", self.url, params=self._params
                ) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(self._chunk_size):
                        if not chunk:
                            continue
                        delivered = True
                        self.bytes_read += len(chunk)
                        yield chunk
                return
            except httpx.HTTPError as e:
                if delivered:
                    raise TransientFetchError(
                        f"Stream for {self.url} failed after {self.bytes_read} bytes: {e}",
                        resource=self.url,
                        attempts=attempt,
                    ) from e
                remaining = max_attempts - attempt
                logger.warning(
                    f"Error streaming {self.url} ({remaining} retries left): {e}"
                )
                if remaining > 0:
                    await asyncio.sleep(self._client.backoff_delay(attempt))

        self.degraded = True
        logger.warning(
            f"Serving placeholder content for {self.url} after {max_attempts} "
            f"failed attempts (degraded)"
        )
        yield self._placeholder


class RemoteDataClient:
    """
    Cached, retrying HTTP client for a versioned document API.

    The client owns one httpx.AsyncClient for its lifetime and one
    ResponseCache, which may be shared with other clients by passing it in.
    Use it as an async context manager, or call aclose() when done.

    Attributes:
        base_url (str): Prefix for relative resource paths, no trailing slash.
        cache (ResponseCache): Shared response cache.
        max_attempts (int): Total attempts per request, including the first.
        backoff_base (float): Base delay in seconds between attempts.
        http (httpx.AsyncClient): Underlying HTTP client.

    Example Usage:
        >>> async with RemoteDataClient("https://www.ecfr.gov") as client:
        ...     data = await client.fetch("/api/versioner/v1/titles.json")
        ...     stream = client.fetch_stream("/api/versioner/v1/full/2024-05-01/title-1.xml")
        ...     async for chunk in stream:
        ...         handle(chunk)
    """

    def __init__(
        self,
        base_url: str,
        cache: Optional[ResponseCache] = None,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else ResponseCache()
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.http = http_client or httpx.AsyncClient(
            timeout=timeout, headers=headers, follow_redirects=True
        )

    async def __aenter__(self) -> "RemoteDataClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def build_url(self, resource: str) -> str:
        """Resolve a resource path against base_url; absolute URLs pass through."""
        if resource.startswith(("http://", "https://")):
            return resource
        if not resource.startswith("/"):
            resource = "/" + resource
        return f"{self.base_url}{resource}"

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the attempt following attempt number `attempt`."""
        return self.backoff_base * attempt

    async def fetch(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        response_format: str = "json",
    ) -> Any:
        """
        Fetch a resource, serving it from the cache when fresh.

        Args:
            resource (str): Path relative to base_url, or an absolute URL.
            params (Optional[Dict[str, Any]]): Query parameters.
            response_format (str): "json" for a parsed body, "text" for the
                decoded body as a string.

        Returns:
            Any: Parsed JSON or text.

        Raises:
            TransientFetchError: When every attempt failed.
            MalformedContent: When a 2xx JSON response cannot be parsed.
            ValueError: For an unknown response_format.
        """
        if response_format not in ("json", "text"):
            raise ValueError(f"Unsupported response_format: {response_format}")

        url = self.build_url(resource)
        key = ResponseCache.make_key(url, params, response_format)
        return await self.cache.get_or_fetch(
            key, lambda: self._request_with_retry(url, params, response_format)
        )

    async def _request_with_retry(
        self, url: str, params: Optional[Dict[str, Any]], response_format: str
    ) -> Any:
        """
        Perform a GET with bounded retry and linear backoff.

        Both httpx.TransportError (DNS, connect, read timeouts) and
        httpx.HTTPStatusError (any non-2xx) count as failed attempts.
        """
        last_error: Optional[httpx.HTTPError] = None
        status_code: Optional[int] = None
        attempt = 0

        while attempt < self.max_attempts:
            attempt += 1
            try:
                logger.debug(f"Fetching: {url} (attempt {attempt}/{self.max_attempts})")
                response = await self.http.get(url, params=params)
                response.raise_for_status()
                break
            except httpx.HTTPError as e:
                last_error = e
                if isinstance(e, httpx.HTTPStatusError):
                    status_code = e.response.status_code
                remaining = self.max_attempts - attempt
                logger.warning(f"Error fetching {url} ({remaining} retries left): {e}")
                if remaining > 0:
                    await asyncio.sleep(self.backoff_delay(attempt))
        else:
            logger.error(f"Failed to fetch {url} after {self.max_attempts} attempts")
            raise TransientFetchError(
                f"Failed to fetch {url} after {self.max_attempts} attempts: {last_error}",
                resource=url,
                attempts=self.max_attempts,
                status_code=status_code,
            ) from last_error

        if response_format == "text":
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise MalformedContent(f"Response from {url} is not valid JSON: {e}") from e

    def fetch_stream(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        placeholder: Optional[bytes] = None,
        chunk_size: int = 64 * 1024,
    ) -> ContentStream:
        """
        Stream a resource's body without buffering or caching it.

        Args:
            resource (str): Path relative to base_url, or an absolute URL.
            params (Optional[Dict[str, Any]]): Query parameters.
            placeholder (Optional[bytes]): Bytes served if the stream cannot
                be opened. Defaults to a minimal "unavailable" document.
            chunk_size (int): Preferred chunk size in bytes.

        Returns:
            ContentStream: Iterate it with async for; check .degraded after.
        """
        return ContentStream(
            client=self,
            url=self.build_url(resource),
            params=params,
            placeholder=placeholder if placeholder is not None else DEFAULT_PLACEHOLDER,
            chunk_size=chunk_size,
        )
