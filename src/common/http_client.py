"""Shared async JSON HTTP client used by every registry client.

Responses are served from a TTL ``ResponseCache`` when possible; concurrent
requests for the same URL and query share one outstanding network call.
Non-2xx responses are never cached and are raised as ``HttpRequestError``
preserving the original status code, so callers can tell a 404 apart from
other failures.
"""
from __future__ import annotations

import asyncio
import json
import logging
import urllib.parse
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import aiohttp

from constants import Constants
from common.cache import ResponseCache
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class ResponseSource(Enum):
    """Where a response came from."""
    ONLINE = "online"
    CACHE = "cache"
    LOCAL = "local"


@dataclass(frozen=True)
class HttpResponse:
    """Successful (2xx) JSON response."""
    status: int
    data: Any
    source: ResponseSource


class HttpRequestError(Exception):
    """A request that did not produce a 2xx JSON response.

    ``status`` is the HTTP status code, or 0 when no response was received.
    """

    kind = "http"

    def __init__(
        self,
        status: int,
        *,
        source: ResponseSource = ResponseSource.ONLINE,
        data: Any = None,
        url: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.status = status
        self.source = source
        self.data = data
        self.url = url
        self.reason = reason or f"HTTP {status}"
        super().__init__(f"{self.reason} ({safe_url(url) if url else 'unknown url'})")

    @property
    def is_not_found(self) -> bool:
        """True for a 404 response."""
        return self.status == 404

    @property
    def is_transient(self) -> bool:
        """True for failures worth retrying later (no response, or 5xx)."""
        return self.status == 0 or self.status >= 500


class HttpTimeoutError(HttpRequestError):
    """The request did not complete within its bounded wait."""

    kind = "timeout"


class HttpConnectionError(HttpRequestError):
    """The request failed before any response was received."""

    kind = "connection"


def build_cache_key(url: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Build the cache/in-flight key from the normalized URL and sorted query."""
    parts = urllib.parse.urlsplit(url.strip())
    path = parts.path or "/"
    pairs = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    if query:
        pairs.extend((str(k), str(v)) for k, v in query.items())
    normalized = urllib.parse.urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, urllib.parse.urlencode(sorted(pairs)), "")
    )
    return f"GET:{normalized}"


class _PendingRequest:
    """An in-flight request and the number of callers awaiting it."""

    def __init__(self, task: "asyncio.Future[HttpResponse]"):
        self.task = task
        self.waiters = 0


class JsonHttpClient:
    """GET JSON documents with caching and in-flight request sharing."""

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        *,
        timeout: int = Constants.REQUEST_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            cache: Shared response cache; a private one is created if omitted.
            timeout: Default per-request timeout in seconds.
            headers: Headers sent with every request.
            session: Pre-built session (tests inject a stub here).
        """
        self._cache = cache if cache is not None else ResponseCache(
            default_ttl=Constants.HTTP_CACHE_TTL_SEC,
            max_entries=Constants.HTTP_CACHE_MAX_ENTRIES,
        )
        self._timeout = timeout
        self._headers = {"Accept": "application/json", "User-Agent": Constants.USER_AGENT}
        if headers:
            self._headers.update(headers)
        self._session = session
        self._owns_session = session is None
        self._pending: Dict[str, _PendingRequest] = {}

    @property
    def cache(self) -> ResponseCache:
        """The response cache backing this client."""
        return self._cache

    def pending_count(self) -> int:
        """Number of distinct requests currently in flight."""
        return len(self._pending)

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                connector=aiohttp.TCPConnector(limit=100),
            )
            self._owns_session = True

    async def stop(self) -> None:
        """Stop the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "JsonHttpClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def request_json(
        self,
        url: str,
        query: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        cache_ttl: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """GET ``url`` and return the parsed JSON body.

        Raises:
            HttpRequestError: non-2xx status, undecodable body or transport failure.
            HttpTimeoutError: the bounded wait elapsed.
        """
        key = build_cache_key(url, query)

        cached = self._cache.get(key)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP cache hit",
                    extra=extra_context(
                        event="cache_hit", component="http_client", action="GET", target=safe_url(url)
                    ),
                )
            status, data = cached
            return HttpResponse(status=status, data=data, source=ResponseSource.CACHE)

        pending = self._pending.get(key)
        if pending is None:
            task = asyncio.ensure_future(self._fetch(key, url, query, headers, cache_ttl, timeout))
            pending = _PendingRequest(task)
            self._pending[key] = pending
            task.add_done_callback(lambda t, k=key, p=pending: self._release_pending(k, p, t))
        elif is_debug_enabled(logger):
            logger.debug(
                "Joining in-flight request",
                extra=extra_context(
                    event="request_shared", component="http_client", action="GET", target=safe_url(url)
                ),
            )

        pending.waiters += 1
        try:
            return await asyncio.shield(pending.task)
        finally:
            pending.waiters -= 1
            if pending.waiters == 0 and not pending.task.done():
                # Last interested caller went away; abandon the network call.
                # Unregister first so a new caller for this key starts a fresh fetch.
                if self._pending.get(key) is pending:
                    del self._pending[key]
                pending.task.cancel()

    def _release_pending(self, key: str, pending: _PendingRequest, task: asyncio.Future) -> None:
        if self._pending.get(key) is pending:
            del self._pending[key]
        if not task.cancelled():
            # Mark the exception retrieved; waiters already received it.
            task.exception()

    async def _fetch(
        self,
        key: str,
        url: str,
        query: Optional[Mapping[str, Any]],
        headers: Optional[Dict[str, str]],
        cache_ttl: Optional[int],
        timeout: Optional[float],
    ) -> HttpResponse:
        if self._session is None:
            await self.start()
        assert self._session is not None

        request_headers = dict(self._headers)
        if headers:
            request_headers.update(headers)
        effective_timeout = timeout if timeout is not None else self._timeout
        safe_target = safe_url(url)

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request", component="http_client", action="GET", target=safe_target
                    ),
                )
            try:
                response = await self._session.request(
                    "GET",
                    url,
                    params=dict(query) if query else None,
                    headers=request_headers,
                    timeout=aiohttp.ClientTimeout(total=effective_timeout),
                )
                try:
                    status = response.status
                    text = await response.text()
                except UnicodeDecodeError as exc:
                    logger.warning("Undecodable response body from %s", safe_target)
                    raise HttpRequestError(
                        status, url=url, reason="invalid body encoding"
                    ) from exc
                finally:
                    response.release()
            except asyncio.TimeoutError as exc:
                logger.warning("Request timed out after %s seconds: %s", effective_timeout, safe_target)
                raise HttpTimeoutError(
                    0, url=url, reason=f"timed out after {effective_timeout} seconds"
                ) from exc
            except aiohttp.ClientError as exc:
                logger.warning("Connection error for %s: %s", safe_target, exc)
                raise HttpConnectionError(0, url=url, reason=f"connection error: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )

        if not 200 <= status < 300:
            raise HttpRequestError(status, data=text, url=url)

        try:
            data = json.loads(text) if text else None
        except json.JSONDecodeError as exc:
            raise HttpRequestError(status, data=text, url=url, reason="invalid JSON body") from exc

        self._cache.set(key, (status, data), cache_ttl)
        return HttpResponse(status=status, data=data, source=ResponseSource.ONLINE)
