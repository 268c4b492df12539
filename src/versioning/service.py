"""Package resolution service: route requests to the ecosystem clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Type, Union

from common.http_client import HttpRequestError, JsonHttpClient, ResponseSource
from common.logging_utils import extra_context, is_debug_enabled, Timer
from registry.base import PackageClient
from registry.dub import DubClient
from registry.npm import NpmClient
from registry.nuget import NuGetClient
from registry.pub import PubClient
from .config import ConfigurationError, ResolverConfig
from .models import Ecosystem, PackageDocument, PackageRequest, ResolutionError

logger = logging.getLogger(__name__)

CLIENT_TYPES: Dict[Ecosystem, Type[PackageClient]] = {
    Ecosystem.NPM: NpmClient,
    Ecosystem.NUGET: NuGetClient,
    Ecosystem.DUB: DubClient,
    Ecosystem.PUB: PubClient,
}

Outcome = Union[PackageDocument, ResolutionError]


class PackageResolutionService:
    """Resolve package requests with one shared HTTP client and cache.

    Every call returns a fresh document; the service keeps no reference to
    documents it has handed out.
    """

    def __init__(self, config: ResolverConfig, http_client: JsonHttpClient):
        self.config = config
        self.http_client = http_client
        self._clients: Dict[Ecosystem, PackageClient] = {}

    def client_for(self, ecosystem: Ecosystem) -> PackageClient:
        """Return the (cached) client for ``ecosystem``.

        Raises:
            ConfigurationError: the ecosystem is unknown or not configured.
        """
        client = self._clients.get(ecosystem)
        if client is None:
            client_type = CLIENT_TYPES.get(ecosystem)
            if client_type is None:
                raise ConfigurationError(f"Unsupported ecosystem: {ecosystem}")
            client = client_type(self.config.for_ecosystem(ecosystem), self.http_client)
            self._clients[ecosystem] = client
        return client

    async def resolve(self, request: PackageRequest) -> PackageDocument:
        """Resolve one request.

        Raises:
            HttpRequestError: transient registry failure.
            ConfigurationError: the ecosystem has no usable registry.
        """
        with Timer() as timer:
            document = await self.client_for(request.ecosystem).fetch_package(request)
        if is_debug_enabled(logger):
            logger.debug(
                "Package resolved",
                extra=extra_context(
                    event="resolved",
                    component="service",
                    action="resolve",
                    target=request.name,
                    outcome=document.suggestion.tag.value,
                    duration_ms=timer.duration_ms(),
                    package_manager=request.ecosystem.value,
                ),
            )
        return document

    async def _settle(self, request: PackageRequest) -> Outcome:
        try:
            return await self.resolve(request)
        except HttpRequestError as exc:
            logger.error("Failed to resolve %s: %s", request.name, exc.reason)
            return ResolutionError(
                name=request.name,
                status=exc.status,
                source=exc.source,
                reason=exc.reason,
                kind=exc.kind,
            )
        except ConfigurationError as exc:
            logger.error("Failed to resolve %s: %s", request.name, exc)
            return ResolutionError(
                name=request.name,
                status=0,
                source=ResponseSource.LOCAL,
                reason=str(exc),
                kind="configuration",
            )

    async def resolve_all(self, requests: Iterable[PackageRequest]) -> List[Outcome]:
        """Resolve requests concurrently; results keep the input order.

        A failing request yields a ``ResolutionError`` in its slot and does
        not affect the others.
        """
        return list(await asyncio.gather(*(self._settle(r) for r in requests)))

    def schedule(self, request: PackageRequest) -> "asyncio.Task[PackageDocument]":
        """Start resolving ``request`` in the background.

        Cancelling the task abandons the resolution; a network call shared
        with other callers keeps running for them.
        """
        return asyncio.ensure_future(self.resolve(request))
