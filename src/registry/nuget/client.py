"""NuGet registry client: service index discovery plus resolver fan-out."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from common.results import Err, Ok, Result, gather_settled
from versioning.config import ConfigurationError
from versioning.models import Ecosystem
from versioning.normalizer import highest_version
from registry.base import PackageClient, VersionListing

from .discovery import DiscoveredEndpoint, discover_endpoint
from .resolvers import FETCHERS

logger = logging.getLogger(__name__)


class NuGetClient(PackageClient):
    """Resolve NuGet versions across every configured service index.

    Each index is read concurrently and contributes its most preferred
    resolver. Resolvers run concurrently; the listing reporting the newest
    version is used as is, never merged with the others.
    """

    ecosystem = Ecosystem.NUGET

    async def discover(self) -> Tuple[List[DiscoveredEndpoint], List[Err]]:
        """Read every configured service index.

        Returns:
            (endpoints, failures); an index with no known capability is in neither.

        Raises:
            ConfigurationError: no service index URL is configured.
        """
        urls = self.config.usable_urls()
        if not urls:
            raise ConfigurationError("No NuGet service index configured")

        results = await gather_settled(discover_endpoint(self.get_json, url) for url in urls)
        endpoints: List[DiscoveredEndpoint] = []
        failures: List[Err] = []
        for result in results:
            if isinstance(result, Err):
                failures.append(result)
            elif result.value is not None:
                endpoints.append(result.value)
        return endpoints, failures

    async def _run(self, endpoint: DiscoveredEndpoint, name: str) -> Result[VersionListing]:
        fetcher = FETCHERS[endpoint.resolver.kind]
        return await fetcher(self.get_json, endpoint.service_url, name, self.config.include_prerelease)

    async def fetch_versions(self, name: str) -> Result[VersionListing]:
        with Timer() as timer:
            endpoints, failures = await self.discover()
            if not endpoints:
                return _failure(failures, "no usable NuGet service index")

            results = await gather_settled(self._run(endpoint, name) for endpoint in endpoints)
            candidates: List[Tuple[DiscoveredEndpoint, VersionListing]] = []
            for endpoint, result in zip(endpoints, results):
                if isinstance(result, Err):
                    failures.append(result)
                elif result.value.versions:
                    candidates.append((endpoint, result.value))

        if not candidates:
            return _failure(failures, f"package {name} not found")

        endpoint, listing = _pick(candidates)
        if is_debug_enabled(logger):
            logger.debug(
                "Resolver selected",
                extra=extra_context(
                    event="decision",
                    component="client",
                    action="select_listing",
                    target=safe_url(endpoint.service_url),
                    outcome=endpoint.resolver.capability_type,
                    count=len(listing.versions),
                    duration_ms=timer.duration_ms(),
                    package_manager="nuget",
                ),
            )
        return Ok(listing)


def _pick(
    candidates: List[Tuple[DiscoveredEndpoint, VersionListing]]
) -> Tuple[DiscoveredEndpoint, VersionListing]:
    """Prefer the listing whose highest version is newest.

    Ties go to the more preferred resolver, then to configuration order.
    """
    best: Optional[Tuple[DiscoveredEndpoint, VersionListing]] = None
    best_version: Optional[semantic_version.Version] = None
    for endpoint, listing in candidates:
        top = highest_version(listing.versions)
        version = semantic_version.Version(top) if top else None
        if best is None:
            best, best_version = (endpoint, listing), version
            continue
        if version is None:
            continue
        if (
            best_version is None
            or version > best_version
            or (version == best_version and endpoint.resolver.priority < best[0].resolver.priority)
        ):
            best, best_version = (endpoint, listing), version
    assert best is not None
    return best


def _failure(failures: List[Err], reason: str) -> Err:
    """Total failure is transient if any source failed transiently, else NotFound."""
    for failure in failures:
        if failure.is_transient:
            return failure
    return Err.not_found(reason)
