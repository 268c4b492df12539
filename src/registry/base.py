"""Base class shared by the registry package clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from common.http_client import HttpRequestError, HttpResponse, JsonHttpClient, ResponseSource
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from common.results import Err, Ok, Result
from versioning.config import ProviderConfig
from versioning.documents import create_document, create_four_segment, create_not_found
from versioning.models import Ecosystem, PackageDocument, PackageRequest, ResponseStatus, VersionSpecifier
from versioning.normalizer import normalize_versions
from versioning.parser import parse_version_specifier
from versioning.suggestions import create_suggestion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionListing:
    """Raw versions returned by a registry plus the response metadata."""
    versions: Tuple[str, ...]
    status: int
    source: ResponseSource


class PackageClient(ABC):
    """Fetch a package's versions and turn them into a ``PackageDocument``."""

    ecosystem: Ecosystem

    def __init__(self, config: ProviderConfig, http: JsonHttpClient):
        self.config = config
        self.http = http

    @property
    def provider(self) -> str:
        return self.config.provider_name

    def parse_specifier(self, raw_spec: str) -> VersionSpecifier:
        return parse_version_specifier(raw_spec, self.ecosystem)

    @abstractmethod
    async def fetch_versions(self, name: str) -> Result[VersionListing]:
        """Return the raw version listing, or an Err (404 for not found).

        Transient failures are raised as ``HttpRequestError``.
        """

    async def fetch_package(self, request: PackageRequest) -> PackageDocument:
        """Resolve ``request`` into a document.

        Raises:
            HttpRequestError: transient failure (timeout, 5xx, network).
            ConfigurationError: no usable registry configured.
        """
        specifier = self.parse_specifier(request.raw_spec)
        if specifier.has_four_segments:
            logger.info("Four-segment version not supported: %s %s", request.name, request.raw_spec)
            return create_four_segment(self.provider, request, specifier)

        result = await self.fetch_versions(request.name)
        if isinstance(result, Err):
            if result.is_not_found:
                logger.info("Package not found in %s registry: %s", self.provider, request.name)
                return create_not_found(
                    self.provider, request, specifier, ResponseStatus(result.status, result.source)
                )
            if result.error is not None:
                raise result.error
            raise HttpRequestError(result.status, source=result.source, reason=result.reason)

        listing = result.value
        partition = normalize_versions(listing.versions)
        suggestion = create_suggestion(specifier, partition)
        return create_document(
            self.provider,
            request,
            specifier,
            partition,
            suggestion,
            ResponseStatus(listing.status, listing.source),
        )

    async def get_json(self, url: str, query: Optional[Mapping[str, Any]] = None) -> HttpResponse:
        """GET JSON with this provider's auth, TTL and timeout."""
        return await self.http.request_json(
            url,
            query,
            headers=self.config.auth_headers() or None,
            cache_ttl=self.config.cache_ttl,
            timeout=self.config.timeout,
        )

    async def fetch_direct(
        self,
        url: str,
        query: Optional[Mapping[str, Any]],
        extract: Callable[[Any], Iterable[str]],
    ) -> Result[VersionListing]:
        """Single-endpoint lookup: one query, 404 maps to NotFound."""
        try:
            response = await self.get_json(url, query)
        except HttpRequestError as exc:
            if exc.is_not_found:
                return Err.from_error(exc)
            raise

        try:
            versions = tuple(v for v in extract(response.data) if isinstance(v, str))
        except (AttributeError, KeyError, TypeError) as exc:
            logger.warning("Unexpected payload from %s: %s", safe_url(url), exc)
            return Err.not_found("unexpected payload", response.source)

        if not self.config.include_prerelease:
            versions = tuple(v for v in versions if "-" not in v)
        if not versions:
            return Err.not_found("no versions published", response.source)

        if is_debug_enabled(logger):
            logger.debug(
                "Versions fetched",
                extra=extra_context(
                    event="versions_fetched",
                    component="client",
                    action="fetch_direct",
                    target=safe_url(url),
                    count=len(versions),
                    package_manager=self.provider,
                ),
            )
        return Ok(VersionListing(versions=versions, status=response.status, source=response.source))
