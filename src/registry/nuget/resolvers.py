"""NuGet v3 capability resolvers.

Each resolver knows how to read a package's version list from one kind of
service advertised in a NuGet service index. ``RESOLVER_TABLE`` lists every
capability type this client understands, most preferred first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from common.http_client import HttpResponse
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from common.results import Err, Ok, Result, gather_settled
from registry.base import VersionListing

logger = logging.getLogger(__name__)

GetJson = Callable[[str, Optional[Mapping[str, Any]]], Awaitable[HttpResponse]]

CATALOG_PAGE_TYPE = "catalog:CatalogPage"


class CapabilityKind(Enum):
    """Family of NuGet services that can list package versions."""
    PACKAGE_BASE_ADDRESS = "package_base_address"
    SEARCH_AUTOCOMPLETE = "search_autocomplete"
    REGISTRATIONS = "registrations"


@dataclass(frozen=True)
class ResolverDescriptor:
    """Static entry of the resolver table; lower ``priority`` is preferred."""
    capability_type: str
    priority: int
    kind: CapabilityKind


def _table() -> Tuple[ResolverDescriptor, ...]:
    ordered = [
        ("PackageBaseAddress/3.0.0", CapabilityKind.PACKAGE_BASE_ADDRESS),
        ("SearchAutocompleteService", CapabilityKind.SEARCH_AUTOCOMPLETE),
        ("SearchAutocompleteService/3.0.0-beta", CapabilityKind.SEARCH_AUTOCOMPLETE),
        ("SearchAutocompleteService/3.0.0-rc", CapabilityKind.SEARCH_AUTOCOMPLETE),
        ("RegistrationsBaseUrl", CapabilityKind.REGISTRATIONS),
        ("RegistrationsBaseUrl/3.0.0-beta", CapabilityKind.REGISTRATIONS),
        ("RegistrationsBaseUrl/3.0.0-rc", CapabilityKind.REGISTRATIONS),
        ("RegistrationsBaseUrl/3.4.0", CapabilityKind.REGISTRATIONS),
        ("RegistrationsBaseUrl/3.6.0", CapabilityKind.REGISTRATIONS),
    ]
    return tuple(
        ResolverDescriptor(capability_type=name, priority=index, kind=kind)
        for index, (name, kind) in enumerate(ordered)
    )


RESOLVER_TABLE: Tuple[ResolverDescriptor, ...] = _table()


def _join(service_url: str, *parts: str) -> str:
    return "/".join([service_url.rstrip("/")] + [p.strip("/") for p in parts])


def _drop_prereleases(versions: List[str], include_prerelease: bool) -> List[str]:
    if include_prerelease:
        return versions
    return [v for v in versions if "-" not in v]


def _listing(versions: List[str], response: HttpResponse) -> VersionListing:
    return VersionListing(versions=tuple(versions), status=response.status, source=response.source)


async def fetch_package_base_address(
    get_json: GetJson, service_url: str, name: str, include_prerelease: bool
) -> Result[VersionListing]:
    """Flat container lookup: ``{service}/{id}/index.json``."""
    response = await get_json(_join(service_url, name.lower(), "index.json"), None)
    data = response.data if isinstance(response.data, dict) else {}
    raw = data.get("versions")
    if not isinstance(raw, list):
        return Err.not_found("no versions in flat container", response.source)
    versions = _drop_prereleases([v for v in raw if isinstance(v, str)], include_prerelease)
    if not versions:
        return Err.not_found("no versions in flat container", response.source)
    return Ok(_listing(versions, response))


async def fetch_search_autocomplete(
    get_json: GetJson, service_url: str, name: str, include_prerelease: bool
) -> Result[VersionListing]:
    """Autocomplete lookup; the prerelease flag is passed to the server."""
    query = {
        "id": name,
        "prerelease": "true" if include_prerelease else "false",
        "semVerLevel": "2.0.0",
    }
    response = await get_json(service_url, query)
    data = response.data if isinstance(response.data, dict) else {}
    if not data.get("totalHits"):
        return Err.not_found("autocomplete returned no hits", response.source)
    versions = [v for v in data.get("data") or [] if isinstance(v, str)]
    if not versions:
        return Err.not_found("autocomplete returned no versions", response.source)
    return Ok(_listing(versions, response))


def _page_versions(page: Dict[str, Any]) -> List[str]:
    versions = []
    for item in page.get("items") or []:
        entry = item.get("catalogEntry") if isinstance(item, dict) else None
        if isinstance(entry, dict) and isinstance(entry.get("version"), str):
            versions.append(entry["version"])
    return versions


async def _fetch_page(get_json: GetJson, page_url: str, include_prerelease: bool) -> List[str]:
    response = await get_json(page_url, None)
    page = response.data if isinstance(response.data, dict) else {}
    return _drop_prereleases(_page_versions(page), include_prerelease)


async def fetch_registrations(
    get_json: GetJson, service_url: str, name: str, include_prerelease: bool
) -> Result[VersionListing]:
    """Registration index lookup, following catalog pages that are not inlined.

    A page that fails to load is skipped; the lookup fails only when every
    remote page failed and no inline page produced versions.
    """
    response = await get_json(_join(service_url, name.lower(), "index.json"), None)
    data = response.data if isinstance(response.data, dict) else {}
    if not data.get("count"):
        return Err.not_found("registration index is empty", response.source)

    versions: List[str] = []
    remote_pages: List[str] = []
    for page in data.get("items") or []:
        if not isinstance(page, dict) or page.get("@type") != CATALOG_PAGE_TYPE:
            continue
        if page.get("items"):
            versions.extend(_drop_prereleases(_page_versions(page), include_prerelease))
        elif isinstance(page.get("@id"), str):
            remote_pages.append(page["@id"])

    if remote_pages:
        results = await gather_settled(
            _fetch_page(get_json, url, include_prerelease) for url in remote_pages
        )
        failed: List[Err] = []
        for url, result in zip(remote_pages, results):
            if isinstance(result, Err):
                logger.warning("Skipping registration page %s: %s", safe_url(url), result.reason)
                failed.append(result)
            else:
                versions.extend(result.value)
        if len(failed) == len(remote_pages) and not versions:
            return failed[0]

    if is_debug_enabled(logger):
        logger.debug(
            "Registration pages read",
            extra=extra_context(
                event="registrations_read",
                component="nuget_resolver",
                action="fetch_registrations",
                target=safe_url(service_url),
                count=len(versions),
                package_manager="nuget",
            ),
        )

    if not versions:
        return Err.not_found("registration pages list no versions", response.source)
    return Ok(_listing(versions, response))


FETCHERS = {
    CapabilityKind.PACKAGE_BASE_ADDRESS: fetch_package_base_address,
    CapabilityKind.SEARCH_AUTOCOMPLETE: fetch_search_autocomplete,
    CapabilityKind.REGISTRATIONS: fetch_registrations,
}
