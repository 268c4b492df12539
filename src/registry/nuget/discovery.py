"""NuGet service index discovery: read advertised resources and pick a resolver."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from common.http_client import HttpRequestError
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from common.results import Err, Ok, Result
from .resolvers import GetJson, RESOLVER_TABLE, ResolverDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredEndpoint:
    """Resolver chosen for one service index."""
    index_url: str
    service_url: str
    resolver: ResolverDescriptor


def select_resolver(resources: Iterable[Any]) -> Optional[ResolverDescriptor]:
    """Return the most preferred descriptor whose capability is advertised.

    Args:
        resources: ``resources`` array of a service index.

    Returns:
        The descriptor, or None if no known capability is present.
    """
    endpoint = _select(resources, "")
    return endpoint.resolver if endpoint else None


def _select(resources: Iterable[Any], index_url: str) -> Optional[DiscoveredEndpoint]:
    advertised = {}
    for resource in resources:
        if not isinstance(resource, dict):
            continue
        capability = resource.get("@type")
        service_url = resource.get("@id")
        if isinstance(capability, str) and isinstance(service_url, str):
            # First advertisement of a capability wins.
            advertised.setdefault(capability, service_url)

    for descriptor in RESOLVER_TABLE:
        if descriptor.capability_type in advertised:
            return DiscoveredEndpoint(
                index_url=index_url,
                service_url=advertised[descriptor.capability_type],
                resolver=descriptor,
            )
    return None


async def discover_endpoint(get_json: GetJson, index_url: str) -> Result[Optional[DiscoveredEndpoint]]:
    """Fetch one service index and select its resolver.

    Returns:
        Ok(endpoint) or Ok(None) when the index advertises nothing usable;
        Err when the index could not be read.
    """
    try:
        response = await get_json(index_url, None)
    except HttpRequestError as exc:
        logger.warning("Dropping NuGet service index %s: %s", safe_url(index_url), exc.reason)
        return Err.from_error(exc)

    data = response.data if isinstance(response.data, dict) else {}
    resources = data.get("resources")
    if not isinstance(resources, list):
        logger.warning("Dropping NuGet service index %s: no resources listed", safe_url(index_url))
        return Err.not_found("service index lists no resources", response.source)

    endpoint = _select(resources, index_url)
    if is_debug_enabled(logger):
        logger.debug(
            "Service index resolver selection",
            extra=extra_context(
                event="decision",
                component="discovery",
                action="select_resolver",
                target=safe_url(index_url),
                outcome=endpoint.resolver.capability_type if endpoint else "none",
                package_manager="nuget",
            ),
        )
    return Ok(endpoint)
