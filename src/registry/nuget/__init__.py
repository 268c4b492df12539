"""NuGet registry package.

This package provides NuGet support:
- resolvers.py: capability table and per-capability version fetchers
- discovery.py: service index reading and resolver selection
- client.py: NuGetClient tying discovery and resolvers together
"""

from .client import NuGetClient  # noqa: F401
from .discovery import DiscoveredEndpoint, discover_endpoint, select_resolver  # noqa: F401
from .resolvers import RESOLVER_TABLE, CapabilityKind, ResolverDescriptor  # noqa: F401

__all__ = [
    "NuGetClient",
    "DiscoveredEndpoint",
    "discover_endpoint",
    "select_resolver",
    "RESOLVER_TABLE",
    "CapabilityKind",
    "ResolverDescriptor",
]
