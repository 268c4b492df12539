"""Pub (Dart) registry client."""
from __future__ import annotations

import urllib.parse
from typing import Any, List

from common.results import Result
from versioning.models import Ecosystem
from registry.base import PackageClient, VersionListing


def _versions(data: Any) -> List[str]:
    return [entry["version"] for entry in data["versions"]]


class PubClient(PackageClient):
    """Single-endpoint lookup: ``GET {url}/api/packages/{name}``."""

    ecosystem = Ecosystem.PUB

    async def fetch_versions(self, name: str) -> Result[VersionListing]:
        encoded = urllib.parse.quote(name, safe="")
        url = f"{self.config.primary_url().rstrip('/')}/api/packages/{encoded}"
        return await self.fetch_direct(url, None, _versions)
