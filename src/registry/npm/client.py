"""npm registry client: the package document lists every published version."""
from __future__ import annotations

from typing import Any, Iterable

from common.results import Result
from versioning.models import Ecosystem
from registry.base import PackageClient, VersionListing


def encode_package_name(name: str) -> str:
    """Escape the scope separator so ``@scope/pkg`` stays one path segment."""
    return name.replace("/", "%2f")


def _version_keys(data: Any) -> Iterable[str]:
    return list(data["versions"].keys())


class NpmClient(PackageClient):
    """Single-endpoint lookup against an npm-compatible registry."""

    ecosystem = Ecosystem.NPM

    async def fetch_versions(self, name: str) -> Result[VersionListing]:
        url = f"{self.config.primary_url().rstrip('/')}/{encode_package_name(name)}"
        return await self.fetch_direct(url, None, _version_keys)
