"""Explicit resolver configuration passed into the service and every client."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from constants import Constants
from .models import Ecosystem


class ConfigurationError(Exception):
    """No usable registry configured for an ecosystem."""


DEFAULT_REGISTRY_URLS: Dict[Ecosystem, List[str]] = {
    Ecosystem.NPM: [Constants.REGISTRY_URL_NPM],
    Ecosystem.NUGET: [Constants.REGISTRY_URL_NUGET_V3],
    Ecosystem.DUB: [Constants.REGISTRY_URL_DUB],
    Ecosystem.PUB: [Constants.REGISTRY_URL_PUB],
}


@dataclass(frozen=True)
class ProviderConfig:
    """Settings for one ecosystem."""

    ecosystem: Ecosystem
    registry_urls: List[str] = field(default_factory=list)
    include_prerelease: bool = True
    cache_ttl: int = Constants.HTTP_CACHE_TTL_SEC
    timeout: int = Constants.REQUEST_TIMEOUT
    auth_token: Optional[str] = None

    @property
    def provider_name(self) -> str:
        return self.ecosystem.value

    def primary_url(self) -> str:
        """Return the first configured registry URL.

        Raises:
            ConfigurationError: no registry URL is configured.
        """
        urls = self.usable_urls()
        if not urls:
            raise ConfigurationError(f"No registry URL configured for {self.ecosystem.value}")
        return urls[0]

    def usable_urls(self) -> List[str]:
        """Configured URLs with blanks removed, order preserved."""
        return [u.strip() for u in self.registry_urls if isinstance(u, str) and u.strip()]

    def auth_headers(self) -> Dict[str, str]:
        if self.auth_token:
            return {"Authorization": f"Bearer {self.auth_token}"}
        return {}

    @classmethod
    def default(cls, ecosystem: Ecosystem) -> "ProviderConfig":
        return cls(ecosystem=ecosystem, registry_urls=list(DEFAULT_REGISTRY_URLS[ecosystem]))

    @classmethod
    def from_dict(cls, ecosystem: Ecosystem, data: Dict[str, Any]) -> "ProviderConfig":
        """Create a provider config from a mapping (e.g. a YAML section).

        Unknown keys are ignored; missing keys keep their defaults.
        """
        base = cls.default(ecosystem)
        urls = data.get("registry_urls", data.get("registries"))
        if isinstance(urls, str):
            urls = [urls]
        return replace(
            base,
            registry_urls=list(urls) if urls is not None else base.registry_urls,
            include_prerelease=bool(data.get("include_prerelease", base.include_prerelease)),
            cache_ttl=int(data.get("cache_ttl", base.cache_ttl)),
            timeout=int(data.get("timeout", base.timeout)),
            auth_token=data.get("auth_token") or base.auth_token,
        )


@dataclass(frozen=True)
class ResolverConfig:
    """Per-ecosystem provider settings."""

    providers: Dict[Ecosystem, ProviderConfig] = field(
        default_factory=lambda: {eco: ProviderConfig.default(eco) for eco in Ecosystem}
    )

    def for_ecosystem(self, ecosystem: Ecosystem) -> ProviderConfig:
        """Return the provider config for ``ecosystem``.

        Raises:
            ConfigurationError: the ecosystem is not configured.
        """
        try:
            return self.providers[ecosystem]
        except KeyError as exc:
            raise ConfigurationError(f"Ecosystem not configured: {ecosystem.value}") from exc

    def with_provider(self, provider: ProviderConfig) -> "ResolverConfig":
        providers = dict(self.providers)
        providers[provider.ecosystem] = provider
        return ResolverConfig(providers=providers)
