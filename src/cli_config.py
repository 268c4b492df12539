"""Resolver configuration loading for the CLI.

Sources in increasing precedence: built-in defaults, the YAML/JSON config
file, ``VERLENS_<ECOSYSTEM>_TOKEN`` environment variables, CLI flags.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional

import yaml

from constants import Constants
from versioning.config import ProviderConfig, ResolverConfig
from versioning.models import Ecosystem

logger = logging.getLogger(__name__)


def _load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML (or ``.json``) config file into a dict.

    A missing file logs a warning and yields an empty dict; a file that does
    not parse raises ``ValueError``.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    with open(config_path, "r", encoding="utf-8") as fh:
        try:
            if config_path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ValueError(f"Invalid config file {config_path}: {exc}") from exc

    return data if isinstance(data, dict) else {}


def _env_token(ecosystem: Ecosystem, env: Mapping[str, str]) -> Optional[str]:
    name = Constants.TOKEN_ENV_TEMPLATE.format(ecosystem=ecosystem.value.upper())
    token = env.get(name)
    return token.strip() if token and token.strip() else None


def load_resolver_config(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ResolverConfig:
    """Build a ``ResolverConfig`` from a config file and the environment.

    Expected file layout::

        providers:
          nuget:
            registry_urls: [https://api.nuget.org/v3/index.json]
            include_prerelease: false
          npm:
            auth_token: ...

    Raises:
        ValueError: the config file cannot be parsed.
    """
    env = os.environ if env is None else env
    data = _load_config_file(config_path)
    sections = data.get("providers") or {}
    if not isinstance(sections, dict):
        logger.warning("Ignoring malformed 'providers' section in %s", config_path)
        sections = {}

    providers: Dict[Ecosystem, ProviderConfig] = {}
    for ecosystem in Ecosystem:
        section = sections.get(ecosystem.value)
        if isinstance(section, dict):
            provider = ProviderConfig.from_dict(ecosystem, section)
        else:
            provider = ProviderConfig.default(ecosystem)
        token = _env_token(ecosystem, env)
        if token:
            provider = replace(provider, auth_token=token)
        providers[ecosystem] = provider

    unknown = sorted(set(sections) - {e.value for e in Ecosystem})
    if unknown:
        logger.warning("Ignoring unknown providers in config: %s", ", ".join(unknown))

    return ResolverConfig(providers=providers)


def apply_cli_overrides(config: ResolverConfig, args, ecosystem: Optional[Ecosystem] = None) -> ResolverConfig:
    """Apply ``--timeout``, ``--cache-ttl``, ``--no-prerelease`` and ``--registry``.

    ``--registry`` only applies to ``ecosystem`` (the ``-t`` type); the other
    flags apply to every provider.
    """
    timeout = getattr(args, "TIMEOUT", None)
    cache_ttl = getattr(args, "CACHE_TTL", None)
    no_prerelease = getattr(args, "NO_PRERELEASE", False)
    registries = getattr(args, "REGISTRY", None) or []

    for provider in list(config.providers.values()):
        updated = provider
        if timeout is not None:
            updated = replace(updated, timeout=int(timeout))
        if cache_ttl is not None:
            updated = replace(updated, cache_ttl=int(cache_ttl))
        if no_prerelease:
            updated = replace(updated, include_prerelease=False)
        if registries and provider.ecosystem == ecosystem:
            updated = replace(updated, registry_urls=list(registries))
        if updated is not provider:
            config = config.with_provider(updated)
    return config
