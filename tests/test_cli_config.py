"""Tests for resolver configuration loading and CLI overrides."""

import argparse
import json

import pytest

from cli_config import apply_cli_overrides, load_resolver_config
from constants import Constants
from versioning.models import Ecosystem


def _args(**overrides):
    values = {"TIMEOUT": None, "CACHE_TTL": None, "NO_PRERELEASE": False, "REGISTRY": None}
    values.update(overrides)
    return argparse.Namespace(**values)


class TestLoadResolverConfig:
    """Tests for load_resolver_config."""

    def test_defaults_without_file(self):
        """Every ecosystem gets its public registry."""
        config = load_resolver_config(None, env={})
        assert config.for_ecosystem(Ecosystem.NUGET).registry_urls == [Constants.REGISTRY_URL_NUGET_V3]
        assert config.for_ecosystem(Ecosystem.NPM).timeout == Constants.REQUEST_TIMEOUT
        assert config.for_ecosystem(Ecosystem.PUB).include_prerelease is True

    def test_missing_file_logs_warning(self, tmp_path, caplog):
        """A missing config file falls back to defaults."""
        config = load_resolver_config(str(tmp_path / "absent.yml"), env={})
        assert config.for_ecosystem(Ecosystem.DUB).registry_urls == [Constants.REGISTRY_URL_DUB]
        assert "Config file not found" in caplog.text

    def test_yaml_file(self, tmp_path):
        """Provider sections override defaults."""
        path = tmp_path / "verlens.yml"
        path.write_text(
            "providers:\n"
            "  nuget:\n"
            "    registry_urls:\n"
            "      - https://nuget.example/v3/index.json\n"
            "      - https://api.nuget.org/v3/index.json\n"
            "    include_prerelease: false\n"
            "    cache_ttl: 60\n"
            "  npm:\n"
            "    registries: https://npm.example\n"
            "    auth_token: from-file\n"
        )
        config = load_resolver_config(str(path), env={})
        nuget = config.for_ecosystem(Ecosystem.NUGET)
        assert nuget.registry_urls[0] == "https://nuget.example/v3/index.json"
        assert nuget.include_prerelease is False
        assert nuget.cache_ttl == 60
        npm = config.for_ecosystem(Ecosystem.NPM)
        assert npm.registry_urls == ["https://npm.example"]
        assert npm.auth_headers() == {"Authorization": "Bearer from-file"}

    def test_json_file(self, tmp_path):
        """.json files are read with the json module."""
        path = tmp_path / "verlens.json"
        path.write_text(json.dumps({"providers": {"dub": {"timeout": 5}}}))
        config = load_resolver_config(str(path), env={})
        assert config.for_ecosystem(Ecosystem.DUB).timeout == 5

    def test_env_token_wins(self, tmp_path):
        """VERLENS_<ECOSYSTEM>_TOKEN overrides the file token."""
        path = tmp_path / "verlens.yml"
        path.write_text("providers:\n  npm:\n    auth_token: from-file\n")
        config = load_resolver_config(str(path), env={"VERLENS_NPM_TOKEN": "from-env"})
        assert config.for_ecosystem(Ecosystem.NPM).auth_token == "from-env"

    def test_invalid_yaml(self, tmp_path):
        """Unparseable files raise ValueError."""
        path = tmp_path / "verlens.yml"
        path.write_text("providers: [unclosed\n")
        with pytest.raises(ValueError):
            load_resolver_config(str(path), env={})


class TestApplyCliOverrides:
    """Tests for apply_cli_overrides."""

    def test_global_flags(self):
        """Timeout, TTL and prerelease flags apply to every provider."""
        config = apply_cli_overrides(
            load_resolver_config(None, env={}),
            _args(TIMEOUT=3, CACHE_TTL=0, NO_PRERELEASE=True),
        )
        for ecosystem in Ecosystem:
            provider = config.for_ecosystem(ecosystem)
            assert provider.timeout == 3
            assert provider.cache_ttl == 0
            assert provider.include_prerelease is False

    def test_registry_applies_to_selected_type(self):
        """--registry only changes the selected ecosystem."""
        config = apply_cli_overrides(
            load_resolver_config(None, env={}),
            _args(REGISTRY=["https://a/index.json", "https://b/index.json"]),
            Ecosystem.NUGET,
        )
        assert config.for_ecosystem(Ecosystem.NUGET).registry_urls == [
            "https://a/index.json", "https://b/index.json",
        ]
        assert config.for_ecosystem(Ecosystem.NPM).registry_urls == [Constants.REGISTRY_URL_NPM]
