"""Tests for the NuGet client resolver chain."""

import asyncio
import json

import pytest

from common.http_client import HttpRequestError, JsonHttpClient
from registry.nuget import NuGetClient
from versioning.config import ConfigurationError, ProviderConfig
from versioning.models import Ecosystem, PackageRequest, SuggestionTag

INDEX_A = "https://a.example/v3/index.json"
INDEX_B = "https://b.example/v3/index.json"


class _DummyResponse:
    def __init__(self, status, body):
        self.status = status
        self._text = json.dumps(body)

    async def text(self):
        return self._text

    def release(self):
        pass


class _RoutingSession:
    """Answers GETs by URL; unknown URLs are 404."""

    def __init__(self, routes):
        self._routes = routes
        self.urls = []

    async def request(self, method, url, params=None, headers=None, timeout=None):
        self.urls.append(url)
        status, body = self._routes.get(url, (404, {"error": "not found"}))
        return _DummyResponse(status, body)


def _index(*resources):
    return (200, {"version": "3.0.0", "resources": [{"@id": i, "@type": t} for t, i in resources]})


def _client(routes, urls=(INDEX_A,), include_prerelease=True):
    session = _RoutingSession(routes)
    config = ProviderConfig(Ecosystem.NUGET, registry_urls=list(urls), include_prerelease=include_prerelease)
    return NuGetClient(config, JsonHttpClient(session=session)), session


def _fetch(client, name="Newtonsoft.Json", spec="13.*"):
    return asyncio.run(client.fetch_package(PackageRequest(Ecosystem.NUGET, name, spec)))


class TestNuGetClient:
    """Tests for discovery, selection and fallback."""

    def test_prefers_package_base_address(self):
        """The flat container is used even when registrations are listed first."""
        routes = {
            INDEX_A: _index(
                ("RegistrationsBaseUrl/3.6.0", "https://a.example/reg/"),
                ("PackageBaseAddress/3.0.0", "https://a.example/flat/"),
            ),
            "https://a.example/flat/newtonsoft.json/index.json": (
                200, {"versions": ["12.0.1", "13.0.1", "13.0.2-beta1"]}
            ),
        }
        client, session = _client(routes)
        doc = _fetch(client)
        assert doc.releases == ("12.0.1", "13.0.1")
        assert doc.prereleases == ("13.0.2-beta1",)
        assert doc.suggestion.tag == SuggestionTag.SATISFIES
        assert doc.suggestion.version == "13.0.1"
        assert doc.response.status == 200
        assert not any("/reg/" in url for url in session.urls)

    def test_failed_index_is_isolated(self):
        """A failing index does not abort the others."""
        routes = {
            INDEX_A: (500, {"error": "boom"}),
            INDEX_B: _index(("PackageBaseAddress/3.0.0", "https://b.example/flat/")),
            "https://b.example/flat/newtonsoft.json/index.json": (200, {"versions": ["13.0.1"]}),
        }
        client, _ = _client(routes, urls=(INDEX_A, INDEX_B))
        doc = _fetch(client)
        assert doc.releases == ("13.0.1",)

    def test_newest_listing_wins(self):
        """The index reporting the newest version is used, not merged."""
        routes = {
            INDEX_A: _index(("PackageBaseAddress/3.0.0", "https://a.example/flat/")),
            INDEX_B: _index(("SearchAutocompleteService", "https://b.example/autocomplete")),
            "https://a.example/flat/newtonsoft.json/index.json": (200, {"versions": ["12.0.1", "13.0.1"]}),
            "https://b.example/autocomplete": (200, {"totalHits": 1, "data": ["13.0.1", "14.0.0"]}),
        }
        client, _ = _client(routes, urls=(INDEX_A, INDEX_B))
        doc = _fetch(client, spec="*")
        assert doc.releases == ("13.0.1", "14.0.0")
        assert doc.suggestion.tag == SuggestionTag.LATEST
        assert doc.suggestion.version == "14.0.0"

    def test_tie_goes_to_preferred_resolver(self):
        """Equal newest versions fall back to resolver priority."""
        routes = {
            INDEX_A: _index(("SearchAutocompleteService", "https://a.example/autocomplete")),
            INDEX_B: _index(("PackageBaseAddress/3.0.0", "https://b.example/flat/")),
            "https://a.example/autocomplete": (200, {"totalHits": 1, "data": ["2.0.0"]}),
            "https://b.example/flat/newtonsoft.json/index.json": (200, {"versions": ["1.0.0", "2.0.0"]}),
        }
        client, _ = _client(routes, urls=(INDEX_A, INDEX_B))
        doc = _fetch(client, spec="*")
        assert doc.releases == ("1.0.0", "2.0.0")

    def test_registrations_resolver(self):
        """Registrations pages are followed when nothing better is advertised."""
        routes = {
            INDEX_A: _index(("RegistrationsBaseUrl/3.6.0", "https://a.example/reg/")),
            "https://a.example/reg/foo/index.json": (200, {
                "count": 1,
                "items": [{"@id": "https://a.example/reg/foo/page.json", "@type": "catalog:CatalogPage"}],
            }),
            "https://a.example/reg/foo/page.json": (200, {"items": [
                {"catalogEntry": {"version": "1.0.0"}},
                {"catalogEntry": {"version": "1.1.0-rc.1"}},
            ]}),
        }
        client, _ = _client(routes, include_prerelease=False)
        doc = _fetch(client, name="Foo", spec="[1.0,2.0)")
        assert doc.releases == ("1.0.0",)
        assert doc.prereleases == ()

    def test_package_not_found(self):
        """A 404 from the resolver yields a not-found document."""
        routes = {INDEX_A: _index(("PackageBaseAddress/3.0.0", "https://a.example/flat/"))}
        client, _ = _client(routes)
        doc = _fetch(client, name="Missing.Package")
        assert doc.suggestion.tag == SuggestionTag.NOT_FOUND
        assert doc.response.status == 404
        assert doc.releases == ()

    def test_no_known_capability(self):
        """An index without usable capabilities resolves to not found."""
        routes = {INDEX_A: _index(("SearchQueryService", "https://a.example/query"))}
        client, _ = _client(routes)
        doc = _fetch(client)
        assert doc.suggestion.tag == SuggestionTag.NOT_FOUND

    def test_four_segment_makes_no_request(self):
        """Four-segment versions short-circuit before any network call."""
        client, session = _client({})
        doc = _fetch(client, spec="1.2.3.4")
        assert doc.suggestion.tag == SuggestionTag.FOUR_SEGMENT_UNSUPPORTED
        assert session.urls == []

    def test_transient_failure_raised(self):
        """When every index fails transiently the error propagates."""
        client, _ = _client({INDEX_A: (503, {"error": "down"})})
        with pytest.raises(HttpRequestError) as info:
            _fetch(client)
        assert info.value.status == 503

    def test_transient_resolver_failure_raised(self):
        """A resolver timing out with no other data is transient, not a 404."""
        routes = {
            INDEX_A: _index(("PackageBaseAddress/3.0.0", "https://a.example/flat/")),
            "https://a.example/flat/newtonsoft.json/index.json": (502, {}),
        }
        client, _ = _client(routes)
        with pytest.raises(HttpRequestError) as info:
            _fetch(client)
        assert info.value.is_transient

    def test_no_index_configured(self):
        """Missing configuration is reported as a configuration error."""
        client, _ = _client({}, urls=())
        with pytest.raises(ConfigurationError):
            _fetch(client)
