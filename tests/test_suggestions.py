"""Tests for the suggestion engine."""

from versioning.models import Ecosystem, SuggestionTag, VersionPartition
from versioning.parser import parse_version_specifier
from versioning.suggestions import create_suggestion


def _suggest(raw, releases=(), prereleases=(), ecosystem=Ecosystem.NPM):
    specifier = parse_version_specifier(raw, ecosystem)
    return create_suggestion(
        specifier, VersionPartition(releases=tuple(releases), prereleases=tuple(prereleases))
    )


class TestCreateSuggestion:
    """Classification rules, first match wins."""

    def test_range_satisfied_by_newer_release(self):
        """^1.2.0 with 1.3.0 published is satisfied by 1.3.0."""
        suggestion = _suggest("^1.2.0", ["1.2.0", "1.3.0", "2.0.0"])
        assert suggestion.tag == SuggestionTag.SATISFIES
        assert suggestion.version == "1.3.0"

    def test_exact_match(self):
        """An exact version that is the highest match is a match."""
        suggestion = _suggest("1.2.0", ["1.0.0", "1.2.0", "2.0.0"])
        assert suggestion.tag == SuggestionTag.MATCHES
        assert suggestion.version == "1.2.0"

    def test_only_prereleases_in_range(self):
        """^3.0.0 with only 3.0.0 betas suggests the newest beta."""
        suggestion = _suggest("^3.0.0", [], ["3.0.0-beta1", "3.0.0-beta2"])
        assert suggestion.tag == SuggestionTag.LATEST_IS_PRERELEASE
        assert suggestion.version == "3.0.0-beta2"

    def test_releases_outside_range_prerelease_inside(self):
        """Releases exist but only a prerelease is in range."""
        suggestion = _suggest("^3.0.0", ["1.0.0", "2.0.0"], ["3.0.0-rc.1"])
        assert suggestion.tag == SuggestionTag.LATEST_IS_PRERELEASE
        assert suggestion.version == "3.0.0-rc.1"

    def test_no_match(self):
        """Nothing in range reports the latest release."""
        suggestion = _suggest("^5.0.0", ["1.0.0", "2.0.0"], ["3.0.0-a"])
        assert suggestion.tag == SuggestionTag.NO_MATCH
        assert suggestion.version == "2.0.0"

    def test_no_match_only_prereleases(self):
        """Without releases the latest prerelease is reported."""
        suggestion = _suggest("^5.0.0", [], ["3.0.0-a"])
        assert suggestion.tag == SuggestionTag.NO_MATCH
        assert suggestion.version == "3.0.0-a"

    def test_tag_latest(self):
        """'latest' suggests the newest release."""
        suggestion = _suggest("latest", ["1.0.0", "1.1.0"], ["2.0.0-beta"])
        assert suggestion.tag == SuggestionTag.LATEST
        assert suggestion.version == "1.1.0"

    def test_tag_without_releases(self):
        """A tag with only prereleases suggests the newest prerelease."""
        suggestion = _suggest("*", [], ["1.0.0-a", "1.0.0-b"])
        assert suggestion.tag == SuggestionTag.LATEST_IS_PRERELEASE
        assert suggestion.version == "1.0.0-b"

    def test_nothing_published(self):
        """Empty partitions mean not found."""
        suggestion = _suggest("^1.0.0")
        assert suggestion.tag == SuggestionTag.NOT_FOUND
        assert suggestion.version is None

    def test_unsupported_specifier(self):
        """Unsupported input is a no-match, not an error."""
        suggestion = _suggest("file:../local", ["1.0.0"])
        assert suggestion.tag == SuggestionTag.NO_MATCH
        assert suggestion.version == "1.0.0"

    def test_four_segment_wins(self):
        """Four-segment NuGet versions are reported before anything else."""
        suggestion = _suggest("1.2.3.4", ["1.0.0"], ecosystem=Ecosystem.NUGET)
        assert suggestion.tag == SuggestionTag.FOUR_SEGMENT_UNSUPPORTED
        assert _suggest("1.2.3.4", ecosystem=Ecosystem.NUGET).tag == SuggestionTag.FOUR_SEGMENT_UNSUPPORTED

    def test_nuget_floating_range(self):
        """NuGet floating ranges use the comparator form."""
        suggestion = _suggest("1.*", ["1.0.0", "1.4.2", "2.0.0"], ecosystem=Ecosystem.NUGET)
        assert suggestion.tag == SuggestionTag.SATISFIES
        assert suggestion.version == "1.4.2"

    def test_dub_pessimistic(self):
        """dub ~> ranges are matched like npm ranges."""
        suggestion = _suggest("~>0.9.1", ["0.9.0", "0.9.5", "0.10.0"], ecosystem=Ecosystem.DUB)
        assert suggestion.tag == SuggestionTag.SATISFIES
        assert suggestion.version == "0.9.5"
