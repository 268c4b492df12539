"""Data models for version specifiers, suggestions and package documents."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from common.http_client import ResponseSource


class Ecosystem(Enum):
    """Enum for supported ecosystems."""
    NPM = "npm"
    NUGET = "nuget"
    DUB = "dub"
    PUB = "pub"


class SpecifierKind(Enum):
    """How a manifest version string was understood."""
    EXACT = "exact"
    RANGE = "range"
    TAG = "tag"
    UNSUPPORTED = "unsupported"


class SuggestionTag(Enum):
    """Classification of the update suggestion for a dependency."""
    LATEST = "latest"
    LATEST_IS_PRERELEASE = "latest_is_prerelease"
    SATISFIES = "satisfies"
    MATCHES = "matches"
    NO_MATCH = "no_match"
    FOUR_SEGMENT_UNSUPPORTED = "four_segment_unsupported"
    NOT_FOUND = "not_found"


class PackageSourceType(Enum):
    """Where the package data was obtained."""
    REGISTRY = "registry"


@dataclass(frozen=True)
class VersionSpecifier:
    """Parsed form of a manifest-declared version constraint.

    ``resolved_version`` is either a literal version (EXACT), an npm-style
    comparator string (RANGE, TAG) or None (UNSUPPORTED).
    """
    raw_input: str
    kind: SpecifierKind
    raw_version: str
    resolved_version: Optional[str]
    has_four_segments: bool = False

    @property
    def is_unsupported(self) -> bool:
        return self.kind == SpecifierKind.UNSUPPORTED


@dataclass(frozen=True)
class VersionPartition:
    """Valid versions split into releases and prereleases, each ascending."""
    releases: Tuple[str, ...] = ()
    prereleases: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.releases and not self.prereleases

    @property
    def latest_release(self) -> Optional[str]:
        return self.releases[-1] if self.releases else None

    @property
    def latest_prerelease(self) -> Optional[str]:
        return self.prereleases[-1] if self.prereleases else None


@dataclass(frozen=True)
class Suggestion:
    """One classified recommendation per resolution."""
    tag: SuggestionTag
    version: Optional[str] = None


@dataclass(frozen=True)
class PackageRequest:
    """Resolution input: one declared dependency."""
    ecosystem: Ecosystem
    name: str
    raw_spec: str


@dataclass(frozen=True)
class ResponseStatus:
    """Response metadata carried into the document."""
    status: int
    source: ResponseSource


@dataclass(frozen=True)
class PackageDocument:
    """Terminal, immutable resolution record handed to the presentation layer."""
    provider: str
    source: PackageSourceType
    response: Optional[ResponseStatus]
    requested: PackageRequest
    specifier: Optional[VersionSpecifier]
    resolved_version: Optional[str]
    releases: Tuple[str, ...] = field(default_factory=tuple)
    prereleases: Tuple[str, ...] = field(default_factory=tuple)
    suggestion: Suggestion = field(default_factory=lambda: Suggestion(SuggestionTag.NOT_FOUND))

    @property
    def latest_release(self) -> Optional[str]:
        return self.releases[-1] if self.releases else None

    def to_dict(self) -> dict:
        """Plain JSON-serializable representation."""
        return {
            "provider": self.provider,
            "name": self.requested.name,
            "source": self.source.value,
            "status": self.response.status if self.response else None,
            "responseSource": self.response.source.value if self.response else None,
            "requested": self.requested.raw_spec,
            "type": self.specifier.kind.value if self.specifier else None,
            "resolved": self.resolved_version,
            "releases": list(self.releases),
            "prereleases": list(self.prereleases),
            "latest": self.latest_release,
            "suggestion": {
                "tag": self.suggestion.tag.value,
                "version": self.suggestion.version,
            },
        }


@dataclass(frozen=True)
class ResolutionError:
    """Rejected outcome for a dependency the caller must render as an error."""
    name: str
    status: int
    source: ResponseSource
    reason: str
    kind: str = "http"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "error": {
                "kind": self.kind,
                "status": self.status,
                "source": self.source.value,
                "reason": self.reason,
            },
        }
