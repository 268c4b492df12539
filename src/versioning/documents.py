"""Package document factory: pure assembly of the terminal result record."""

from typing import Optional

from .models import (
    PackageDocument,
    PackageRequest,
    PackageSourceType,
    ResponseStatus,
    Suggestion,
    SuggestionTag,
    VersionPartition,
    VersionSpecifier,
)


def create_document(
    provider: str,
    request: PackageRequest,
    specifier: VersionSpecifier,
    partition: VersionPartition,
    suggestion: Suggestion,
    response: Optional[ResponseStatus] = None,
    source: PackageSourceType = PackageSourceType.REGISTRY,
) -> PackageDocument:
    """Assemble a document for a package whose versions were retrieved."""
    return PackageDocument(
        provider=provider,
        source=source,
        response=response,
        requested=request,
        specifier=specifier,
        resolved_version=specifier.resolved_version,
        releases=tuple(partition.releases),
        prereleases=tuple(partition.prereleases),
        suggestion=suggestion,
    )


def create_not_found(
    provider: str,
    request: PackageRequest,
    specifier: Optional[VersionSpecifier],
    response: Optional[ResponseStatus] = None,
) -> PackageDocument:
    """Document for a package that no registry knows about."""
    return PackageDocument(
        provider=provider,
        source=PackageSourceType.REGISTRY,
        response=response,
        requested=request,
        specifier=specifier,
        resolved_version=specifier.resolved_version if specifier else None,
        suggestion=Suggestion(SuggestionTag.NOT_FOUND),
    )


def create_four_segment(
    provider: str,
    request: PackageRequest,
    specifier: VersionSpecifier,
) -> PackageDocument:
    """Document for a NuGet four-segment version; built without any network call."""
    return PackageDocument(
        provider=provider,
        source=PackageSourceType.REGISTRY,
        response=None,
        requested=request,
        specifier=specifier,
        resolved_version=None,
        suggestion=Suggestion(SuggestionTag.FOUR_SEGMENT_UNSUPPORTED),
    )
