"""Suggestion engine: classify a specifier against the available versions."""

import logging

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled
from .models import SpecifierKind, Suggestion, SuggestionTag, VersionPartition, VersionSpecifier
from .normalizer import filter_prereleases_within_range, highest_version

logger = logging.getLogger(__name__)


def create_suggestion(specifier: VersionSpecifier, partition: VersionPartition) -> Suggestion:
    """Compute exactly one suggestion; the first matching rule wins.

    Order: four-segment, nothing published, unparseable specifier, tag alias,
    highest satisfying release, highest in-range prerelease, no match.
    """
    suggestion = _classify(specifier, partition)
    if is_debug_enabled(logger):
        logger.debug(
            "Suggestion computed",
            extra=extra_context(
                event="decision",
                component="suggestions",
                action="create_suggestion",
                target=specifier.raw_version,
                outcome=suggestion.tag.value,
            ),
        )
    return suggestion


def _classify(specifier: VersionSpecifier, partition: VersionPartition) -> Suggestion:
    if specifier.has_four_segments:
        return Suggestion(SuggestionTag.FOUR_SEGMENT_UNSUPPORTED)

    if partition.is_empty:
        return Suggestion(SuggestionTag.NOT_FOUND)

    if specifier.is_unsupported or specifier.resolved_version is None:
        return Suggestion(SuggestionTag.NO_MATCH, partition.latest_release)

    if specifier.kind == SpecifierKind.TAG:
        if partition.releases:
            return Suggestion(SuggestionTag.LATEST, partition.latest_release)
        return Suggestion(SuggestionTag.LATEST_IS_PRERELEASE, partition.latest_prerelease)

    try:
        spec = semantic_version.NpmSpec(specifier.resolved_version)
    except ValueError:
        return Suggestion(SuggestionTag.NO_MATCH, partition.latest_release)

    satisfying = [v for v in partition.releases if spec.match(semantic_version.Version(v))]
    if satisfying:
        best = satisfying[-1]
        if best == specifier.resolved_version:
            return Suggestion(SuggestionTag.MATCHES, best)
        return Suggestion(SuggestionTag.SATISFIES, best)

    candidates = filter_prereleases_within_range(specifier.resolved_version, partition.prereleases)
    if candidates:
        return Suggestion(SuggestionTag.LATEST_IS_PRERELEASE, highest_version(candidates))

    return Suggestion(
        SuggestionTag.NO_MATCH,
        partition.latest_release or partition.latest_prerelease,
    )
