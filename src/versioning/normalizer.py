"""Version normalization: validate, deduplicate, partition and sort."""

import re
from typing import Dict, Iterable, List, Optional

import semantic_version

from .models import VersionPartition

_ALPHA_RE = re.compile(r"^[A-Za-z]+")


def parse_version(value: str) -> Optional[semantic_version.Version]:
    """Safely parse a semantic version string."""
    if not isinstance(value, str):
        return None
    try:
        return semantic_version.Version(value.strip())
    except ValueError:
        return None


def filter_semver_versions(raw_versions: Iterable[str]) -> List[str]:
    """Keep the entries that are valid semantic versions, deduplicated."""
    seen = set()
    valid: List[str] = []
    for raw in raw_versions:
        if not isinstance(raw, str):
            continue
        value = raw.strip()
        if value in seen:
            continue
        seen.add(value)
        if parse_version(value) is not None:
            valid.append(value)
    return valid


def sort_versions(versions: Iterable[str], reverse: bool = False) -> List[str]:
    """Sort valid version strings by semantic precedence."""
    return sorted(versions, key=semantic_version.Version, reverse=reverse)


def normalize_versions(raw_versions: Iterable[str]) -> VersionPartition:
    """Split raw registry versions into ascending releases and prereleases.

    Invalid entries are dropped; an all-invalid input yields an empty partition.
    """
    releases: List[str] = []
    prereleases: List[str] = []
    for value in filter_semver_versions(raw_versions):
        if semantic_version.Version(value).prerelease:
            prereleases.append(value)
        else:
            releases.append(value)
    return VersionPartition(
        releases=tuple(sort_versions(releases)),
        prereleases=tuple(sort_versions(prereleases)),
    )


def highest_version(versions: Iterable[str]) -> Optional[str]:
    """Return the highest valid version in ``versions`` or None."""
    valid = filter_semver_versions(versions)
    if not valid:
        return None
    return max(valid, key=semantic_version.Version)


def prerelease_lineage(version: semantic_version.Version) -> str:
    """Return the tag family of a prerelease, e.g. ``beta`` for ``2.1.0-beta3``."""
    first = version.prerelease[0] if version.prerelease else ""
    m = _ALPHA_RE.match(first)
    return m.group(0).lower() if m else first


def range_contains(spec: semantic_version.NpmSpec, version: semantic_version.Version,
                   include_prerelease: bool = False) -> bool:
    """Check ``version`` against ``spec``.

    With ``include_prerelease`` a prerelease also counts as in range when its
    release base is, so ``3.0.0-beta2`` is a candidate for ``^3.0.0``.
    """
    if spec.match(version):
        return True
    if include_prerelease and version.prerelease:
        base = semantic_version.Version(major=version.major, minor=version.minor, patch=version.patch)
        return spec.match(base)
    return False


def filter_prereleases_within_range(version_range: str, prereleases: Iterable[str]) -> List[str]:
    """Return the highest in-range prerelease of each lineage.

    Lineages are reported in the order they first appear in ``prereleases``.
    """
    try:
        spec = semantic_version.NpmSpec(version_range)
    except ValueError:
        return []

    groups: Dict[str, semantic_version.Version] = {}
    originals: Dict[str, str] = {}
    order: List[str] = []
    for value in prereleases:
        version = parse_version(value)
        if version is None or not version.prerelease:
            continue
        key = prerelease_lineage(version)
        if key not in order:
            order.append(key)
        if not range_contains(spec, version, include_prerelease=True):
            continue
        if key not in groups or version > groups[key]:
            groups[key] = version
            originals[key] = value.strip()

    return [originals[key] for key in order if key in groups]
