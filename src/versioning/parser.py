"""Version specifier parsing per ecosystem grammar.

Every grammar is reduced to the npm comparator syntax understood by
``semantic_version.NpmSpec`` so that one matcher serves all ecosystems.
Parsing never raises: malformed input yields an UNSUPPORTED specifier.
"""

import re
from typing import Optional, Tuple

import semantic_version

from .models import Ecosystem, SpecifierKind, VersionSpecifier

TAG_RANGE = "*"
_SEMVER_TAGS = {"", "latest", "*", "x", "X"}
_PUB_TAGS = _SEMVER_TAGS | {"any"}
_DUB_TAGS = {"*"}

_NUGET_FLOAT_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?\.\*$")
_NUGET_PRE_FLOAT_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)-\*$")
_DUB_TILDE_RE = re.compile(r"^~>\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?(-[0-9A-Za-z.-]+)?$")


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule.

    Does not assume ecosystem-specific syntax.
    """
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def parse_version_specifier(raw: Optional[str], ecosystem: Ecosystem) -> VersionSpecifier:
    """Parse a raw manifest version string for ``ecosystem``."""
    raw_input = raw if isinstance(raw, str) else ""
    text = raw_input.strip()
    if ecosystem == Ecosystem.NUGET:
        return _parse_nuget(raw_input, text)
    if ecosystem == Ecosystem.DUB:
        return _parse_dub(raw_input, text)
    tags = _PUB_TAGS if ecosystem == Ecosystem.PUB else _SEMVER_TAGS
    return _parse_semver(raw_input, text, tags)


def is_valid_range(text: str) -> bool:
    """True if ``text`` is an npm-style range (exact versions included)."""
    try:
        semantic_version.NpmSpec(text)
    except ValueError:
        return False
    return True


def _exact_version(text: str) -> Optional[str]:
    """Return the literal version in ``text`` (leading 'v' or '=' allowed)."""
    candidate = text
    if candidate[:1] in ("v", "="):
        candidate = candidate[1:].strip()
    try:
        semantic_version.Version(candidate)
    except ValueError:
        return None
    return candidate


def _make(raw_input: str, text: str, kind: SpecifierKind, resolved: Optional[str],
          four: bool = False) -> VersionSpecifier:
    return VersionSpecifier(
        raw_input=raw_input,
        kind=kind,
        raw_version=text,
        resolved_version=resolved,
        has_four_segments=four,
    )


def _unsupported(raw_input: str, text: str, four: bool = False) -> VersionSpecifier:
    return _make(raw_input, text, SpecifierKind.UNSUPPORTED, None, four)


def _parse_semver(raw_input: str, text: str, tags) -> VersionSpecifier:
    if text in tags:
        return _make(raw_input, text, SpecifierKind.TAG, TAG_RANGE)
    exact = _exact_version(text)
    if exact is not None:
        return _make(raw_input, text, SpecifierKind.EXACT, exact)
    if is_valid_range(text):
        return _make(raw_input, text, SpecifierKind.RANGE, text)
    return _unsupported(raw_input, text)


def _parse_dub(raw_input: str, text: str) -> VersionSpecifier:
    if text in _DUB_TAGS:
        return _make(raw_input, text, SpecifierKind.TAG, TAG_RANGE)
    if text.startswith("=="):
        exact = _exact_version(text[2:].strip())
        if exact is None:
            return _unsupported(raw_input, text)
        return _make(raw_input, text, SpecifierKind.EXACT, exact)
    if text.startswith("~>"):
        converted = _convert_dub_tilde(text)
        if converted is None:
            return _unsupported(raw_input, text)
        return _make(raw_input, text, SpecifierKind.RANGE, converted)
    if text.startswith("~"):
        # branch reference such as ~master
        return _unsupported(raw_input, text)
    exact = _exact_version(text)
    if exact is not None:
        return _make(raw_input, text, SpecifierKind.EXACT, exact)
    if is_valid_range(text):
        return _make(raw_input, text, SpecifierKind.RANGE, text)
    return _unsupported(raw_input, text)


def _convert_dub_tilde(text: str) -> Optional[str]:
    """Translate dub's ``~>`` operator into comparators.

    ``~>1.2.3`` pins the minor, ``~>1.2`` and ``~>1`` pin the major.
    """
    m = _DUB_TILDE_RE.match(text)
    if not m:
        return None
    major = int(m.group(1))
    minor = int(m.group(2)) if m.group(2) is not None else None
    patch = int(m.group(3)) if m.group(3) is not None else None
    pre = m.group(4) or ""
    if patch is not None:
        return f">={major}.{minor}.{patch}{pre} <{major}.{minor + 1}.0"
    return f">={major}.{minor or 0}.0{pre} <{major + 1}.0.0"


def _nuget_version(text: str) -> Tuple[Optional[str], bool]:
    """Normalize one NuGet version to three segments.

    Returns (normalized or None, has_four_segments).
    """
    text = text.strip()
    if not text:
        return None, False
    core, sep, suffix = text.partition("-")
    if "+" in core:
        core, _, build = core.partition("+")
        suffix = f"{suffix}+{build}" if sep else build
        sep = sep or "+"
    segments = core.split(".")
    if len(segments) > 3:
        return None, True
    if not all(s.isdigit() for s in segments):
        return None, False
    while len(segments) < 3:
        segments.append("0")
    normalized = ".".join(str(int(s)) for s in segments)
    if sep:
        normalized = f"{normalized}{sep}{suffix}"
    try:
        semantic_version.Version(normalized)
    except ValueError:
        return None, False
    return normalized, False


def _parse_nuget(raw_input: str, text: str) -> VersionSpecifier:
    if not text:
        return _unsupported(raw_input, text)
    if text == "*":
        return _make(raw_input, text, SpecifierKind.TAG, TAG_RANGE)

    m = _NUGET_FLOAT_RE.match(text)
    if m:
        major, minor = int(m.group(1)), m.group(2)
        if m.group(3) is not None:
            # 1.2.3.* floats the fourth segment, which semver cannot express
            return _unsupported(raw_input, text, four=True)
        if minor is None:
            resolved = f">={major}.0.0 <{major + 1}.0.0"
        else:
            resolved = f">={major}.{int(minor)}.0 <{major}.{int(minor) + 1}.0"
        return _make(raw_input, text, SpecifierKind.RANGE, resolved)

    m = _NUGET_PRE_FLOAT_RE.match(text)
    if m:
        major, minor, patch = (int(g) for g in m.groups())
        resolved = f">={major}.{minor}.{patch}-0 <{major}.{minor}.{patch + 1}"
        return _make(raw_input, text, SpecifierKind.RANGE, resolved)

    if text[0] in "[(":
        return _parse_nuget_interval(raw_input, text)

    version, four = _nuget_version(text)
    if four:
        return _unsupported(raw_input, text, four=True)
    if version is None:
        return _unsupported(raw_input, text)
    return _make(raw_input, text, SpecifierKind.EXACT, version)


def _parse_nuget_interval(raw_input: str, text: str) -> VersionSpecifier:
    """Parse NuGet interval notation, e.g. ``[1.0,2.0)``."""
    if len(text) < 3 or text[-1] not in "])":
        return _unsupported(raw_input, text)
    min_inclusive = text[0] == "["
    max_inclusive = text[-1] == "]"
    parts = text[1:-1].split(",")
    if len(parts) > 2 or all(not p.strip() for p in parts):
        return _unsupported(raw_input, text)

    if len(parts) == 1:
        # [1.0] is an exact pin; (1.0) is meaningless
        version, four = _nuget_version(parts[0])
        if four:
            return _unsupported(raw_input, text, four=True)
        if version is None or not (min_inclusive and max_inclusive):
            return _unsupported(raw_input, text)
        return _make(raw_input, text, SpecifierKind.EXACT, version)

    comparators = []
    bounds = []
    for part, op_inclusive, op_exclusive, inclusive in (
        (parts[0], ">=", ">", min_inclusive),
        (parts[1], "<=", "<", max_inclusive),
    ):
        if not part.strip():
            bounds.append(None)
            continue
        version, four = _nuget_version(part)
        if four:
            return _unsupported(raw_input, text, four=True)
        if version is None:
            return _unsupported(raw_input, text)
        bounds.append(version)
        comparators.append(f"{op_inclusive if inclusive else op_exclusive}{version}")

    low, high = bounds
    if low is not None and low == high and min_inclusive and max_inclusive:
        return _make(raw_input, text, SpecifierKind.EXACT, low)

    resolved = " ".join(comparators)
    if not is_valid_range(resolved):
        return _unsupported(raw_input, text)
    return _make(raw_input, text, SpecifierKind.RANGE, resolved)
