"""Version parsing and support-table lookup.

Browser versions in compatibility data come in several shapes: exact
("16.4"), ranged ("15.2-15.3"), ceilings ("≤37"), and non-numeric labels
("TP", "all"). Comparison is numeric on the leading numeric token only;
trailing qualifiers are ignored and "15" equals "15.0".
"""

import re
from typing import Optional

_LEADING = re.compile(r"\d+(?:\.\d+)*")
_RANGE = re.compile(r"^\s*(\d+(?:\.\d+)*)\s*-\s*(\d+(?:\.\d+)*)")
_CEILING = re.compile(r"^\s*(?:≤|<=)\s*(\d+(?:\.\d+)*)")

# caniuse support markers counted as supported: "y" (yes) and "a" (almost/partial)
SUPPORTED_MARKERS = frozenset({"y", "a"})

Version = tuple[int, ...]


def parse_version(value: str) -> Optional[Version]:
    """Parse the leading numeric token of a version string.

    >>> parse_version("15.2-15.3")
    (15, 2)
    >>> parse_version("TP") is None
    True
    """
    match = _LEADING.search(value or "")
    if not match:
        return None
    parts = [int(p) for p in match.group(0).split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def _range_bounds(key: str) -> Optional[tuple[Version, Version]]:
    match = _RANGE.match(key)
    if not match:
        return None
    return parse_version(match.group(1)), parse_version(match.group(2))


def _ceiling(key: str) -> Optional[Version]:
    match = _CEILING.match(key)
    return parse_version(match.group(1)) if match else None


def resolve_stat(stats: dict[str, str], version: str) -> Optional[str]:
    """Find the support marker for a browser version in a per-version table.

    Resolution order, first hit wins:
      1. exact key match
      2. a ranged key ("lo-hi") containing the version, in table order
      3. a ceiling key ("≤N") at or above the version, in table order
      4. the highest plain key not above the version (nearest lower)
    Returns None if nothing applies or the version is not numeric.
    """
    if version in stats:
        return stats[version]

    target = parse_version(version)
    if target is None:
        return None

    plain: list[tuple[Version, str]] = []
    ceilings: list[tuple[Version, str]] = []
    for key, value in stats.items():
        bounds = _range_bounds(key)
        if bounds is not None:
            low, high = bounds
            if low <= target <= high:
                return value
            continue
        ceiling = _ceiling(key)
        if ceiling is not None:
            ceilings.append((ceiling, value))
            continue
        parsed = parse_version(key)
        if parsed is not None:
            plain.append((parsed, value))

    for ceiling, value in ceilings:
        if target <= ceiling:
            return value

    lower = [(parsed, value) for parsed, value in plain if parsed <= target]
    if not lower:
        return None
    return max(lower, key=lambda item: item[0])[1]


def is_supported_marker(value: Optional[str]) -> bool:
    """True for caniuse markers such as "y", "a x #2" or "y #3"."""
    if not value:
        return False
    return any(token in SUPPORTED_MARKERS for token in value.split())


def version_at_least(version: str, minimum: str) -> Optional[bool]:
    """Compare two version strings numerically; None if either is not numeric."""
    have = parse_version(version)
    need = parse_version(minimum)
    if have is None or need is None:
        return None
    return have >= need
