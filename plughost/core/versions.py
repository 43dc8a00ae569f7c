"""
Version Comparison.

Semantic comparison of release and schema version strings.

Key features:
- Numeric segment comparison ("1.10.0" > "1.9.0")
- Shorter versions padded with zeros ("1.0" == "1.0.0")
- Pre-release suffixes sort before the release ("1.0.0-beta" < "1.0.0")
"""

import re

_SEPARATORS = re.compile(r"[.\-+_]")


def _segments(version: str) -> list[tuple[int, int | str]]:
    """
    Split a version into comparable segments.

    Numeric segments are ranked above textual ones so that a pre-release
    marker compares lower than any number in the same position.
    """
    parts = []
    for part in _SEPARATORS.split(version.strip().lstrip("vV")):
        if part == "":
            continue
        if part.isdigit():
            parts.append((1, int(part)))
        else:
            parts.append((0, part.lower()))
    return parts


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings.

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    parts1 = _segments(v1)
    parts2 = _segments(v2)

    # Pad shorter version with zeros
    max_len = max(len(parts1), len(parts2))
    parts1.extend([(1, 0)] * (max_len - len(parts1)))
    parts2.extend([(1, 0)] * (max_len - len(parts2)))

    for p1, p2 in zip(parts1, parts2, strict=True):
        if p1 < p2:
            return -1
        elif p1 > p2:
            return 1
    return 0


def is_newer(version: str, than: str) -> bool:
    """Return True if ``version`` is strictly greater than ``than``."""
    return compare_versions(version, than) > 0
