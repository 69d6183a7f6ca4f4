"""
L1 Domain — Version parsing and comparison (pure).

Numeric, field-by-field comparison of ``major.minor[.patch]`` strings.
No I/O, no subprocess. ``"6.10"`` sorts above ``"6.9"``, which a plain
string comparison gets wrong.
"""

from __future__ import annotations

import re

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?")
_SERIES_RE = re.compile(r"^(\d+\.\d+)")


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse the leading ``major.minor[.patch]`` of a version string.

    Trailing qualifiers (``-rc1``, ``.post2``) are ignored. A missing
    patch counts as 0.

    Returns:
        ``(major, minor, patch)`` or None when there is no numeric prefix.
    """
    m = _VERSION_RE.match(version.strip()) if version else None
    if not m:
        return None
    major, minor, patch = m.groups()
    return int(major), int(minor), int(patch or 0)


def series_of(version: str) -> str | None:
    """Return the ``X.Y`` series prefix, e.g. ``"6.4.3"`` → ``"6.4"``."""
    m = _SERIES_RE.match(version.strip()) if version else None
    return m.group(1) if m else None


def compare_versions(a: str, b: str) -> int:
    """Compare two versions numerically.

    Returns:
        -1, 0 or 1 like a classic ``cmp``.

    Raises:
        ValueError: if either side has no numeric prefix.
    """
    pa, pb = parse_version(a), parse_version(b)
    if pa is None or pb is None:
        raise ValueError(f"Cannot compare versions {a!r} and {b!r}")
    return (pa > pb) - (pa < pb)


def series_at_least(version: str, minimum: str) -> bool:
    """Whether the major.minor series of *version* is >= *minimum*.

    Only the series is compared: ``6.4.0`` satisfies a floor of ``6.4``
    and so does ``6.4.3``. Unparseable input never satisfies the floor.
    """
    series = series_of(version)
    floor = series_of(minimum)
    if series is None or floor is None:
        return False
    return compare_versions(series, floor) >= 0


def highest_version(candidates: list[str]) -> str | None:
    """Pick the highest parseable version from *candidates*."""
    parsed = [(parse_version(c), c) for c in candidates]
    valid = [(p, c) for p, c in parsed if p is not None]
    if not valid:
        return None
    return max(valid, key=lambda pc: pc[0])[1]
