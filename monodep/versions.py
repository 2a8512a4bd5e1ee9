"""Version range helpers shared by the peer, consistency and outdated checks.

A declared range is reduced to the first ``M.m.p`` token it contains and
checked against the required range with npm semantics. Pre-release tags,
``||`` alternatives and ``x`` ranges on the providing side are approximated
rather than evaluated exactly.
"""

from __future__ import annotations

import re
from typing import Optional

from nodesemver import satisfies as _semver_satisfies
from nodesemver import valid_range as _semver_valid_range

LOCAL_PROTOCOLS = ("workspace:", "file:", "link:", "portal:")

_LEADING_COMPARATORS = re.compile(r"^[\^~>=<v\s]+")
_VERSION_TOKEN = re.compile(r"\d+\.\d+\.\d+")


def is_local_range(version_range: str) -> bool:
    """Return True for ranges that link to a local package instead of the registry."""
    return version_range.startswith(LOCAL_PROTOCOLS)


def clean_version(version_range: str) -> Optional[str]:
    """Reduce a declared range to a comparable ``M.m.p`` version, if it has one."""
    if is_local_range(version_range):
        return None
    stripped = _LEADING_COMPARATORS.sub("", version_range.strip())
    match = _VERSION_TOKEN.search(stripped)
    return match.group(0) if match else None


def normalize_range(version_range: str) -> str:
    spaced = version_range.replace("||", " || ")
    return re.sub(r"\s+", " ", spaced).strip()


def satisfies(version: str, version_range: str) -> bool:
    """Check ``version`` against ``version_range``.

    A range that cannot be parsed is treated as satisfied.
    """
    cleaned = normalize_range(version_range)
    try:
        if _semver_valid_range(cleaned, loose=True) is None:
            return True
        return bool(_semver_satisfies(version, cleaned, loose=True))
    except (ValueError, TypeError):
        return True


def range_includes(version_range: str, version: str) -> Optional[bool]:
    """Return whether ``version`` falls inside ``version_range``; None when unparsable."""
    cleaned = normalize_range(version_range)
    try:
        if _semver_valid_range(cleaned, loose=True) is None:
            return None
        return bool(_semver_satisfies(version, cleaned, loose=True))
    except (ValueError, TypeError):
        return None


__all__ = [
    "LOCAL_PROTOCOLS",
    "clean_version",
    "is_local_range",
    "normalize_range",
    "range_includes",
    "satisfies",
]
