"""Ordering of dotted version strings.

Versions are ordered by their numeric ``major.minor`` prefix only. The patch
segment is validated but never compared, so ``2.1.x``, ``2.1.0`` and
``2.1.7`` all stand for the same minor line.
"""

from __future__ import annotations

import functools
import re

WILDCARD = "x"

# major.minor, then optionally a wildcard or a numeric patch with build text.
_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(?:[xX]|\d+(?:\D.*)?))?\s*$")
_DOT_X_RE = re.compile(r"(\d+\.\d+\.)")


class VersionFormatError(ValueError):
    """Raised when a version string is malformed."""


def _parse(version: str) -> tuple[int, int]:
    """Return the (major, minor) line of a version."""
    match = _VERSION_RE.match(version or "")
    if match is None:
        raise VersionFormatError(
            f"version string '{version}' does not match 'major.minor[.patch]' pattern"
        )
    return int(match.group(1)), int(match.group(2))


def is_version(value: str) -> bool:
    """Check whether a string is a well-formed version."""
    return _VERSION_RE.match(value or "") is not None


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings by minor line.

    Returns:
        A negative number if a < b, zero if equal, positive if a > b.

    Raises:
        VersionFormatError: If either string is malformed.
    """
    a_line = _parse(a)
    b_line = _parse(b)
    return (a_line > b_line) - (a_line < b_line)


version_key = functools.cmp_to_key(compare_versions)


def as_dot_x(version: str) -> str:
    """Reduce a version to its ``major.minor.x`` form.

    ``2.1.0 SNAPSHOT Build 12ab34`` and ``2.1.0-12ab34`` both become ``2.1.x``.

    Raises:
        VersionFormatError: If the string has no ``major.minor.`` prefix.
    """
    match = _DOT_X_RE.search(version or "")
    if match is None:
        raise VersionFormatError(
            f"version string '{version}' does not match 'major.minor.' pattern"
        )
    return match.group(1) + WILDCARD
