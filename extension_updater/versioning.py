# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Version comparison for extension manifests.

Versions are compared on their first three numeric components only.
Pre-release (``-beta``) and build metadata (``+build.5``) suffixes are
stripped before comparison and never affect ordering. A version that cannot
be read is treated as equal to anything, so a malformed manifest never
produces an update the rest of the workflow cannot act on.
"""

from enum import IntEnum
from typing import Optional, Tuple


class Comparison(IntEnum):
    """Result of comparing two version strings."""
    LESS = -1
    EQUAL = 0
    GREATER = 1


def _strip_suffixes(version_str: str) -> str:
    return version_str.strip().split("-")[0].split("+")[0]


def parse_version(version_str: str) -> Optional[Tuple[int, int, int]]:
    """Parse a version string into a (major, minor, patch) tuple.

    Missing or empty components default to 0, so ``"1."`` reads as 1.0.0.
    Returns None if any of the first three components is present but not
    made of ASCII digits.
    """
    if not isinstance(version_str, str):
        return None
    parts = _strip_suffixes(version_str).split(".")
    numbers = []
    for i in range(3):
        part = parts[i].strip() if i < len(parts) else ""
        if not part:
            numbers.append(0)
        elif part.isascii() and part.isdigit():
            numbers.append(int(part))
        else:
            return None
    return numbers[0], numbers[1], numbers[2]


def compare_versions(a: str, b: str) -> Comparison:
    """Compare version ``a`` against version ``b``.

    Returns GREATER if ``a`` is newer, LESS if older, EQUAL if the same
    or if either string cannot be parsed.
    """
    parsed_a = parse_version(a)
    parsed_b = parse_version(b)
    if parsed_a is None or parsed_b is None:
        return Comparison.EQUAL

    for num_a, num_b in zip(parsed_a, parsed_b):
        if num_a > num_b:
            return Comparison.GREATER
        if num_a < num_b:
            return Comparison.LESS
    return Comparison.EQUAL


def is_newer_version(candidate: str, current: str) -> bool:
    """Check if candidate version is strictly newer than current version."""
    return compare_versions(candidate, current) is Comparison.GREATER
