# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Changelog excerpt extraction.

A changelog is split into sections headed ``## [<version>]``. The excerpt
shown to the operator starts at the latest version's heading and stops at
the installed version's heading, so it covers every release in between.
"""

import logging

logger = logging.getLogger(__name__)

CHANGELOG_NOT_FOUND = "No changelog entry was found for the latest version."
CHANGELOG_UNAVAILABLE = "The changelog could not be loaded."


def version_marker(version: str) -> str:
    """Return the heading that opens a version's changelog section."""
    return f"## [{version}]"


def extract_changelog(doc: str, current_version: str, latest_version: str) -> str:
    """Return the changelog text between the latest and current version headings.

    If the latest version has no heading, a fixed placeholder is returned.
    If the current version has no heading after it, the excerpt runs to the
    end of the document. Never raises.
    """
    if not isinstance(doc, str) or not isinstance(latest_version, str):
        return CHANGELOG_NOT_FOUND

    start = doc.find(version_marker(latest_version))
    if start == -1:
        logger.debug("Changelog has no section for %s", latest_version)
        return CHANGELOG_NOT_FOUND

    end = -1
    if isinstance(current_version, str):
        end = doc.find(version_marker(current_version), start + 1)
    if end == -1:
        end = len(doc)

    return doc[start:end].strip()
