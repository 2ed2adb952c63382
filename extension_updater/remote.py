# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Remote Source Client

Fetches the extension's manifest and changelog from a CDN that serves
repository files by commit (``<cdn_base>/<repo>@<ref>/<path>``), and resolves
the latest commit of the default branch through the GitHub API.

Every request asks intermediaries not to serve cached bytes. Pinning the
manifest and changelog fetches to one resolved commit keeps both files from
the same snapshot even while the CDN is still propagating a new push.
"""

import asyncio
import json
import logging
from typing import Dict, Optional

import aiohttp
from pydantic import ValidationError

from . import __version__
from .config import RemoteConfig
from .errors import FetchError, ParseError
from .schemas import CommitReference, ManifestDocument

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def parse_manifest_version(raw: bytes) -> str:
    """Extract the ``version`` field from a manifest document.

    Raises:
        ParseError: If the document is not JSON or has no string version.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"Manifest is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Manifest is not a JSON object")

    try:
        return ManifestDocument.model_validate(data).version
    except ValidationError as e:
        raise ParseError("Invalid manifest format or 'version' field is missing") from e


class RemoteSourceClient:
    """Reads extension files from the remote source.

    Usage:
        client = RemoteSourceClient(config.remote)
        ref = await client.fetch_latest_reference()
        version = await client.fetch_manifest_version(ref)
    """

    def __init__(self, config: RemoteConfig):
        self.config = config

    def _get_headers(self, accept: str = "*/*") -> Dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": f"extension-updater/{__version__}",
        }
        headers.update(NO_CACHE_HEADERS)
        return headers

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.request_timeout)

    def file_url(self, path: str, reference: Optional[str] = None) -> str:
        """Build the CDN URL of a repository file at ``reference``."""
        ref = reference or self.config.branch
        base = self.config.cdn_base.rstrip("/")
        return f"{base}/{self.config.repo}@{ref}/{path.lstrip('/')}"

    async def fetch_latest_reference(self) -> str:
        """Resolve the latest commit sha of the configured branch."""
        base = self.config.api_base.rstrip("/")
        url = f"{base}/repos/{self.config.repo}/commits/{self.config.branch}"
        headers = self._get_headers(accept="application/vnd.github+json")
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"

        body = await self._get(url, headers)
        try:
            sha = CommitReference.model_validate_json(body).sha
        except ValidationError as e:
            raise FetchError(f"Commit lookup returned no sha: {url}", url=url) from e

        logger.debug("Resolved %s@%s to %s", self.config.repo, self.config.branch, sha)
        return sha

    async def fetch_file(self, path: str, reference: Optional[str] = None) -> bytes:
        """Fetch a repository file, pinned to ``reference`` when given."""
        url = self.file_url(path, reference)
        logger.info("Fetching %s", url)
        return await self._get(url, self._get_headers())

    async def fetch_manifest_version(self, reference: Optional[str] = None) -> str:
        """Fetch the manifest and return its declared version."""
        raw = await self.fetch_file(self.config.manifest_path, reference)
        return parse_manifest_version(raw)

    async def fetch_changelog(self, reference: Optional[str] = None) -> str:
        """Fetch the changelog document as text."""
        raw = await self.fetch_file(self.config.changelog_path, reference)
        return raw.decode("utf-8", errors="replace")

    async def _get(self, url: str, headers: Dict[str, str]) -> bytes:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, headers=headers, timeout=self._timeout()) as resp:
                    if resp.status >= 400:
                        raise FetchError(
                            f"HTTP error! status: {resp.status} ({url})",
                            url=url,
                            status=resp.status,
                        )
                    return await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Remote request failed: %s", e)
            raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e
