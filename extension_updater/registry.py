# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Local version sources.

The installed version of an extension comes either from a constant embedded
at build time or from the host application's registry of installed
extensions (a JSON object mapping extension name to ``{"version": ...}``).
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import aiohttp

from .config import ExtensionConfig, HostConfig
from .errors import RegistryLookupError

logger = logging.getLogger(__name__)


class StaticVersionSource:
    """Version embedded at build time.

    The embedded constant cannot change while the process runs, so a version
    applied by the host is recorded with ``record_installed`` and reported
    from then on.
    """

    def __init__(self, version: str):
        self.version = version
        self.installed_version: Optional[str] = None

    def record_installed(self, version: str) -> None:
        logger.info("Recording installed version %s (built as %s)", version, self.version)
        self.installed_version = version

    async def get_local_version(self) -> str:
        return self.installed_version or self.version


def lookup_version(registry: Mapping[str, Any], name: str) -> str:
    """Return the version recorded for ``name`` in a registry mapping.

    Raises:
        RegistryLookupError: If the name is unknown or carries no string version.
    """
    entry = registry.get(name) if isinstance(registry, Mapping) else None
    if not isinstance(entry, Mapping):
        raise RegistryLookupError(f"Extension not found in host registry: {name}")
    version = entry.get("version")
    if not isinstance(version, str) or not version:
        raise RegistryLookupError(f"Extension {name} has no version in host registry")
    return version


class HostRegistryVersionSource:
    """Looks up the installed version in the host's extension registry."""

    def __init__(self, host: HostConfig, extension_name: str):
        self.host = host
        self.extension_name = extension_name

    @property
    def url(self) -> str:
        return f"{self.host.base_url.rstrip('/')}/{self.host.registry_path.lstrip('/')}"

    async def fetch_registry(self) -> Dict[str, Any]:
        """Fetch the full registry mapping from the host."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self.url, headers=self.host.headers) as resp:
                    resp.raise_for_status()
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Host registry request failed: %s", e)
            raise RegistryLookupError(f"Failed to read host registry: {e}") from e

    async def get_local_version(self) -> str:
        registry = await self.fetch_registry()
        version = lookup_version(registry, self.extension_name)
        logger.debug("Host registry reports %s at %s", self.extension_name, version)
        return version


def make_version_source(extension: ExtensionConfig, host: HostConfig, build_version: Optional[str] = None):
    """Pick the version source for an extension.

    A version set in the config wins, then a version embedded by the build,
    then the host registry.
    """
    version = extension.local_version or build_version
    if version:
        return StaticVersionSource(version)
    return HostRegistryVersionSource(host, extension.name)
