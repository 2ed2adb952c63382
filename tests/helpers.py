# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Extension Updater Authors

"""
Shared test helpers: a local aiohttp server and recording fakes for the
presentation and remote collaborators.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer


@asynccontextmanager
async def serve(app: web.Application):
    """Run ``app`` on a local port and yield its base URL."""
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/")).rstrip("/")
    finally:
        await server.close()


class RecordingSink:
    """Presentation sink that records every call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.status_text: Optional[str] = None
        self.banner = (False, None)
        self.busy = False

    def set_status_text(self, text: str) -> None:
        self.calls.append(("status", text))
        self.status_text = text

    def set_availability_banner(self, visible: bool, remote_version: Optional[str] = None) -> None:
        self.calls.append(("banner", visible, remote_version))
        self.banner = (visible, remote_version)

    def set_busy_indicator(self, visible: bool) -> None:
        self.calls.append(("busy", visible))
        self.busy = visible

    def notify(self, level: str, message: str) -> None:
        self.calls.append(("notify", level, message))

    def busy_calls(self) -> List[bool]:
        return [c[1] for c in self.calls if c[0] == "busy"]

    def notifications(self, level: str) -> List[str]:
        return [c[2] for c in self.calls if c[0] == "notify" and c[1] == level]


class FakeRemote:
    """In-memory remote source."""

    def __init__(
        self,
        manifest_version: Any = "1.0.4",
        changelog: Any = "## [1.0.4]\nfix\n## [1.0.2]\nold",
        reference: Any = "abc123",
    ):
        self.manifest_version = manifest_version
        self.changelog = changelog
        self.reference = reference
        self.requests: List[Dict[str, Any]] = []

    async def fetch_latest_reference(self) -> str:
        self.requests.append({"what": "reference"})
        if isinstance(self.reference, Exception):
            raise self.reference
        return self.reference

    async def fetch_manifest_version(self, reference=None) -> str:
        self.requests.append({"what": "manifest", "reference": reference})
        if isinstance(self.manifest_version, Exception):
            raise self.manifest_version
        return self.manifest_version

    async def fetch_changelog(self, reference=None) -> str:
        self.requests.append({"what": "changelog", "reference": reference})
        if isinstance(self.changelog, Exception):
            raise self.changelog
        return self.changelog
