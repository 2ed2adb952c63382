# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Extension Updater Authors

"""
Remote Source, Registry and Executor Client Tests

These tests run the real aiohttp clients against a local aiohttp server.
Run with: pytest tests/test_remote.py -v
"""

import json

import pytest
from aiohttp import web

from extension_updater.config import ExtensionConfig, HostConfig, RemoteConfig
from extension_updater.errors import ExecutorError, FetchError, ParseError, RegistryLookupError
from extension_updater.executor import UpdateExecutorClient
from extension_updater.registry import (
    HostRegistryVersionSource,
    StaticVersionSource,
    lookup_version,
    make_version_source,
)
from extension_updater.remote import RemoteSourceClient, parse_manifest_version

from helpers import serve

REPO = "someone/ext"
SHA = "0123456789abcdef"


def _remote_app(seen):
    async def commits(request):
        seen.append(("commits", request.match_info["branch"], request.headers.copy()))
        return web.json_response({"sha": SHA, "commit": {}})

    async def files(request):
        _, _, ref = request.match_info["repo_ref"].partition("@")
        path = request.match_info["path"]
        seen.append(("file", ref, path, request.headers.copy()))
        if path == "manifest.json":
            return web.json_response({"version": "1.0.4", "name": "ext"})
        if path == "CHANGELOG.md":
            return web.Response(text="## [1.0.4]\nfix\n")
        return web.Response(status=404, text="not found")

    app = web.Application()
    app.router.add_get("/api/repos/someone/ext/commits/{branch}", commits)
    app.router.add_get("/cdn/someone/{repo_ref}/{path:.*}", files)
    return app


def _client(base: str, **overrides) -> RemoteSourceClient:
    return RemoteSourceClient(RemoteConfig(
        repo=REPO,
        cdn_base=f"{base}/cdn",
        api_base=f"{base}/api",
        **overrides,
    ))


# =============================================================================
# MANIFEST PARSING
# =============================================================================

def test_parse_manifest_version():
    assert parse_manifest_version(b'{"version": "1.2.3", "display_name": "x"}') == "1.2.3"


@pytest.mark.parametrize("raw", [
    b"not json",
    b"[1, 2]",
    b'{"name": "no version"}',
    b'{"version": 123}',
])
def test_parse_manifest_version_rejects(raw):
    with pytest.raises(ParseError):
        parse_manifest_version(raw)


def test_file_url_uses_reference_or_branch():
    client = RemoteSourceClient(RemoteConfig(repo=REPO, cdn_base="https://cdn.example/gh/"))

    assert client.file_url("manifest.json", "abc") == "https://cdn.example/gh/someone/ext@abc/manifest.json"
    assert client.file_url("/manifest.json") == "https://cdn.example/gh/someone/ext@main/manifest.json"


# =============================================================================
# REMOTE SOURCE CLIENT
# =============================================================================

@pytest.mark.asyncio
async def test_fetch_reference_and_pinned_files():
    seen = []
    async with serve(_remote_app(seen)) as base:
        client = _client(base)
        ref = await client.fetch_latest_reference()
        version = await client.fetch_manifest_version(ref)
        changelog = await client.fetch_changelog(ref)

    assert ref == SHA
    assert version == "1.0.4"
    assert changelog.startswith("## [1.0.4]")
    file_refs = [entry[1] for entry in seen if entry[0] == "file"]
    assert file_refs == [SHA, SHA]


@pytest.mark.asyncio
async def test_requests_disable_caching():
    seen = []
    async with serve(_remote_app(seen)) as base:
        client = _client(base, github_token="tok")
        ref = await client.fetch_latest_reference()
        await client.fetch_file("manifest.json", ref)

    for entry in seen:
        headers = entry[-1]
        assert headers["Cache-Control"] == "no-cache"
        assert headers["Pragma"] == "no-cache"
    assert seen[0][2]["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_fetch_file_not_found_raises_fetch_error():
    async with serve(_remote_app([])) as base:
        client = _client(base)
        with pytest.raises(FetchError) as exc_info:
            await client.fetch_file("missing.json", SHA)

    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_fetch_connection_refused_raises_fetch_error():
    client = RemoteSourceClient(RemoteConfig(repo=REPO, cdn_base="http://127.0.0.1:1"))

    with pytest.raises(FetchError):
        await client.fetch_file("manifest.json", SHA)


@pytest.mark.asyncio
async def test_reference_without_sha_raises_fetch_error():
    async def commits(request):
        return web.json_response({"message": "Not Found"})

    app = web.Application()
    app.router.add_get("/api/repos/someone/ext/commits/main", commits)
    async with serve(app) as base:
        with pytest.raises(FetchError):
            await _client(base).fetch_latest_reference()


# =============================================================================
# LOCAL VERSION SOURCES
# =============================================================================

def test_lookup_version():
    registry = {"ext": {"version": "1.0.2"}, "broken": {"name": "x"}}

    assert lookup_version(registry, "ext") == "1.0.2"
    with pytest.raises(RegistryLookupError):
        lookup_version(registry, "unknown")
    with pytest.raises(RegistryLookupError):
        lookup_version(registry, "broken")


def test_make_version_source_prefers_embedded_version():
    host = HostConfig()

    assert isinstance(make_version_source(ExtensionConfig(local_version="1.0.0"), host), StaticVersionSource)
    assert isinstance(make_version_source(ExtensionConfig(), host, build_version="1.0.1"), StaticVersionSource)
    assert isinstance(make_version_source(ExtensionConfig(), host), HostRegistryVersionSource)


@pytest.mark.asyncio
async def test_host_registry_lookup():
    async def versions(request):
        return web.json_response({"ext": {"version": "1.0.2"}})

    app = web.Application()
    app.router.add_get("/api/extensions/versions", versions)
    async with serve(app) as base:
        source = HostRegistryVersionSource(HostConfig(base_url=base), "ext")
        assert await source.get_local_version() == "1.0.2"

        missing = HostRegistryVersionSource(HostConfig(base_url=base), "other")
        with pytest.raises(RegistryLookupError):
            await missing.get_local_version()


@pytest.mark.asyncio
async def test_host_registry_unreachable():
    source = HostRegistryVersionSource(HostConfig(base_url="http://127.0.0.1:1"), "ext")

    with pytest.raises(RegistryLookupError):
        await source.get_local_version()


# =============================================================================
# UPDATE EXECUTOR CLIENT
# =============================================================================

def _executor_app(received, status=200, body=None):
    async def update(request):
        received.append((await request.json(), request.headers.copy()))
        if status >= 400:
            return web.Response(status=status, text=body or "")
        return web.json_response(body if body is not None else {"isUpToDate": False})

    app = web.Application()
    app.router.add_post("/api/extensions/update", update)
    return app


@pytest.mark.asyncio
async def test_executor_sends_name_and_scope():
    received = []
    async with serve(_executor_app(received)) as base:
        client = UpdateExecutorClient(HostConfig(base_url=base, headers={"X-CSRF-Token": "t"}))
        response = await client.update("ext", global_scope=True)

    assert response.is_up_to_date is False
    payload, headers = received[0]
    assert payload == {"extensionName": "ext", "global": True}
    assert headers["X-CSRF-Token"] == "t"


@pytest.mark.asyncio
async def test_executor_reports_up_to_date():
    received = []
    body = {"isUpToDate": True, "shortCommitHash": "abc1234"}
    async with serve(_executor_app(received, body=body)) as base:
        response = await UpdateExecutorClient(HostConfig(base_url=base)).update("ext")

    assert response.is_up_to_date is True
    assert response.short_commit_hash == "abc1234"


@pytest.mark.asyncio
async def test_executor_error_status_carries_body():
    received = []
    async with serve(_executor_app(received, status=500, body="git pull failed")) as base:
        with pytest.raises(ExecutorError) as exc_info:
            await UpdateExecutorClient(HostConfig(base_url=base)).update("ext")

    assert exc_info.value.status == 500
    assert "git pull failed" in str(exc_info.value)
    assert len(received) == 1


@pytest.mark.asyncio
async def test_executor_malformed_response():
    received = []
    async with serve(_executor_app(received, body={"ok": True})) as base:
        with pytest.raises(ExecutorError):
            await UpdateExecutorClient(HostConfig(base_url=base)).update("ext")


def test_executor_request_shape():
    from extension_updater.schemas import ExecutorRequest

    payload = ExecutorRequest(extension_name="ext", global_scope=False)

    assert json.loads(payload.model_dump_json(by_alias=True)) == {"extensionName": "ext", "global": False}
