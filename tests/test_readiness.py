# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 The Extension Updater Authors

"""
Readiness Gate Tests

Run with: pytest tests/test_readiness.py -v
"""

import pytest
from aiohttp import web

from extension_updater.config import HostConfig
from extension_updater.errors import HostNotReadyError
from extension_updater.readiness import http_probe, wait_until_ready

from helpers import serve


@pytest.mark.asyncio
async def test_ready_on_first_probe():
    async def probe():
        return True

    assert await wait_until_ready(probe, attempts=3, interval=0) == 1


@pytest.mark.asyncio
async def test_retries_until_ready():
    answers = iter([False, ConnectionError("refused"), True])

    async def probe():
        answer = next(answers)
        if isinstance(answer, Exception):
            raise answer
        return answer

    assert await wait_until_ready(probe, attempts=5, interval=0) == 3


@pytest.mark.asyncio
async def test_gives_up_after_attempts():
    calls = []

    async def probe():
        calls.append(1)
        return False

    with pytest.raises(HostNotReadyError):
        await wait_until_ready(probe, attempts=4, interval=0)

    assert len(calls) == 4


@pytest.mark.asyncio
async def test_http_probe_against_running_host():
    async def index(request):
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/", index)
    async with serve(app) as base:
        probe = http_probe(HostConfig(base_url=f"{base}/"))
        assert await probe() is True


@pytest.mark.asyncio
async def test_http_probe_unreachable_host_is_not_ready():
    probe = http_probe(HostConfig(base_url="http://127.0.0.1:1"))

    with pytest.raises(HostNotReadyError):
        await wait_until_ready(probe, attempts=2, interval=0)
