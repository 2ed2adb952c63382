# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Host readiness gate.

The host application may still be starting when the updater comes up. Before
the first check, probe the host a bounded number of times.
"""

import asyncio
import logging
from typing import Awaitable, Callable

import aiohttp

from .config import HostConfig
from .errors import HostNotReadyError

logger = logging.getLogger(__name__)


async def wait_until_ready(
    probe: Callable[[], Awaitable[bool]],
    attempts: int = 30,
    interval: float = 1.0,
) -> int:
    """Await ``probe`` until it returns True.

    Exceptions raised by the probe count as "not ready yet".

    Returns:
        The number of attempts used.

    Raises:
        HostNotReadyError: If the probe never succeeded.
    """
    for attempt in range(1, attempts + 1):
        try:
            if await probe():
                logger.debug("Host ready after %d attempt(s)", attempt)
                return attempt
        except Exception as e:
            logger.debug("Readiness probe %d/%d failed: %s", attempt, attempts, e)

        if attempt < attempts:
            await asyncio.sleep(interval)

    raise HostNotReadyError(f"Host not ready after {attempts} attempts")


def http_probe(host: HostConfig) -> Callable[[], Awaitable[bool]]:
    """Build a probe that succeeds once the host answers HTTP requests."""

    async def _probe() -> bool:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                host.base_url,
                headers=host.headers,
                timeout=aiohttp.ClientTimeout(total=5),
            ) as resp:
                return resp.status < 500

    return _probe
