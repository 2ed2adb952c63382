# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Update Executor Client

Asks the host application to update an installed extension. The host does
the actual file replacement; this client only sends the request and reads
back whether anything changed.

The call is not idempotent, so it is never retried here.
"""

import asyncio
import logging

import aiohttp
from pydantic import ValidationError

from .config import HostConfig
from .errors import ExecutorError
from .schemas import ExecutorRequest, ExecutorResponse

logger = logging.getLogger(__name__)


class UpdateExecutorClient:
    """Sends update requests to the host's update endpoint."""

    def __init__(self, host: HostConfig):
        self.host = host

    @property
    def url(self) -> str:
        return f"{self.host.base_url.rstrip('/')}/{self.host.update_path.lstrip('/')}"

    async def update(self, extension_name: str, global_scope: bool = False) -> ExecutorResponse:
        """Request an update of ``extension_name``.

        Args:
            extension_name: Stable identifier of the extension in the host.
            global_scope: Update for all users instead of the current one.

        Returns:
            The host's parsed response.

        Raises:
            ExecutorError: If the request fails, the host answers with a
                non-success status, or the response is malformed.
        """
        payload = ExecutorRequest(extension_name=extension_name, global_scope=global_scope)
        headers = {"Content-Type": "application/json"}
        headers.update(self.host.headers)

        logger.info("Requesting update of %s (global=%s)", extension_name, global_scope)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url,
                    data=payload.model_dump_json(by_alias=True),
                    headers=headers,
                ) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        raise ExecutorError(
                            f"Update failed with status {resp.status}: {body.strip() or resp.reason}",
                            status=resp.status,
                            body=body,
                        )
                    raw = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Update request failed: %s", e)
            raise ExecutorError(f"Update request failed: {e}") from e

        try:
            return ExecutorResponse.model_validate_json(raw)
        except ValidationError as e:
            raise ExecutorError(f"Unexpected response from update executor: {e}") from e
