# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater Service

Wires configuration, remote clients and the update sessions together and owns
the most recent check result.

Startup flow:
  1. Wait (bounded) until the host application answers
  2. Run one update check

After a successful update the service "reloads" by running a fresh check,
which picks up the newly installed version from the host (or, for a
build-time version, the version that was just applied).
"""

import logging
from typing import Awaitable, Callable, Optional

from .config import Config
from .errors import HostNotReadyError, UpdaterError
from .executor import UpdateExecutorClient
from .presentation import ConfirmationPrompt, StatusBoard
from .readiness import http_probe, wait_until_ready
from .registry import StaticVersionSource, make_version_source
from .remote import RemoteSourceClient
from .session import (
    OutcomeKind,
    UpdateCheckResult,
    UpdateCheckSession,
    UpdateExecutionSession,
    UpdateOutcome,
)

logger = logging.getLogger(__name__)


class UpdaterService:
    """Owns the update workflow for one extension.

    Collaborators default to the real HTTP clients built from ``config`` and
    can be replaced (e.g. in tests).
    """

    def __init__(
        self,
        config: Config,
        sink: Optional[StatusBoard] = None,
        version_source=None,
        remote=None,
        executor=None,
        readiness_probe: Optional[Callable[[], Awaitable[bool]]] = None,
        build_version: Optional[str] = None,
    ):
        self.config = config
        self.sink = sink if sink is not None else StatusBoard()
        self.version_source = version_source or make_version_source(
            config.extension, config.host, build_version=build_version
        )
        self.remote = remote or RemoteSourceClient(config.remote)
        self.executor = executor or UpdateExecutorClient(config.host)
        self.readiness_probe = readiness_probe or http_probe(config.host)

        self.check_session = UpdateCheckSession(
            self.version_source,
            self.remote,
            self.sink,
            pin_reference=config.remote.pin_reference,
            on_remote_error=config.check.on_remote_error,
        )
        self.execution_session = UpdateExecutionSession(
            self.remote,
            self.executor,
            prompt=None,
            sink=self.sink,
            extension_name=config.extension.name,
            global_scope=config.extension.global_scope,
            reload_hook=self.reload,
            reload_delay=config.host.reload_delay,
        )
        self.started = False

    @property
    def result(self) -> Optional[UpdateCheckResult]:
        """Most recent check result, if any."""
        return self.check_session.result

    @property
    def last_outcome(self) -> Optional[UpdateOutcome]:
        return self.execution_session.last_outcome

    async def start(self) -> None:
        """Wait for the host, then run the startup check if enabled."""
        try:
            await wait_until_ready(
                self.readiness_probe,
                attempts=self.config.host.ready_attempts,
                interval=self.config.host.ready_interval,
            )
        except HostNotReadyError as e:
            logger.warning("%s; checking anyway", e)

        if self.config.check.run_on_startup:
            await self.check()
        self.started = True
        logger.info("Updater service started for %s", self.config.extension.name)

    async def stop(self) -> None:
        await self.execution_session.cancel_pending_reload()
        self.started = False
        logger.info("Updater service stopped")

    async def check(self) -> UpdateCheckResult:
        """Run one update check."""
        return await self.check_session.run()

    async def apply(self, prompt: ConfirmationPrompt) -> UpdateOutcome:
        """Run the update flow against the most recent check result.

        Raises:
            UpdateInProgressError: If an update is already running.
            UpdaterError: If no check has completed yet.
        """
        if self.result is None:
            raise UpdaterError("No update check has completed yet")
        return await self.execution_session.run(self.result, prompt=prompt)

    async def reload(self) -> None:
        """Refresh state after the host applied an update.

        A build-time version source cannot observe the update, so it is told
        the version that was just applied before the check runs again.
        """
        logger.info("Reloading extension state")
        outcome = self.last_outcome
        if (
            outcome is not None
            and outcome.kind is OutcomeKind.SUCCEEDED
            and isinstance(self.version_source, StaticVersionSource)
        ):
            self.version_source.record_installed(outcome.target_version)
        await self.check()


# =============================================================================
# MODULE-LEVEL INSTANCE
# =============================================================================

# Singleton instance, initialized during app startup
_updater_service: Optional[UpdaterService] = None


def get_updater_service() -> Optional[UpdaterService]:
    """Get the global UpdaterService instance."""
    return _updater_service


async def init_updater_service(config: Config, **kwargs) -> UpdaterService:
    """Initialize and start the global UpdaterService.

    Args:
        config: Updater configuration.
        **kwargs: Collaborator overrides passed to UpdaterService.

    Returns:
        The started UpdaterService instance.
    """
    global _updater_service
    _updater_service = UpdaterService(config, **kwargs)
    await _updater_service.start()
    return _updater_service


async def shutdown_updater_service() -> None:
    """Stop and clean up the global UpdaterService."""
    global _updater_service
    if _updater_service:
        await _updater_service.stop()
        _updater_service = None
