# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Update Sessions

Two sessions drive the self-update workflow:

  UpdateCheckSession
    1. Read the installed version
    2. Resolve the latest commit of the remote source (optional)
    3. Read the remote manifest at that commit
    4. Compare versions and publish the result

  UpdateExecutionSession
    1. Load the changelog excerpt between installed and remote versions
    2. Ask the operator to confirm
    3. Ask the host to apply the update (exactly once, never retried)
    4. Report the outcome and schedule a reload after success

The check result is handed to the execution session explicitly. Neither
session keeps module-level state.
"""

import asyncio
import inspect
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from .changelog import CHANGELOG_UNAVAILABLE, extract_changelog
from .errors import ExecutorError, FetchError, ParseError, UpdateCancelled, UpdateInProgressError
from .presentation import ConfirmationPrompt, PresentationSink
from .versioning import is_newer_version

logger = logging.getLogger(__name__)

# Remote version assumed when the manifest cannot be read
UNKNOWN_REMOTE_VERSION = "0.0.0"

REMOTE_ERROR_DEGRADE = "degrade"
REMOTE_ERROR_SURFACE = "surface"


# =============================================================================
# DATA MODELS
# =============================================================================

class CheckState(str, Enum):
    """States of an update check."""
    IDLE = "idle"
    CHECKING = "checking"
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    CHECK_FAILED = "check_failed"


class OutcomeKind(str, Enum):
    """Terminal results of an update attempt."""
    UP_TO_DATE = "up_to_date"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ExecutionState(str, Enum):
    """States of an update attempt."""
    IDLE = "idle"
    FETCHING_CHANGELOG = "fetching_changelog"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    UPDATING = "updating"
    UP_TO_DATE = "up_to_date"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class UpdateCheckResult:
    """Outcome of one update check."""
    local_version: Optional[str]
    remote_version: str
    is_update_available: bool
    state: CheckState
    reference: Optional[str] = None
    error: Optional[str] = None  # set when the remote could not be read
    checked_at: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["state"] = self.state.value
        return d


@dataclass(frozen=True)
class UpdateOutcome:
    """Outcome of one update attempt."""
    kind: OutcomeKind
    reason: Optional[str] = None
    target_version: Optional[str] = None
    excerpt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d


# =============================================================================
# UPDATE CHECK
# =============================================================================

class UpdateCheckSession:
    """Runs one update check per call to ``run()``.

    There is no polling or retry loop; callers decide when to check again.

    Usage:
        session = UpdateCheckSession(version_source, remote, sink)
        result = await session.run()
    """

    def __init__(
        self,
        version_source,
        remote,
        sink: PresentationSink,
        pin_reference: bool = True,
        on_remote_error: str = REMOTE_ERROR_DEGRADE,
    ):
        """Initialize the check session.

        Args:
            version_source: Object with ``async get_local_version() -> str``.
            remote: RemoteSourceClient (or compatible) for the manifest.
            sink: Where the result is displayed.
            pin_reference: Resolve the latest commit and fetch at that commit.
            on_remote_error: "degrade" treats an unreadable manifest as
                version 0.0.0; "surface" fails the check instead.
        """
        if on_remote_error not in (REMOTE_ERROR_DEGRADE, REMOTE_ERROR_SURFACE):
            raise ValueError(f"Unknown remote error policy: {on_remote_error}")
        self.version_source = version_source
        self.remote = remote
        self.sink = sink
        self.pin_reference = pin_reference
        self.on_remote_error = on_remote_error

        self.state = CheckState.IDLE
        self.result: Optional[UpdateCheckResult] = None
        self.last_local_version: Optional[str] = None

    async def run(self) -> UpdateCheckResult:
        """Check for an update and publish the result. Never raises."""
        logger.info("Checking for updates...")
        self.state = CheckState.CHECKING
        self.sink.set_status_text("Checking for updates...")

        try:
            local_version = await self.version_source.get_local_version()
            self.last_local_version = local_version
            logger.info("Local version: %s", local_version)

            reference = None
            if self.pin_reference:
                reference = await self.remote.fetch_latest_reference()

            remote_version, error = await self._read_remote_version(reference)
            available = is_newer_version(remote_version, local_version)

            result = UpdateCheckResult(
                local_version=local_version,
                remote_version=remote_version,
                is_update_available=available,
                state=CheckState.UPDATE_AVAILABLE if available else CheckState.UP_TO_DATE,
                reference=reference,
                error=error,
            )
            if available:
                logger.info("Update available: %s -> %s", local_version, remote_version)
            else:
                logger.info("Already up to date (%s)", local_version)
        except Exception as e:
            logger.error("Update check failed: %s", e)
            result = UpdateCheckResult(
                local_version=self.last_local_version,
                remote_version=UNKNOWN_REMOTE_VERSION,
                is_update_available=False,
                state=CheckState.CHECK_FAILED,
                error=str(e),
            )

        self.state = result.state
        self.result = result
        self._publish(result)
        return result

    async def _read_remote_version(self, reference: Optional[str]):
        try:
            return await self.remote.fetch_manifest_version(reference), None
        except (FetchError, ParseError) as e:
            if self.on_remote_error == REMOTE_ERROR_SURFACE:
                raise
            logger.warning("Could not read remote manifest, assuming no update: %s", e)
            return UNKNOWN_REMOTE_VERSION, str(e)

    def _publish(self, result: UpdateCheckResult) -> None:
        local = result.local_version or "unknown"
        if result.state is CheckState.CHECK_FAILED:
            self.sink.set_status_text(f"Current version: {local} (update check failed)")
            self.sink.set_availability_banner(False)
            return

        if result.error:
            self.sink.set_status_text(f"Current version: {local} (update source unavailable)")
        else:
            self.sink.set_status_text(f"Current version: {local}")
        self.sink.set_availability_banner(result.is_update_available, result.remote_version)


# =============================================================================
# UPDATE EXECUTION
# =============================================================================

class UpdateExecutionSession:
    """Confirms and applies one update per call to ``run()``.

    Single-flight: while a run is active, further calls raise
    ``UpdateInProgressError`` and never reach the update executor.
    """

    def __init__(
        self,
        remote,
        executor,
        prompt: Optional[ConfirmationPrompt],
        sink: PresentationSink,
        extension_name: str,
        global_scope: bool = False,
        reload_hook: Optional[Callable[[], Awaitable[None]]] = None,
        reload_delay: float = 2.0,
    ):
        self.remote = remote
        self.executor = executor
        self.prompt = prompt
        self.sink = sink
        self.extension_name = extension_name
        self.global_scope = global_scope
        self.reload_hook = reload_hook
        self.reload_delay = reload_delay

        self.state = ExecutionState.IDLE
        self.last_outcome: Optional[UpdateOutcome] = None
        self._in_flight = False
        self._reload_task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def run(
        self,
        result: UpdateCheckResult,
        prompt: Optional[ConfirmationPrompt] = None,
    ) -> UpdateOutcome:
        """Run the confirm -> update -> report flow.

        Args:
            result: The check result the operator is acting on.
            prompt: Overrides the session's confirmation prompt for this run.

        Raises:
            UpdateInProgressError: If another run is still active.
        """
        if self._in_flight:
            logger.warning("Update of %s already in progress, ignoring trigger", self.extension_name)
            raise UpdateInProgressError("Update already in progress")

        self._in_flight = True
        try:
            outcome = await self._run(result, prompt or self.prompt)
        finally:
            self._in_flight = False

        self.last_outcome = outcome
        self.state = ExecutionState(outcome.kind.value)
        return outcome

    async def _run(self, result: UpdateCheckResult, prompt: Optional[ConfirmationPrompt]) -> UpdateOutcome:
        target = result.remote_version
        if not result.is_update_available:
            logger.info("Update requested without a known newer version; the host will re-validate")

        try:
            self.state = ExecutionState.FETCHING_CHANGELOG
            excerpt = await self._load_excerpt(result)

            self.state = ExecutionState.AWAITING_CONFIRMATION
            if not await self._confirm(prompt, result, excerpt):
                logger.info("Update of %s cancelled by operator", self.extension_name)
                return UpdateOutcome(OutcomeKind.CANCELLED, target_version=target, excerpt=excerpt)

            self.state = ExecutionState.UPDATING
            self.sink.set_busy_indicator(True)
            try:
                response = await self.executor.update(self.extension_name, self.global_scope)
            except ExecutorError as e:
                logger.error("Update of %s failed: %s", self.extension_name, e)
                self.sink.notify("error", f"Update failed: {e}")
                return UpdateOutcome(OutcomeKind.FAILED, reason=str(e), target_version=target, excerpt=excerpt)
            except Exception as e:
                logger.exception("Update of %s failed unexpectedly: %s", self.extension_name, e)
                self.sink.notify("error", f"Update failed: {e}")
                return UpdateOutcome(OutcomeKind.FAILED, reason=str(e), target_version=target, excerpt=excerpt)

            if response.is_up_to_date:
                logger.info("%s is already up to date", self.extension_name)
                self.sink.notify("info", f"{self.extension_name} is already up to date")
                self.sink.set_availability_banner(False)
                return UpdateOutcome(OutcomeKind.UP_TO_DATE, target_version=target, excerpt=excerpt)

            logger.info("Update of %s to %s complete", self.extension_name, target)
            self.sink.notify("success", f"{self.extension_name} updated to {target}. Reloading...")
            self.sink.set_status_text(f"Updated to {target}")
            self.sink.set_availability_banner(False)
            self._schedule_reload()
            return UpdateOutcome(OutcomeKind.SUCCEEDED, target_version=target, excerpt=excerpt)
        finally:
            self.sink.set_busy_indicator(False)

    async def _load_excerpt(self, result: UpdateCheckResult) -> str:
        try:
            doc = await self.remote.fetch_changelog(result.reference)
        except Exception as e:
            logger.warning("Could not load changelog: %s", e)
            return CHANGELOG_UNAVAILABLE
        return extract_changelog(doc, result.local_version or "", result.remote_version)

    async def _confirm(
        self,
        prompt: Optional[ConfirmationPrompt],
        result: UpdateCheckResult,
        excerpt: str,
    ) -> bool:
        if prompt is None:
            logger.warning("No confirmation prompt configured, not updating")
            return False

        message = (
            f"Update {self.extension_name} from {result.local_version or 'unknown'} "
            f"to {result.remote_version}?\n\n{excerpt}"
        )
        try:
            return bool(await prompt.ask(
                message,
                "confirm",
                {"okButton": "Update", "cancelButton": "Cancel"},
            ))
        except UpdateCancelled:
            return False
        except Exception as e:
            logger.warning("Confirmation prompt rejected: %s", e)
            return False

    def _schedule_reload(self) -> None:
        if self.reload_hook is None:
            return

        async def delayed_reload():
            await asyncio.sleep(self.reload_delay)
            try:
                ret = self.reload_hook()
                if inspect.isawaitable(ret):
                    await ret
            except Exception as e:
                logger.error("Reload after update failed: %s", e)

        self._reload_task = asyncio.create_task(delayed_reload())

    async def cancel_pending_reload(self) -> None:
        """Cancel a reload that has been scheduled but not run yet."""
        if self._reload_task and not self._reload_task.done():
            self._reload_task.cancel()
            try:
                await self._reload_task
            except asyncio.CancelledError:
                pass
        self._reload_task = None
