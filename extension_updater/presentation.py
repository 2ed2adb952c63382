# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Presentation interfaces.

Sessions never render anything themselves. They report through a
``PresentationSink`` and ask the operator through a ``ConfirmationPrompt``.
``StatusBoard`` is an in-memory sink whose state the control surface serves;
``PresetConfirmationPrompt`` answers the prompt with a decision the operator
already made (for example in an HTTP request body).
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .errors import UpdateCancelled

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 20


class PresentationSink(Protocol):
    """Receives status updates for display."""

    def set_status_text(self, text: str) -> None: ...

    def set_availability_banner(self, visible: bool, remote_version: Optional[str] = None) -> None: ...

    def set_busy_indicator(self, visible: bool) -> None: ...

    def notify(self, level: str, message: str) -> None: ...


class ConfirmationPrompt(Protocol):
    """Asks the operator a yes/no question."""

    async def ask(self, message: str, kind: str = "confirm", options: Optional[Dict[str, Any]] = None) -> bool: ...


@dataclass
class StatusBoard:
    """
    In-memory presentation state.

    Thread-safe: written from the event loop, read by API handlers.
    """
    status_text: str = "Loading..."
    banner_visible: bool = False
    banner_version: Optional[str] = None
    busy: bool = False
    notifications: List[Dict[str, str]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def set_status_text(self, text: str) -> None:
        with self._lock:
            self.status_text = text

    def set_availability_banner(self, visible: bool, remote_version: Optional[str] = None) -> None:
        with self._lock:
            self.banner_visible = visible
            self.banner_version = remote_version if visible else None

    def set_busy_indicator(self, visible: bool) -> None:
        with self._lock:
            self.busy = visible

    def notify(self, level: str, message: str) -> None:
        with self._lock:
            self.notifications.append({"level": level, "message": message})
            del self.notifications[:-MAX_NOTIFICATIONS]

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current state for serialization."""
        with self._lock:
            return {
                "status_text": self.status_text,
                "banner_visible": self.banner_visible,
                "banner_version": self.banner_version,
                "busy": self.busy,
                "notifications": list(self.notifications),
            }


class PresetConfirmationPrompt:
    """Answers every question with a fixed decision.

    A declined answer raises ``UpdateCancelled`` like a dismissed dialog.
    """

    def __init__(self, accept: bool):
        self.accept = accept
        self.last_message: Optional[str] = None

    async def ask(self, message: str, kind: str = "confirm", options: Optional[Dict[str, Any]] = None) -> bool:
        self.last_message = message
        if not self.accept:
            logger.debug("Prompt declined: %s", kind)
            raise UpdateCancelled("Operator declined the update")
        return True
