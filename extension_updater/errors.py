# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater Errors

Exception types raised by the remote clients and update sessions.
"""

from typing import Optional


class UpdaterError(Exception):
    """Base class for all updater errors."""
    pass


class FetchError(UpdaterError):
    """Raised when a remote request does not complete or returns a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(UpdaterError):
    """Raised when a manifest is not valid JSON or lacks a string ``version``."""
    pass


class RegistryLookupError(UpdaterError):
    """Raised when the local version of an extension cannot be resolved."""
    pass


class ExecutorError(UpdaterError):
    """Raised when the update executor call fails or returns a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class UpdateCancelled(UpdaterError):
    """Raised by a confirmation prompt when the operator declines.

    Not a failure: sessions turn it into a ``Cancelled`` outcome.
    """
    pass


class UpdateInProgressError(UpdaterError):
    """Raised when an update is triggered while another one is still running."""
    pass


class HostNotReadyError(UpdaterError):
    """Raised when the host did not become reachable within the allowed attempts."""
    pass
