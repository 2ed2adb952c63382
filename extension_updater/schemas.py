# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater Pydantic Schemas

Wire formats for the remote manifest, the host's update executor, and the
control surface API.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REMOTE DOCUMENTS
# =============================================================================

class ManifestDocument(BaseModel):
    """Extension manifest. Only ``version`` is required."""
    version: str = Field(..., description="Declared extension version")

    model_config = ConfigDict(extra="allow", strict=True)


class CommitReference(BaseModel):
    """Commit lookup response from the reference resolution endpoint."""
    sha: str = Field(..., description="Immutable commit identifier")

    model_config = ConfigDict(extra="ignore")


# =============================================================================
# UPDATE EXECUTOR
# =============================================================================

class ExecutorRequest(BaseModel):
    """Body sent to the host's update executor."""
    extension_name: str = Field(..., alias="extensionName")
    global_scope: bool = Field(default=False, alias="global")

    model_config = ConfigDict(populate_by_name=True)


class ExecutorResponse(BaseModel):
    """Structured response from the host's update executor."""
    is_up_to_date: bool = Field(..., alias="isUpToDate")
    short_commit_hash: Optional[str] = Field(default=None, alias="shortCommitHash")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# CONTROL SURFACE
# =============================================================================

class ApplyUpdateRequest(BaseModel):
    """Operator's answer to the update confirmation."""
    confirm: bool = Field(..., description="True to apply the update, False to cancel")


class CheckResultInfo(BaseModel):
    """Result of the most recent update check."""
    state: str
    local_version: Optional[str] = Field(default=None, alias="localVersion")
    remote_version: str = Field(alias="remoteVersion")
    is_update_available: bool = Field(alias="isUpdateAvailable")
    reference: Optional[str] = None
    error: Optional[str] = None
    checked_at: Optional[str] = Field(default=None, alias="checkedAt")

    model_config = ConfigDict(populate_by_name=True)


class OutcomeInfo(BaseModel):
    """Result of an update attempt."""
    kind: str
    reason: Optional[str] = None
    target_version: Optional[str] = Field(default=None, alias="targetVersion")
    excerpt: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class StatusResponse(BaseModel):
    """Presentation state plus the last check result."""
    status_text: str = Field(alias="statusText")
    banner_visible: bool = Field(alias="bannerVisible")
    banner_version: Optional[str] = Field(default=None, alias="bannerVersion")
    busy: bool
    notifications: List[Dict[str, str]] = Field(default_factory=list)
    last_check: Optional[CheckResultInfo] = Field(default=None, alias="lastCheck")
    last_outcome: Optional[OutcomeInfo] = Field(default=None, alias="lastOutcome")

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(default="ok")
    version: str
