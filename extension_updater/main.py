# SPDX-License-Identifier: GPL-3.0-only
# SPDX-FileCopyrightText: Copyright (c) 2026 Andrew Wyatt (Fewtarius)

"""
Extension Updater Main Application

FastAPI control surface for the update workflow. The service checks for an
update once at startup; the operator reads the status and answers the update
confirmation through the API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request

from . import __version__
from .config import load_config, setup_logging
from .errors import UpdateInProgressError, UpdaterError
from .presentation import PresetConfirmationPrompt
from .schemas import (
    ApplyUpdateRequest,
    CheckResultInfo,
    HealthResponse,
    OutcomeInfo,
    StatusResponse,
)
from .service import UpdaterService, init_updater_service, shutdown_updater_service

config = load_config()
setup_logging(config.logging)
logger = logging.getLogger(__name__)


def _service(request: Request) -> UpdaterService:
    service = getattr(request.app.state, "updater", None)
    if service is None or not service.started:
        raise HTTPException(status_code=503, detail="Service not ready")
    return service


def create_app(service: Optional[UpdaterService] = None) -> FastAPI:
    """Build the API app.

    Args:
        service: Pre-built service to serve. If None, one is created from the
                 loaded configuration on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown."""
        logger.info("Extension updater starting up...")
        if service is None:
            app.state.updater = await init_updater_service(config)
        else:
            app.state.updater = service
            await service.start()

        yield

        logger.info("Extension updater shutting down...")
        if service is None:
            await shutdown_updater_service()
        else:
            await service.stop()
        app.state.updater = None

    app = FastAPI(
        title="Extension Updater",
        description="Self-update workflow for host extensions",
        version=__version__,
        lifespan=lifespan,
    )

    # =========================================================================
    # HEALTH
    # =========================================================================

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        """Health check. Reports "starting" until the startup check finished."""
        svc = getattr(request.app.state, "updater", None)
        status = "ok" if svc is not None and svc.started else "starting"
        return HealthResponse(status=status, version=__version__)

    # =========================================================================
    # UPDATE ENDPOINTS
    # =========================================================================

    @app.get("/v1/update/status", response_model=StatusResponse)
    async def update_status(request: Request):
        """Current presentation state and the last check result."""
        svc = _service(request)
        snapshot = svc.sink.snapshot()
        return StatusResponse(
            **snapshot,
            last_check=CheckResultInfo(**svc.result.to_dict()) if svc.result else None,
            last_outcome=OutcomeInfo(**svc.last_outcome.to_dict()) if svc.last_outcome else None,
        )

    @app.post("/v1/update/check", response_model=CheckResultInfo)
    async def check_for_update(request: Request):
        """Run one update check now."""
        svc = _service(request)
        result = await svc.check()
        return CheckResultInfo(**result.to_dict())

    @app.post("/v1/update/apply", response_model=OutcomeInfo)
    async def apply_update(body: ApplyUpdateRequest, request: Request):
        """
        Apply the pending update.

        The request body answers the update confirmation. Only one update
        runs at a time; concurrent requests get 409.
        """
        svc = _service(request)
        try:
            outcome = await svc.apply(PresetConfirmationPrompt(body.confirm))
        except UpdateInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except UpdaterError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return OutcomeInfo(**outcome.to_dict())

    return app


app = create_app()


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "extension_updater.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
        log_level=config.logging.level.lower(),
    )
