from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from embedding_wizard.errors import (
    BaselineUnavailableError,
    InvalidTransitionError,
    SubmissionInFlightError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "type": "validation_error"},
        )

    @app.exception_handler(InvalidTransitionError)
    async def transition_error_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "type": "invalid_transition"},
        )

    @app.exception_handler(SubmissionInFlightError)
    async def in_flight_error_handler(request: Request, exc: SubmissionInFlightError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "type": "submission_in_flight"},
        )

    @app.exception_handler(BaselineUnavailableError)
    async def baseline_error_handler(request: Request, exc: BaselineUnavailableError):
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc), "type": "baseline_unavailable"},
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        # Don't expose stack traces in production
        from embedding_wizard.config import settings

        detail = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(
            status_code=500,
            content={"detail": detail, "type": "internal_error"},
        )
