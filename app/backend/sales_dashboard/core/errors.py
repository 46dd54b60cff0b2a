"""Domain errors raised by the aggregation core and their HTTP mapping."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base class for errors surfaced by dashboard entry points."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidPeriod(DashboardError):
    """Requested (year, month) is not a valid calendar period."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class RepositoryUnavailable(DashboardError):
    """Underlying store failed while reading rows for an aggregation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def _dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    if isinstance(exc, RepositoryUnavailable):
        logger.error("Dashboard request %s failed: %s", request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors to JSON responses with a ``detail`` field."""

    app.add_exception_handler(DashboardError, _dashboard_error_handler)
