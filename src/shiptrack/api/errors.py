"""
shiptrack.api.errors

Exception handlers mapping service errors onto HTTP responses.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from shiptrack.errors import InternalError, ServiceError
from shiptrack.observability.logging import get_logger

log = get_logger(__name__)


async def _service_error(_: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _store_error(_: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Unexpected store failures are logged with the traceback but rendered generically.
    log.exception("store_error", error=str(exc))
    err = InternalError()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _store_error)  # type: ignore[arg-type]
