"""Exception handlers rendering every failure in the ``{success, error}`` envelope."""
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from price_monitor.exceptions import (MonitorError, NotFoundError,
                                      PersistenceError, ValidationError)
from price_monitor.providers.core import ProviderErrorMapper, QuoteSourceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _mapper(request: Request) -> ProviderErrorMapper:
    return request.app.state.container.error_mapper()


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, _format_validation_errors(exc))


async def monitor_error_handler(_: Request, exc: MonitorError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return error_response(400, str(exc))
    if isinstance(exc, NotFoundError):
        return error_response(404, str(exc))
    if isinstance(exc, PersistenceError):
        logger.error("Ledger storage failure: %s", exc)
        return error_response(500, "Storage error")
    logger.exception("Unhandled monitor error: %s", exc)
    return error_response(500, "Internal server error")


async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, detail = _mapper(request).to_http(exc, symbol=request.path_params.get("ticker"))
    if status_code >= 500:
        logger.warning("Quote source failure on %s: %s", request.url.path, exc)
    return error_response(status_code, detail)


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(MonitorError, monitor_error_handler)
    app.add_exception_handler(QuoteSourceError, upstream_error_handler)
    app.add_exception_handler(httpx.HTTPError, upstream_error_handler)
    app.add_exception_handler(TimeoutError, upstream_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
