"""HTTP error boundary.

Every failure leaves the API as
``{"success": false, "error": {"kind": ..., "message": ...}}`` with the
status code of its kind. Unexpected exceptions are logged with their cause
and reported as a generic ``internal`` error.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from logistics.shared.errors import LogisticsError, ValidationFailed, classify

logger = structlog.get_logger(__name__)


def error_response(error: LogisticsError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.to_dict()},
    )


async def _logistics_error(request: Request, exc: LogisticsError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        kind=exc.kind,
        message=exc.message,
    )
    return error_response(exc)


async def _protean_error(request: Request, exc: Exception) -> JSONResponse:
    return await _logistics_error(request, classify(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return await _logistics_error(request, ValidationFailed(problems))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    return error_response(classify(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LogisticsError, _logistics_error)
    app.add_exception_handler(ValidationError, _protean_error)
    app.add_exception_handler(ObjectNotFoundError, _protean_error)
    app.add_exception_handler(ExpectedVersionError, _protean_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
