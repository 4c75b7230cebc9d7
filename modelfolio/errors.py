"""
Exception handlers that render every failure in the API envelope:
{"success": false, "message": "..."}
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def _field_errors(exc: RequestValidationError) -> list[dict]:
    items = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None
        # ValueErrors raised by our validators carry the message we want to show
        ctx_error = (err.get("ctx") or {}).get("error")
        if ctx_error is not None:
            message = str(ctx_error)
        elif err.get("type") == "missing" and field:
            message = f"{field} is required"
        else:
            message = err.get("msg", "Invalid value")
        items.append({"field": field, "message": message})
    return items


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _field_errors(exc)
    message = errors[0]["message"] if errors else "Validation failed"
    return JSONResponse(status_code=400, content=jsonable_encoder(error_body(message, errors=errors)))


async def store_exception_handler(request: Request, exc: PyMongoError):
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=error_body(str(exc)))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PyMongoError, store_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
