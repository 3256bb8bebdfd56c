# storefront/responses.py
import logging
from typing import Any, Generic, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.errors import StorefrontError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Uniform body returned by every endpoint
class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None


def success_response(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body = ApiResponse(success=True, data=jsonable_encoder(data), message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def error_response(exc: StorefrontError, data: Any = None) -> JSONResponse:
    # Status follows the error kind, never the message text
    body = ApiResponse(success=False, error=exc.message, data=jsonable_encoder(data))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    data = {"field": exc.field} if isinstance(exc, ValidationError) and exc.field else None
    return error_response(exc, data)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()]
    return error_response(ValidationError("Missing required fields"), {"fields": fields})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    body = ApiResponse(success=False, error="Internal server error")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
