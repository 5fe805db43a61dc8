from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("beanbook.errors")

_CODES_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "validation_error",
}


class InvalidTransitionError(Exception):
    """Raised when a brewing schedule entry is moved along a forbidden edge."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"cannot change status from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = jsonable_encoder(details)
        super().__init__(payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, (dict, list)) else None
    code = _CODES_BY_STATUS.get(exc.status_code, "http_error")
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=code,
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": errors},
    )


async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return ErrorEnvelope(
        status_code=status.HTTP_409_CONFLICT,
        code="conflict",
        message=str(exc),
        details={"current": exc.current, "requested": exc.requested},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "request.failed",
        extra={"extra_data": {"method": request.method, "path": request.url.path}},
    )
    return ErrorEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="internal_error",
        message="Internal server error",
    )
