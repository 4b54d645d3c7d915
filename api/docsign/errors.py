"""
Error taxonomy for the signing service.

Every error carries a machine-checkable ``kind``, the HTTP status it maps to,
a human message and an optional ``detail`` dict that is merged into the JSON
body (e.g. ``bounds`` for out-of-bounds placements, ``page_count`` for a bad
page number).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SigningError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "kind": self.kind, "msg": self.message}
        body.update(self.detail)
        return body


class ValidationError(SigningError):
    kind = "validation_error"
    status_code = 400


class OutOfBoundsError(SigningError):
    kind = "out_of_bounds"
    status_code = 400


class UnauthorizedError(SigningError):
    kind = "unauthorized"
    status_code = 401


class ForbiddenError(SigningError):
    kind = "forbidden"
    status_code = 403


class NotFoundError(SigningError):
    kind = "not_found"
    status_code = 404


class ConflictError(SigningError):
    kind = "conflict"
    status_code = 409


class StorageError(SigningError):
    """PDF load/save failure or a missing original file."""

    kind = "io_error"
    status_code = 500


async def signing_error_handler(request: Request, exc: SigningError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    logger.warning("%s %s: invalid request body %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content={"success": False, "kind": ValidationError.kind, "msg": "Invalid request", "errors": errors},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(SigningError, signing_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
