"""RFC 7807 Problem Details error handling and the domain error taxonomy."""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
    ):
        super().__init__(detail)
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"


class DomainError(ProblemDetailError):
    """Business-rule failure. Subclasses fix the status and title."""

    status_code: int = 400
    default_title: str = "Bad Request"

    def __init__(self, detail: str):
        super().__init__(status=self.status_code, title=self.default_title, detail=detail)


class AccessDeniedError(DomainError):
    status_code = 403
    default_title = "Access Forbidden"


class ResourceNotFoundError(DomainError):
    status_code = 404
    default_title = "Resource not found"


class ResourceAlreadyExistsError(DomainError):
    status_code = 409
    default_title = "Resource already exists"


class InvalidTaskStateError(DomainError):
    status_code = 409
    default_title = "Resource cannot be modified"


class DomainValidationError(DomainError):
    """Illegal argument that passed shape validation (e.g. granting OWNER)."""

    status_code = 400
    default_title = "Invalid Parameter Value"


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    if isinstance(exc, DomainError):
        logger.warning(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail
        )
    return JSONResponse(
        status_code=exc.status,
        content={
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": exc.detail if isinstance(exc.detail, str) else "Error",
            "status": exc.status_code,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "type": "about:blank",
            "title": "Validation Error",
            "status": 422,
            "detail": jsonable_encoder(exc.errors()),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )
