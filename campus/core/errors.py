"""
Error taxonomy shared by the storage gateway, services and routers.

Every error carries a stable ``code`` and an HTTP status. The handlers
registered by :func:`register_exception_handlers` render them as
``{"detail": ..., "code": ...}``.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from campus.core import config

logger = logging.getLogger(__name__)


class LMSError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(LMSError):
    code = "validation_error"
    default_message = "Invalid input"

    def __init__(self, errors: list[dict], message: str | None = None):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class AuthenticationRequired(LMSError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_required"
    default_message = "Authentication required"


class InvalidCredentials(LMSError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class Forbidden(LMSError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Insufficient permissions"


class NotFoundError(LMSError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class ConflictError(LMSError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Resource already exists"


class UniqueConstraintViolation(ConflictError):
    def __init__(self, field: str | None = None, message: str | None = None):
        self.field = field
        if message is None and field:
            message = f"{field} already exists"
        super().__init__(message)


class InvalidTransition(LMSError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"
    default_message = "Transition not allowed"


class TokenError(LMSError):
    code = "token_error"
    default_message = "Invalid or expired reset token"


class TokenNotFound(TokenError):
    code = "token_not_found"


class TokenExpired(TokenError):
    code = "token_expired"


class TokenUsed(TokenError):
    code = "token_used"


def _field_name(loc) -> str:
    # drop the "body"/"query" prefix FastAPI adds
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "__root__"


def errors_from_pydantic(raw_errors) -> list[dict]:
    return [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "invalid")}
        for err in raw_errors
    ]


async def _lms_error_handler(request: Request, exc: LMSError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    err = ValidationError(errors_from_pydantic(exc.errors()))
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if config.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": message, "code": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LMSError, _lms_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
