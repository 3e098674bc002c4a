"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a message that is safe to show to the caller. The HTTP
layer renders all of them, and FastAPI's own errors, as ``{"message": ...}``.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException


logger = structlog.get_logger(__name__)


class LegalizError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LegalizError):
    """Missing or malformed input. Nothing was written."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Incomplete or invalid data."


class AuthorizationDenied(LegalizError):
    """Authenticated, but not allowed to perform this write."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied."


class NotFound(LegalizError):
    """Absent, or present but not readable by the caller."""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class ConflictError(LegalizError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict with existing data."


class PersistenceFailure(LegalizError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The request could not be completed due to a server error."


def _message_response(status_code: int, message, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LegalizError)
    async def _legaliz_error(request: Request, exc: LegalizError):
        return _message_response(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        return _message_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(request: Request, exc: SQLAlchemyError):
        # Writes that commit outside unit_of_work land here; the session is rolled
        # back when get_db closes it
        logger.error("storage_error", error=str(exc), error_type=type(exc).__name__)
        failure = PersistenceFailure()
        return _message_response(failure.status_code, failure.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
        fields = [f for f in fields if f]
        message = "Incomplete or invalid data."
        if fields:
            message = f"{message} Check: {', '.join(sorted(set(fields)))}."
        return _message_response(status.HTTP_400_BAD_REQUEST, message)
