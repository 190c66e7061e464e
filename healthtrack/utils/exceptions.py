from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from healthtrack.middleware.tracing import TRACE_ID_CTX_VAR


class HealthTrackError(Exception):
    """Base for failures that are reported back to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class MissingInput(HealthTrackError):
    code = "MISSING_INPUT"


class UnreadableDocument(HealthTrackError):
    code = "UNREADABLE_DOCUMENT"


class IncompleteExtraction(HealthTrackError):
    """Required fields were absent or failed numeric coercion.

    ``details`` carries ``missing``, ``invalid`` and the ``partial`` raw
    mapping so the caller can prefill a manual-entry form.
    """

    code = "INCOMPLETE_EXTRACTION"

    def __init__(self, message: str, missing=None, invalid=None, partial=None):
        self.missing = list(missing or [])
        self.invalid = list(invalid or [])
        self.partial = dict(partial or {})
        super().__init__(
            message,
            details={"missing": self.missing, "invalid": self.invalid, "partial": self.partial},
        )


class RecordNotFound(HealthTrackError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class StoreUnavailable(HealthTrackError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORE_UNAVAILABLE"


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "UNPROCESSABLE_ENTITY",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


def error_body(code: str, message: str, details: Any = None) -> dict:
    body = {"code": code, "message": message, "trace_id": TRACE_ID_CTX_VAR.get()}
    if details is not None:
        body["details"] = details
    return body


async def handle_domain_error(request: Request, exc: HealthTrackError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
    )


async def handle_http_exception(request: Request, exc: HTTPException):
    detail: Any = exc.detail
    message = detail if isinstance(detail, str) else "HTTP error"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(status_to_code(exc.status_code), message, detail),
        headers=getattr(exc, "headers", None),
    )


async def handle_unhandled_exception(request: Request, exc: Exception):
    body = error_body("INTERNAL_SERVER_ERROR", "An unexpected error occurred", str(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
