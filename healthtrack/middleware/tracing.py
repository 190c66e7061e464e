import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

TRACE_ID_CTX_VAR: ContextVar[str] = ContextVar("trace_id", default="")

TRACE_HEADER = "x-trace-id"


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a trace id. An inbound x-trace-id header is reused
    so a proxy can correlate its own logs; otherwise a fresh UUID is minted.
    The id lives in a context variable for the log formatter and the error
    envelope.
    """
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = (request.headers.get(TRACE_HEADER) or "").strip()
        trace_id = inbound[:64] if inbound else str(uuid.uuid4())
        token = TRACE_ID_CTX_VAR.set(trace_id)
        request.state.trace_id = trace_id
        try:
            response = await call_next(request)
        finally:
            TRACE_ID_CTX_VAR.reset(token)

        response.headers[TRACE_HEADER] = trace_id
        return response
