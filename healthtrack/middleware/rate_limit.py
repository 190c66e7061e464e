import logging
import os
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from healthtrack.utils.exceptions import error_body

logger = logging.getLogger("healthtrack")

# Applies to PDF upload and manual entry; reads are not limited
UPLOAD_RATE_LIMIT = (os.getenv("UPLOAD_RATE_LIMIT") or "30/minute").strip()

limiter = Limiter(key_func=get_remote_address, default_limits=[])


def retry_after_seconds(request: Request, exc: RateLimitExceeded) -> int:
    """Seconds until the exceeded limit's window resets.

    slowapi records the failing limit and its storage key on
    ``request.state.view_rate_limit``; without it the full window length is
    the safe upper bound.
    """
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is None:
        return exc.limit.limit.get_expiry()
    limit_item, key_args = view_limit
    reset_at, _remaining = request.app.state.limiter.limiter.get_window_stats(limit_item, *key_args)
    return max(1, int(reset_at - time.time()) + 1)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    retry_after = retry_after_seconds(request, exc)
    logger.info({
        "function": "rate_limit",
        "path": str(request.url.path),
        "client": get_remote_address(request),
    })
    return JSONResponse(
        status_code=429,
        headers={"Retry-After": str(retry_after)},
        content=error_body(
            "TOO_MANY_REQUESTS", "Too many requests. Please wait a bit and try again."
        ),
    )
