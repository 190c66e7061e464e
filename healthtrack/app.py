# --- imports (top of healthtrack/app.py) ---
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Resolve paths early so env vars are available before importing the app modules
BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(ENV_PATH, override=False)

from slowapi.errors import RateLimitExceeded  # noqa: E402
from slowapi.middleware import SlowAPIMiddleware  # noqa: E402

from healthtrack.middleware.rate_limit import limiter, rate_limit_handler  # noqa: E402
from healthtrack.middleware.tracing import TRACE_ID_CTX_VAR, TracingMiddleware  # noqa: E402
from healthtrack.models import init_db  # noqa: E402
from healthtrack.routes import chat_routes, nutrition_routes, records_routes  # noqa: E402
from healthtrack.services.nutrition import DEFAULT_CALORIES_PATH, load_nutrition_table  # noqa: E402
from healthtrack.utils.exceptions import (  # noqa: E402
    HealthTrackError,
    handle_domain_error,
    handle_http_exception,
    handle_unhandled_exception,
)

CALORIES_PATH = Path(os.getenv("CALORIES_PATH") or DEFAULT_CALORIES_PATH)
CORS_ORIGINS = [
    origin.strip()
    for origin in (os.getenv("CORS_ORIGINS") or "http://localhost:5173").split(",")
    if origin.strip()
]


# --- logging setup ---
class JsonFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "function": record.funcName,
            "trace_id": TRACE_ID_CTX_VAR.get() or None,
        }
        # Services log dicts; merge them so every key is queryable
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> logging.Logger:
    logger = logging.getLogger("healthtrack")
    logger.setLevel(logging.INFO)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return logger


logger = configure_logging()

# --- app & router setup ---
app = FastAPI(title="HealthTrack Backend", version="0.1.0")

# Read once here; a missing or broken table stops the process
app.state.nutrition_table = load_nutrition_table(CALORIES_PATH)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(HealthTrackError, handle_domain_error)
app.add_exception_handler(HTTPException, handle_http_exception)
app.add_exception_handler(Exception, handle_unhandled_exception)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _init_db():
    init_db()
    logger.info({
        "function": "startup",
        "meals": len(app.state.nutrition_table),
    })


app.include_router(records_routes.router)
app.include_router(nutrition_routes.router)
app.include_router(chat_routes.router)


@app.get("/api/health")
def health():
    return {"status": "ok"}
