import base64
import hashlib
import json
import logging
import os
from typing import Any, List

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from sqlalchemy.types import TypeDecorator, Text

logger = logging.getLogger("healthtrack")

DEV_SECRET = "dev-secret-key-change-me"


def _fernet_for(secret: str) -> Fernet:
    # Fernet wants 32 urlsafe-base64 bytes; derive them from an arbitrary secret
    key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())
    return Fernet(key)


def _secrets_from_env() -> List[str]:
    current = (os.getenv("ENCRYPTION_SECRET") or "").strip()
    if not current:
        if (os.getenv("HEALTHTRACK_ENV") or "").strip().lower() == "production":
            raise RuntimeError("ENCRYPTION_SECRET must be set in production")
        current = DEV_SECRET
    previous = [s.strip() for s in (os.getenv("ENCRYPTION_PREVIOUS_SECRETS") or "").split(",")]
    return [current] + [s for s in previous if s and s != current]


def build_cipher() -> MultiFernet:
    """Encrypt with ENCRYPTION_SECRET; also accept tokens from rotated-out secrets."""
    return MultiFernet([_fernet_for(secret) for secret in _secrets_from_env()])


_CIPHER = build_cipher()


def _decrypt(value: str, column: str) -> Any:
    try:
        return _CIPHER.decrypt(value.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.warning({"function": "decrypt", "column": column, "status": "invalid_token"})
        return None


class EncryptedText(TypeDecorator):
    """Text column stored as a Fernet token."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        return _CIPHER.encrypt(str(value).encode("utf-8")).decode("utf-8")

    def process_result_value(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        return _decrypt(value, "text")


class EncryptedJSON(TypeDecorator):
    """JSON document stored as a Fernet token; values must be JSON-serializable."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        payload = json.dumps(value, sort_keys=True)
        return _CIPHER.encrypt(payload.encode("utf-8")).decode("utf-8")

    def process_result_value(self, value: Any, dialect) -> Any:  # type: ignore[override]
        if value is None:
            return None
        raw = _decrypt(value, "json")
        return json.loads(raw) if raw is not None else None
