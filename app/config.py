"""Configuration classes for the Flask application."""

from __future__ import annotations

import os
import secrets
from pathlib import Path


def _load_secret() -> str:
    """Return the Flask secret key for the current process."""

    secret = os.environ.get("PDF_TOOLKIT_SECRET")
    if secret:
        return secret
    # Generate an unpredictable per-process key for local development.
    return secrets.token_urlsafe(64)


def _output_root() -> Path:
    configured = os.environ.get("PDF_TOOLKIT_OUTPUT_ROOT")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent.parent / "output"


class BaseConfig:
    SECRET_KEY = _load_secret()
    MAX_CONTENT_LENGTH = 200 * 1024 * 1024  # 200 MiB across a whole batch
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Strict"
    CONTENT_STORE = "local"
    OUTPUT_ROOT = _output_root()
    RESPONSE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        "Referrer-Policy": "no-referrer",
    }


class TestingConfig(BaseConfig):
    TESTING = True
    CONTENT_STORE = "memory"


__all__ = ["BaseConfig", "TestingConfig"]
