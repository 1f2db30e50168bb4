"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants used across the codebase (backend
URL, HTTP timeouts and retries, cache location, per-resource TTLs, logging).
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Backend
VERIKEY_API_URL = os.environ.get("VERIKEY_API_URL", "http://localhost:5000").strip()

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", True)
API_TIMEOUT = _env_float("API_TIMEOUT", 15.0)
API_MAX_RETRIES = _env_int("API_MAX_RETRIES", 2)  # total attempts = 1 + retries
API_RETRY_BACKOFF = _env_float("API_RETRY_BACKOFF", 1.0)

# Persistent cache storage
CACHE_DIR = Path(os.environ.get("CACHE_DIR", ".verikey")).expanduser()
CACHE_SWEEP_INTERVAL = _env_float("CACHE_SWEEP_INTERVAL", 300.0)

# Per-resource freshness windows (milliseconds)
KEYS_TTL_MS = _env_int("KEYS_TTL_MS", 30_000)
KEY_DETAIL_TTL_MS = _env_int("KEY_DETAIL_TTL_MS", 60_000)
REQUESTS_TTL_MS = _env_int("REQUESTS_TTL_MS", 30_000)
REQUEST_DETAIL_TTL_MS = _env_int("REQUEST_DETAIL_TTL_MS", 60_000)
PROFILE_TTL_MS = _env_int("PROFILE_TTL_MS", 300_000)
KYC_TTL_MS = _env_int("KYC_TTL_MS", 600_000)
USERS_TTL_MS = _env_int("USERS_TTL_MS", 60_000)
USER_DETAIL_TTL_MS = _env_int("USER_DETAIL_TTL_MS", 300_000)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "console").strip().lower()
