from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from hospital_gateway.config import Settings


def rate_limit_string(settings: Settings) -> str:
    return f"{settings.RATE_LIMIT_MAX} per {settings.RATE_LIMIT_WINDOW_SECONDS} seconds"


def create_limiter(settings: Settings) -> Limiter:
    """Per-client-IP limiter; the proxy route applies ``rate_limit_string`` through it."""
    if settings.RATE_LIMIT_STORAGE_URI:
        # Shared counters across gateway replicas (e.g. redis://redis:6379)
        return Limiter(key_func=get_remote_address, storage_uri=settings.RATE_LIMIT_STORAGE_URI)
    # Single process: in-memory storage
    return Limiter(key_func=get_remote_address)
