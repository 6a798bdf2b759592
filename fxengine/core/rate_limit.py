# fxengine/core/rate_limit.py
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from fxengine.core.config import settings as default_settings

limiter = Limiter(key_func=get_remote_address)

# Límite vigente de /convert; create_app lo fija con su RATE_LIMIT.
# Es uno por proceso, igual que el limiter.
_active_limit = default_settings.RATE_LIMIT


def set_rate_limit(value: str) -> None:
    global _active_limit
    _active_limit = value


def current_rate_limit() -> str:
    """slowapi lo evalúa en cada request."""
    return _active_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded", "error": str(exc)},
    )
