"""
freemodule/security/rate_limit.py
Per-IP request limits

One slowapi Limiter is shared by every router. Its counters live in the
storage named by RATE_LIMIT_STORAGE_URI, read once at import: the default
memory:// storage is private to one process, so a multi-worker deployment
needs a shared backend such as redis://. Whether limits apply is decided per
application from its own settings.
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from freemodule.config.settings import rate_limit_storage_uri
from freemodule.errors import ErrorCode, error_body

STORAGE_URI = rate_limit_storage_uri()

limiter = Limiter(key_func=get_remote_address, storage_uri=STORAGE_URI)

LOGIN_LIMIT = "5/minute"
LOGIN_MESSAGE = "Too many login attempts. Please try again later."

SIGNUP_LIMIT = "10/15 minutes"
SIGNUP_MESSAGE = "Too many signup attempts. Please wait before retrying."

ACTION_LIMIT = "30/5 minutes"
ACTION_MESSAGE = "Too many actions, please slow down."


def limits_disabled(request: Request) -> bool:
    return not request.app.state.settings.rate_limit_enabled


login_limit = limiter.limit(LOGIN_LIMIT, error_message=LOGIN_MESSAGE, exempt_when=limits_disabled)
signup_limit = limiter.limit(SIGNUP_LIMIT, error_message=SIGNUP_MESSAGE, exempt_when=limits_disabled)
action_limit = limiter.limit(ACTION_LIMIT, error_message=ACTION_MESSAGE, exempt_when=limits_disabled)


def storage_scheme(uri: str) -> str:
    """The backend name of a storage URI, without credentials or host."""
    return uri.split("://", 1)[0] if "://" in uri else uri


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi's exception in the standard error envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Too many requests"
    return JSONResponse(
        status_code=429,
        content=error_body(ErrorCode.RATE_LIMITED, message),
    )
