"""Rate limiting for sensitive endpoints (slowapi)."""

from typing import Callable

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from adminpanel.config import get_settings

# name -> (production requests, development requests) per minute
RATE_LIMITS: dict[str, tuple[int, int]] = {
    "auth": (5, 100),
    "auth_sign_in": (3, 100),
    "auth_sign_up": (2, 100),
    "password_reset": (2, 100),
    "admin": (30, 1000),
}


def client_ip(request: Request) -> str:
    """Identify the caller, preferring proxy headers over the peer address."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return get_remote_address(request)
    return "anonymous"


def limit_for(name: str) -> str:
    production, development = RATE_LIMITS[name]
    requests = production if get_settings().is_production else development
    return f"{requests}/minute"


def rate_limit(name: str) -> Callable[[], str]:
    """Dynamic limit evaluated per request so environment changes apply without a restart."""
    def _limit() -> str:
        return limit_for(name)
    return _limit


limiter = Limiter(key_func=client_ip)
