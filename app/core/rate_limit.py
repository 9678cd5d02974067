"""Shared rate limiter instance and the request throttle.

Counters live wherever RATE_LIMIT_STORAGE_URI points: the in-process
memory store by default, or a shared Redis/Memcached store when several
API instances must throttle together.

Throttling runs as a router dependency rather than through
SlowAPIMiddleware, so it does not depend on how the app exposes its
route table. Routes mounted without it (e.g. /health) are exempt.
"""

import logging

from fastapi import Request
from limits import parse_many
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_STORAGE_URI,
    LOGIN_MAX_FAILURES,
    LOGIN_LOCKOUT_MINUTES,
)
from app.core.errors import TooManyRequests
from app.core.security import bearer_token, decode_access_token

log = logging.getLogger("rate_limit")


def get_user_or_ip(request: Request) -> str:
    """Rate limit by user ID if authenticated, else by IP."""
    token = bearer_token(request)
    if token:
        payload = decode_access_token(token)
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_or_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    storage_uri=RATE_LIMIT_STORAGE_URI,
    enabled=RATE_LIMIT_ENABLED,
)

default_limits = parse_many(RATE_LIMIT_DEFAULT)
login_failure_limit = parse_many(f"{LOGIN_MAX_FAILURES}/{LOGIN_LOCKOUT_MINUTES}minutes")[0]


async def throttle(request: Request):
    """FastAPI dependency: counts the request and raises 429 once over the default limits."""
    if not limiter.enabled:
        return
    key = get_user_or_ip(request)
    for item in default_limits:
        if not limiter.limiter.hit(item, key, "default"):
            log.warning(f"Rate limit {item} exceeded for {key} on {request.url.path}")
            raise TooManyRequests(f"Too many requests: {item}")


# ----------- Failed login tracking -----------

def login_locked_out(client_ip: str) -> bool:
    return not limiter.limiter.test(login_failure_limit, client_ip, "login_failures")


def record_failed_login(client_ip: str) -> None:
    limiter.limiter.hit(login_failure_limit, client_ip, "login_failures")
    if login_locked_out(client_ip):
        log.warning(f"IP {client_ip} locked out after {LOGIN_MAX_FAILURES} failed login attempts")


def clear_failed_logins(client_ip: str) -> None:
    limiter.limiter.clear(login_failure_limit, client_ip, "login_failures")
