"""
Route-level rate limiting.

Each public auth route gets a per-IP budget (per user as well once
authenticated). These sit in front of the per-email limits the use-cases apply.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Depends, Request

from app.container import Container, get_container
from app.core.errors import TooManyRequestsError

logger = logging.getLogger(__name__)

HOUR = 60 * 60


@dataclass(frozen=True)
class RouteLimit:
    max_requests: int
    window_seconds: int
    message: str


ROUTE_LIMITS: Dict[str, RouteLimit] = {
    "register": RouteLimit(5, HOUR, "Too many registration attempts"),
    "login": RouteLimit(10, HOUR, "Too many login attempts"),
    "otp-request": RouteLimit(3, HOUR, "Too many OTP requests"),
    "otp-validate": RouteLimit(5, 15 * 60, "Too many OTP validation attempts"),
    "password-reset": RouteLimit(3, HOUR, "Too many password reset attempts"),
    "change-password": RouteLimit(5, HOUR, "Too many password change attempts"),
    "refresh": RouteLimit(20, HOUR, "Too many token refresh attempts"),
    "resend-verification": RouteLimit(3, HOUR, "Too many verification resend attempts"),
}


def get_client_ip(request: Request) -> str:
    """
    Extract the client's IP address from the request.

    Handles X-Forwarded-For header for proxied requests.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first (client IP)
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def route_rate_limit(name: str) -> Callable:
    """
    Build a dependency enforcing the named route budget.

    Usage:
        @router.post("/login", dependencies=[Depends(route_rate_limit("login"))])
    """
    if name not in ROUTE_LIMITS:
        raise ValueError(f"Unknown rate limit type: {name}")
    limit = ROUTE_LIMITS[name]

    def dependency(request: Request, container: Container = Depends(get_container)) -> None:
        if not container.settings.ROUTE_RATE_LIMIT_ENABLED:
            return

        ip_address = get_client_ip(request)

        def exceeded(ttl: int) -> TooManyRequestsError:
            logger.warning(f"Route limit '{name}' exceeded for {ip_address}")
            return TooManyRequestsError(f"{limit.message}. Try again in {ttl} seconds.")

        container.rate_limiter.check_rate_limit(
            key=f"route:{name}:{ip_address}",
            max_requests=limit.max_requests,
            window_seconds=limit.window_seconds,
            error=exceeded,
        )

    return dependency
