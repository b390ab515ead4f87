"""Admin authentication.

The admin surface depends on a single capability: a zero-argument check that
answers whether the current caller is an authenticated administrator. The
default implementation compares the ``admin_token`` cookie with the configured
admin secret.
"""

import hmac
from typing import Protocol

from fastapi import Depends, Request

from siteaudit.config import Settings, get_settings

ADMIN_COOKIE_NAME = "admin_token"
ADMIN_COOKIE_MAX_AGE = 60 * 60 * 24 * 7  # 7 days


def secret_matches(candidate: str | None, secret: str | None) -> bool:
    """Constant-time comparison of a caller-supplied value with the admin secret.

    An unset secret never matches.
    """
    if not secret or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode(), secret.encode())


class AuthCheck(Protocol):
    """Capability answering "is the current caller an admin"."""

    async def is_admin(self) -> bool: ...


class CookieAdminAuth:
    """Admin check backed by a shared-secret cookie."""

    def __init__(self, token: str | None, secret: str | None) -> None:
        self._token = token
        self._secret = secret

    async def is_admin(self) -> bool:
        return secret_matches(self._token, self._secret)


def get_settings_dependency() -> Settings:
    """Settings as a FastAPI dependency, resolved per request."""
    return get_settings()


def get_auth_check(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
) -> AuthCheck:
    """FastAPI dependency building the admin check for this request."""
    return CookieAdminAuth(request.cookies.get(ADMIN_COOKIE_NAME), settings.admin_secret)


def admin_cookie_options(settings: Settings) -> dict:
    """Keyword arguments for ``Response.set_cookie`` on a successful login."""
    return {
        "key": ADMIN_COOKIE_NAME,
        "value": settings.admin_secret or "",
        "httponly": True,
        "secure": settings.environment == "production",
        "samesite": "lax",
        "max_age": ADMIN_COOKIE_MAX_AGE,
        "path": "/",
    }
