"""
Shared-secret admin gate.

Admin routes use `AdminRoute`, which checks the `password` header before
FastAPI reads the request body, so a bad credential is always a 401 no
matter what was sent with it.
"""

from __future__ import annotations

import secrets
from typing import Any, Callable, Coroutine, Optional

from fastapi import Request, Response, status
from fastapi.routing import APIRoute

from portfolio_api.dependencies import get_app_settings
from portfolio_api.errors import ApiError


def password_matches(candidate: Any, secret: Optional[str]) -> bool:
    """Constant-time comparison; an unset secret or a non-string never matches."""
    if not secret or not isinstance(candidate, str):
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def require_admin(request: Request) -> None:
    settings = get_app_settings(request)
    if not password_matches(request.headers.get("password"), settings.admin_password):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized")


class AdminRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def gated_handler(request: Request) -> Response:
            require_admin(request)
            return await handler(request)

        return gated_handler
