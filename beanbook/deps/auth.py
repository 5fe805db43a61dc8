from __future__ import annotations

import hmac

from fastapi import Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from ..core.config import settings
from ..core.security import decode_token
from ..middlewares import principal_ctx_var


class AuthContext:
    """Who is calling. ``account`` scopes every bean query."""

    def __init__(self, *, account: str, scheme: str) -> None:
        self.account = account
        self.scheme = scheme


def _unauthorized(detail: str = "Unauthorized") -> None:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_account(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    """Resolve the caller's account from a bearer JWT or the API key.

    With no API key configured and no bearer token the service runs open and
    every request belongs to DEFAULT_ACCOUNT.
    """

    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            try:
                payload = decode_token(credentials, verify_type="access")
            except ValueError as exc:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=str(exc),
                    headers={"WWW-Authenticate": "Bearer"},
                ) from exc
            _set_principal(request, f"jwt:{payload.sub}")
            request.state.token_payload = payload
            return AuthContext(account=payload.sub, scheme="jwt")

    api_key = (settings.API_KEY or "").strip()
    provided_key = (x_api_key or "").strip()
    if api_key and settings.AUTH_ALLOW_API_KEY and provided_key and hmac.compare_digest(api_key, provided_key):
        _set_principal(request, "api-key")
        return AuthContext(account=settings.DEFAULT_ACCOUNT, scheme="api_key")

    if not api_key and not authorization:
        _set_principal(request, "anonymous")
        return AuthContext(account=settings.DEFAULT_ACCOUNT, scheme="open")

    if provided_key:
        _unauthorized("Invalid API key")
    _unauthorized("Authorization required")
