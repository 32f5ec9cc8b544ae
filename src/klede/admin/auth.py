"""
HS256 JWT tokens for the admin dashboard.

Admin credentials come from settings and are compared in plaintext; the
token is only proof that a login happened.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from klede.config import Settings
from klede.dependencies import get_app_settings

_bearer = HTTPBearer(auto_error=False)

ADMIN_TOKEN_TYPE = "admin"


def check_credentials(settings: Settings, username: str, password: str) -> bool:
    """Compare a login attempt against the configured admin account."""
    user_ok = secrets.compare_digest(username.encode(), settings.admin_username.encode())
    pass_ok = secrets.compare_digest(password.encode(), settings.admin_password.encode())
    return user_ok and pass_ok


def create_admin_token(settings: Settings, username: str) -> str:
    """
    Create an admin access token.

    Args:
        settings: Application settings (secret, algorithm, issuer, lifetime).
        username: The admin username, stored as ``sub``.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": username,
        "iat": now,
        "exp": now + timedelta(minutes=settings.admin_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": ADMIN_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_admin_token(settings: Settings, token: str) -> dict[str, Any]:
    """
    Verify and decode an admin token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or not an admin token.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != ADMIN_TOKEN_TYPE:
        msg = f"Expected token type '{ADMIN_TOKEN_TYPE}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Return the admin username from the bearer token, or raise 401."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = verify_admin_token(settings, credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return payload["sub"]
