"""
Authentication for the todo list pages.

JWT issuance and the session-cookie dependency. A session identifies a user
by email, which is also the owner key of every todo.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Cookie, HTTPException, WebSocket, status

from backend import config


def create_jwt(email: str) -> str:
    """
    Create a JWT for a user session.

    Args:
        email: Email address to encode in the token

    Returns:
        Signed JWT string
    """
    expires_at = datetime.now(UTC) + timedelta(hours=config.settings.JWT_EXPIRY_HOURS)
    payload = {
        "email": email,
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e


def email_from_session(session: str) -> str:
    """Return the email claim of a session token."""
    payload = decode_jwt(session)
    email = payload.get("email")
    if not isinstance(email, str) or "@" not in email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        )
    return email


async def get_current_email(
    session: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    FastAPI dependency to get the signed-in user's email from the session cookie.

    Raises:
        HTTPException: If authentication fails
    """
    if session:
        return email_from_session(session)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated. Please sign in.",
    )


def email_from_websocket(websocket: WebSocket) -> str | None:
    """
    Extract the email from a WebSocket session cookie.

    Returns None if the cookie is missing or invalid.
    """
    session = websocket.cookies.get("session")
    if not session:
        return None
    try:
        return email_from_session(session)
    except HTTPException:
        return None
