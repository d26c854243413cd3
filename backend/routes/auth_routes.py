"""Authentication routes for session cookies."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from backend import config
from backend.auth import create_jwt, get_current_email
from backend.models.auth import LogoutResponse, SessionResponse, SignInRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _secure_cookies() -> bool:
    return config.settings.ENVIRONMENT == "production"


@router.post("/session", status_code=200)
async def sign_in_endpoint(req: SignInRequest, response: Response) -> SessionResponse:
    """
    Start a session for an email without verification.

    Only available outside production, where sessions are issued by the
    identity provider in front of the app.
    """
    if config.settings.ENVIRONMENT == "production":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Direct sign-in is disabled in production.",
        )

    jwt_token = create_jwt(req.email)
    response.set_cookie(
        key="session",
        value=jwt_token,
        httponly=True,
        secure=_secure_cookies(),
        samesite="lax",
        max_age=config.settings.JWT_EXPIRY_HOURS * 3600,
        path="/",
    )
    logger.info("auth: session started for %s", req.email)
    return SessionResponse(email=req.email)


@router.get("/me", status_code=200)
async def get_current_user_endpoint(
    email: str = Depends(get_current_email),
) -> SessionResponse:
    """
    Get the current signed-in email.

    Requires valid session cookie.
    """
    return SessionResponse(email=email)


@router.post("/logout", status_code=200)
async def logout_endpoint(response: Response) -> LogoutResponse:
    """
    Logout the current user.

    Clears the session cookie.
    """
    # Clear cookie by setting it to expired
    response.set_cookie(
        key="session",
        value="",
        httponly=True,
        secure=_secure_cookies(),
        samesite="lax",
        max_age=0,  # Expire immediately
        path="/",
    )

    return LogoutResponse()
