"""Authentication routes: exchange an identity-provider token for a session."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from backend import config
from backend.auth import SESSION_COOKIE, create_jwt, get_session_state, verify_provider_token
from backend.models.profile import LogoutResponse, SessionRequest, SessionResponse
from backend.session import SessionState, SessionStatus
from engine.kernel.errors import AuthRejected

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, value: str, max_age: int) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=value,
        httponly=True,
        secure=config.settings.ENVIRONMENT != "development",
        samesite="lax",
        max_age=max_age,
        path="/",
    )


@router.post("/session", status_code=200)
async def create_session(req: SessionRequest, response: Response) -> SessionResponse:
    """
    Verify an identity-provider ID token and set the session cookie.

    Raises AuthRejected (401) with a user-facing message on failure.
    """
    identity = verify_provider_token(req.id_token)
    _set_session_cookie(response, create_jwt(identity), config.settings.JWT_EXPIRY_HOURS * 3600)
    logger.info("auth: session started for %s", identity.subject)
    return SessionResponse(subject=identity.subject, display_name=identity.display_name, email=identity.email)


@router.get("/me", status_code=200)
async def current_session(state: SessionState = Depends(get_session_state)) -> SessionResponse:
    """The signed-in identity. Requires a valid session cookie."""
    if state.status is SessionStatus.ERROR:
        raise AuthRejected(state.error)
    if state.identity is None:
        raise AuthRejected("Not authenticated. Please sign in.")
    identity = state.identity
    return SessionResponse(subject=identity.subject, display_name=identity.display_name, email=identity.email)


@router.post("/logout", status_code=200)
async def logout_endpoint(
    request: Request,
    response: Response,
    state: SessionState = Depends(get_session_state),
) -> LogoutResponse:
    """
    Logout the current user.

    Clears the session cookie and drops the user's in-memory draft.
    """
    registry = getattr(request.app.state, "editor_sessions", None)
    if state.identity is not None and registry is not None:
        registry.discard(state.identity.subject)
        logger.info("auth: session ended for %s", state.identity.subject)
    _set_session_cookie(response, "", 0)
    return LogoutResponse()
