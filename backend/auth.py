"""
Authentication for Playback.

Session JWT issuance and verification, identity-provider token exchange,
and the FastAPI dependencies that hand the editor its identity.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Cookie

from backend import config
from backend.session import SessionController, SessionState, SessionStatus
from engine.kernel.errors import AuthRejected
from engine.kernel.types import Identity

SESSION_COOKIE = "session"

# Identity-provider error codes → user-facing messages
AUTH_ERROR_MESSAGES: dict[str, str] = {
    "invalid-credential": "Invalid email or password.",
    "email-already-in-use": "Email already in use.",
    "weak-password": "Password should be at least 6 characters.",
    "session-expired": "Session expired. Please sign in again.",
}
DEFAULT_AUTH_ERROR = "Authentication failed. Please try again."


def auth_error_message(code: str | None) -> str:
    return AUTH_ERROR_MESSAGES.get(code or "", DEFAULT_AUTH_ERROR)


def reject(code: str) -> AuthRejected:
    return AuthRejected(auth_error_message(code), code=code)


def create_jwt(identity: Identity) -> str:
    """
    Create a JWT for a user session.

    Args:
        identity: who the session belongs to

    Returns:
        Signed JWT string
    """
    now = datetime.now(UTC)
    payload = {
        "sub": identity.subject,
        "name": identity.display_name,
        "email": identity.email,
        "exp": now + timedelta(hours=config.settings.JWT_EXPIRY_HOURS),
        "iat": now,
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def _decode(token: str, secret: str) -> Identity:
    try:
        payload = jwt.decode(token, secret, algorithms=[config.settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise reject("session-expired") from e
    except jwt.PyJWTError as e:
        raise reject("invalid-credential") from e

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise reject("invalid-credential")
    return Identity(subject=subject, display_name=payload.get("name"), email=payload.get("email"))


def decode_identity(token: str) -> Identity:
    """
    Verify a session JWT.

    Raises:
        AuthRejected: expired or invalid token
    """
    return _decode(token, config.settings.JWT_SECRET)


def verify_provider_token(token: str) -> Identity:
    """
    Verify an identity-provider ID token (HS256, shared secret).

    Raises:
        AuthRejected: expired or invalid token
    """
    return _decode(token, config.settings.idp_secret)


def demo_identity() -> Identity:
    return Identity(subject=config.settings.DEMO_PROFILE_ID, display_name=config.settings.DEMO_DISPLAY_NAME)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


async def get_session_state(
    session: Annotated[str | None, Cookie()] = None,
) -> SessionState:
    """FastAPI dependency: the caller's session state, never raising."""
    return SessionController(decode_identity).resolve(session)


def editor_identity(state: SessionState) -> Identity:
    """
    The identity whose profile the editor works on.

    Authenticated sessions use their own identity. Anonymous sessions fall
    back to the demo identity when demo mode is on.

    Raises:
        AuthRejected: rejected cookie, or anonymous with demo mode off
    """
    if state.status is SessionStatus.AUTHENTICATED and state.identity is not None:
        return state.identity
    if state.status is SessionStatus.ERROR:
        raise AuthRejected(state.error or DEFAULT_AUTH_ERROR)
    if config.settings.ALLOW_DEMO_IDENTITY:
        return demo_identity()
    raise AuthRejected("Not authenticated. Please sign in.")
