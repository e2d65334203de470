"""
Session controller.

Derives a typed session state from the request's session cookie. The state
is passed into editor routes explicitly; nothing reads auth from a global.

    Loading  → the cookie has not been verified yet
    Authenticated(identity)
    Anonymous → no cookie; the demo identity may stand in
    Error(message) → the cookie was present but rejected
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from engine.kernel.errors import AuthRejected
from engine.kernel.types import Identity


class SessionStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    ERROR = "error"


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    identity: Identity | None = None
    error: str | None = None

    @classmethod
    def loading(cls) -> SessionState:
        return cls(SessionStatus.LOADING)

    @classmethod
    def authenticated(cls, identity: Identity) -> SessionState:
        return cls(SessionStatus.AUTHENTICATED, identity=identity)

    @classmethod
    def anonymous(cls) -> SessionState:
        return cls(SessionStatus.ANONYMOUS)

    @classmethod
    def failed(cls, message: str) -> SessionState:
        return cls(SessionStatus.ERROR, error=message)


class SessionController:
    """
    Turns a raw session token into a SessionState.

    `decode` is the token verifier (backend.auth.decode_identity in the app);
    it returns an Identity or raises AuthRejected.
    """

    def __init__(self, decode) -> None:
        self._decode = decode
        self.state = SessionState.loading()

    def resolve(self, token: str | None) -> SessionState:
        if not token:
            self.state = SessionState.anonymous()
            return self.state
        try:
            self.state = SessionState.authenticated(self._decode(token))
        except AuthRejected as e:
            self.state = SessionState.failed(e.message)
        return self.state
