"""Shared FastAPI dependencies: the document store and the editor session."""

from __future__ import annotations

from fastapi import Depends, Request

from backend.auth import editor_identity, get_session_state
from backend.services.editor import EditorSession, EditorSessionRegistry
from backend.session import SessionState
from engine.kernel.errors import StoreUnavailable
from engine.kernel.store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    """
    The app's document store.

    Raises:
        StoreUnavailable: startup could not configure a store
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable()
    return store


async def get_editor_session(
    request: Request,
    state: SessionState = Depends(get_session_state),
    store: DocumentStore = Depends(get_store),
) -> EditorSession:
    """The caller's editor session, loaded on first use."""
    identity = editor_identity(state)
    registry: EditorSessionRegistry = request.app.state.editor_sessions
    session = registry.get(identity, store)
    if not session.loaded:
        await session.load()
    return session
