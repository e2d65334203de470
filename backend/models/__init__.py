"""
Pydantic models for Playback.

All request/response shapes defined here. No imports from db, services, or routes.
"""

from backend.models.profile import (
    DraftResponse,
    FieldUpdateRequest,
    LogoutResponse,
    MoveSectionRequest,
    ProfileUpdateRequest,
    SessionRequest,
    SessionResponse,
)

__all__ = [
    "DraftResponse",
    "FieldUpdateRequest",
    "LogoutResponse",
    "MoveSectionRequest",
    "ProfileUpdateRequest",
    "SessionRequest",
    "SessionResponse",
]
