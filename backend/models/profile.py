"""Request and response models for the editor API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ColorsUpdate(BaseModel):
    """Partial theme colors. Omitted keys keep their current value."""

    model_config = {"extra": "forbid"}

    background: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    accent: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    font: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


class ManagerUpdate(BaseModel):
    model_config = {"extra": "forbid"}

    name: str | None = None
    email: str | None = None


class ProfileUpdateRequest(BaseModel):
    """What the client sends to PATCH /api/editor/profile."""

    model_config = {"extra": "forbid"}

    display_name: str | None = Field(default=None, max_length=200)
    tagline: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=20000)
    hero_image: str | None = None
    font: str | None = None
    vault_pin: str | None = None  # checked by the session so the message matches the public gate
    colors: ColorsUpdate | None = None
    manager: ManagerUpdate | None = None

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent, nested partials included."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MoveSectionRequest(BaseModel):
    model_config = {"extra": "forbid"}

    direction: Literal["up", "down"]


class FieldUpdateRequest(BaseModel):
    """Replace one field on a section or list item."""

    model_config = {"extra": "forbid"}

    field: str = Field(min_length=1, max_length=50)
    value: str | bool


class DraftResponse(BaseModel):
    """The editor's view of its draft."""

    profile_id: str
    public_url: str
    saving: bool = False
    draft: dict[str, Any]


class UploadResponse(BaseModel):
    url: str
    draft: dict[str, Any]


class SaveResponse(BaseModel):
    message: str = "Saved successfully!"
    public_url: str


class AnalyticsResponse(BaseModel):
    views: int
    vault_unlocks: int
    conversion: int
    daily: list[dict[str, Any]]
    devices: dict[str, int]
    top_downloads: list[dict[str, Any]]
    link_clicks: dict[str, int]


class SessionRequest(BaseModel):
    """Identity-provider ID token to exchange for a session cookie."""

    model_config = {"extra": "forbid"}

    id_token: str = Field(min_length=1)


class SessionResponse(BaseModel):
    subject: str
    display_name: str | None = None
    email: str | None = None


class LogoutResponse(BaseModel):
    """Response after logout."""

    message: str = "Logged out successfully"
