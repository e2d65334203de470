"""
EPK Kernel — Shared Types

Section variants, option sets, and the small data classes that bind the
kernel together. Profile documents themselves stay plain dicts (they are
stored and returned verbatim); sections are parsed into a tagged union so
the renderer and the editor can dispatch on the type tag instead of probing
optional fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import UTC, datetime
from typing import Any, ClassVar

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

PIN_PATTERN = re.compile(r"^\d{4}$")
COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


# ---------------------------------------------------------------------------
# Option sets
# ---------------------------------------------------------------------------

CONTENT_KINDS: tuple[str, ...] = ("text", "image", "video", "link", "audio")

FONT_OPTIONS: dict[str, str] = {
    "font-sans": "Modern Sans (Inter)",
    "font-serif": "Elegant Serif (Playfair)",
    "font-mono": "Tech Mono (Space)",
    "font-['Georgia']": "Classic (Georgia)",
    "font-['Verdana']": "Clean (Verdana)",
    "font-['Courier_New']": "Retro (Courier)",
}

PLATFORM_OPTIONS: dict[str, str] = {
    "spotify": "Spotify",
    "apple": "Apple Music",
    "youtube": "YouTube",
    "instagram": "Instagram",
    "tiktok": "TikTok",
    "soundcloud": "SoundCloud",
    "bandcamp": "Bandcamp",
    "facebook": "Facebook",
    "twitter": "Twitter / X",
    "website": "Website",
}

DEFAULT_COLORS: dict[str, str] = {
    "background": "#050505",
    "accent": "#3b82f6",
    "font": "#ffffff",
}

DEFAULT_FONT = "font-sans"
DEFAULT_VAULT_PIN = "1234"

# Item lists owned by a profile, and the fields an editor may set on each.
ITEM_FIELDS: dict[str, tuple[str, ...]] = {
    "songs": ("title", "duration", "audio_url"),
    "tour": ("date", "venue", "city", "ticket_url"),
    "videos": ("title", "url"),
    "press": ("publication", "quote", "link"),
    "socials": ("platform", "url"),
}

VAULT_ASSETS: dict[str, str] = {
    "press_photos": "Press Photos",
    "tech_rider": "Tech Rider",
}


# ---------------------------------------------------------------------------
# Sections (tagged union on `type`)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContactSection:
    type: ClassVar[str] = "contact"

    id: str = "contact"
    title: str = "Contact"
    visible: bool = True


@dataclass(frozen=True)
class VaultSection:
    type: ClassVar[str] = "vault"

    id: str = "vault"
    title: str = "The Vault Assets"
    visible: bool = True


@dataclass(frozen=True)
class SongsSection:
    type: ClassVar[str] = "songs"

    id: str = "songs"
    title: str = "Songs"
    visible: bool = True


@dataclass(frozen=True)
class VideosSection:
    type: ClassVar[str] = "videos"

    id: str = "videos"
    title: str = "Videos"
    visible: bool = True


@dataclass(frozen=True)
class TourSection:
    type: ClassVar[str] = "tour"

    id: str = "tour"
    title: str = "Tour Dates"
    visible: bool = True


@dataclass(frozen=True)
class PressSection:
    type: ClassVar[str] = "press"

    id: str = "press"
    title: str = "Press & Reviews"
    visible: bool = True


@dataclass(frozen=True)
class CustomSection:
    """User-authored block. The only variant that carries a payload."""

    type: ClassVar[str] = "custom"

    id: str
    title: str = "New Section"
    visible: bool = True
    content_kind: str = "text"
    content: str = ""
    url: str = ""
    file_url: str = ""


Section = ContactSection | VaultSection | SongsSection | VideosSection | TourSection | PressSection | CustomSection

SECTION_CLASSES: dict[str, type] = {
    cls.type: cls
    for cls in (
        ContactSection,
        VaultSection,
        SongsSection,
        VideosSection,
        TourSection,
        PressSection,
        CustomSection,
    )
}


def section_fields(section: Section) -> tuple[str, ...]:
    """Names of the fields a section variant declares (type tag excluded)."""
    return tuple(f.name for f in fields(section))


def section_to_dict(section: Section) -> dict[str, Any]:
    """Serialize a section for storage. The type tag is written explicitly."""
    out: dict[str, Any] = {"id": section.id, "type": section.type}
    for name in section_fields(section):
        if name != "id":
            out[name] = getattr(section, name)
    return out


def section_from_dict(data: dict[str, Any]) -> Section:
    """
    Parse a stored section dict into its variant.

    Absent fields fall back to the variant defaults at read time; keys a
    variant does not declare are ignored.

    Raises:
        ValueError: unknown type tag, or a custom section without an id
    """
    type_tag = data.get("type")
    cls = SECTION_CLASSES.get(type_tag)  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"unknown section type: {type_tag!r}")

    known = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in data.items() if k in known}
    if cls is CustomSection and not kwargs.get("id"):
        raise ValueError("custom section requires an id")
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """Who the current session belongs to, as supplied by the identity provider."""

    subject: str
    display_name: str | None = None
    email: str | None = None


@dataclass
class RenderOptions:
    """Per-request knobs for the public page renderer."""

    public_url: str = ""
    notice: str | None = None  # transient message, e.g. "Incorrect PIN."
    pin: str | None = None  # echoed into vault download forms once unlocked


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def today_iso(now: datetime | None = None) -> str:
    """Current UTC date as YYYY-MM-DD."""
    return (now or datetime.now(UTC)).astimezone(UTC).date().isoformat()
