"""
EPK Kernel — Profile documents

The one canonical default-profile constructor, plus pure helpers for the
flat item lists (songs, tour dates, videos, press, social links).

Documents are plain dicts. Helpers return new documents/lists and never
mutate their inputs.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from engine.kernel.sections import default_sections, sections_to_document
from engine.kernel.types import (
    DEFAULT_COLORS,
    DEFAULT_FONT,
    DEFAULT_VAULT_PIN,
    ITEM_FIELDS,
    PLATFORM_OPTIONS,
    today_iso,
)

DEFAULT_DISPLAY_NAME = "New Artist"
DEFAULT_HERO_IMAGE = (
    "https://images.unsplash.com/photo-1540039155733-5bb30b53aa14?q=80&w=2874&auto=format&fit=crop"
)

# ---------------------------------------------------------------------------
# Default profile
# ---------------------------------------------------------------------------


def default_profile(display_name: str | None = None, email: str | None = None) -> dict[str, Any]:
    """
    Build a fresh profile document.

    `created_at` is left out; the bootstrap path stamps it when writing.
    """
    return {
        "display_name": display_name or DEFAULT_DISPLAY_NAME,
        "tagline": "New Artist Profile",
        "bio": "Welcome! Describe your sound, mission, and achievements here.",
        "hero_image": DEFAULT_HERO_IMAGE,
        "vault_pin": DEFAULT_VAULT_PIN,
        "views": 0,
        "vault_unlocks": 0,
        "daily_views": {},
        "stats": {"mobile": 0, "desktop": 0, "downloads": {}, "link_clicks": {}},
        "font": DEFAULT_FONT,
        "colors": dict(DEFAULT_COLORS),
        "sections": sections_to_document(default_sections()),
        "socials": [],
        "songs": [],
        "tour": [],
        "videos": [],
        "press": [],
        "vault": {"tech_rider": "", "press_photos": ""},
        "manager": {"name": display_name or "", "email": email or ""},
    }


# ---------------------------------------------------------------------------
# Read-time accessors (absent fields → hard-coded defaults)
# ---------------------------------------------------------------------------


def vault_pin(doc: dict[str, Any]) -> str:
    return doc.get("vault_pin") or DEFAULT_VAULT_PIN


def colors(doc: dict[str, Any]) -> dict[str, str]:
    stored = doc.get("colors") or {}
    return {key: stored.get(key) or default for key, default in DEFAULT_COLORS.items()}


def font(doc: dict[str, Any]) -> str:
    return doc.get("font") or DEFAULT_FONT


def items(doc: dict[str, Any], kind: str) -> list[dict[str, Any]]:
    return list(doc.get(kind) or [])


# ---------------------------------------------------------------------------
# Item lists
# ---------------------------------------------------------------------------


def new_item_id() -> str:
    return uuid.uuid4().hex


def new_item(kind: str) -> dict[str, Any]:
    """
    A new list entry with the editor's placeholder values.

    Raises:
        ValueError: unknown item kind
    """
    item_id = new_item_id()
    if kind == "songs":
        return {"id": item_id, "title": "New Track", "duration": "0:00", "audio_url": ""}
    if kind == "tour":
        return {"id": item_id, "date": today_iso(), "venue": "Venue", "city": "City", "ticket_url": ""}
    if kind == "videos":
        return {"id": item_id, "title": "New Video", "url": ""}
    if kind == "press":
        return {"id": item_id, "publication": "Publication", "quote": "Quote...", "link": ""}
    if kind == "socials":
        return {"id": item_id, "platform": "instagram", "url": ""}
    raise ValueError(f"unknown item kind: {kind!r}")


def add_item(doc: dict[str, Any], kind: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Append a new item of `kind`. Returns (new document, new item)."""
    item = new_item(kind)
    out = copy.deepcopy(doc)
    out[kind] = [*items(doc, kind), item]
    return out, item


def remove_item(doc: dict[str, Any], kind: str, item_id: str) -> dict[str, Any]:
    _check_kind(kind)
    out = copy.deepcopy(doc)
    out[kind] = [i for i in items(doc, kind) if str(i.get("id")) != item_id]
    return out


def update_item(doc: dict[str, Any], kind: str, item_id: str, field: str, value: Any) -> dict[str, Any]:
    """
    Replace one field on one item. No-op if no item matches.

    Social links infer their platform from a pasted URL for the platforms
    whose hostnames are unambiguous.

    Raises:
        ValueError: unknown kind, field, platform, or non-string value
    """
    _check_kind(kind)
    if field not in ITEM_FIELDS[kind]:
        raise ValueError(f"field {field!r} cannot be set on {kind}")
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    if kind == "socials" and field == "platform" and value not in PLATFORM_OPTIONS:
        raise ValueError(f"unknown platform: {value!r}")

    out = copy.deepcopy(doc)
    updated = []
    for item in items(out, kind):
        if str(item.get("id")) == item_id:
            item = {**item, field: value}
            if kind == "socials" and field == "url":
                detected = detect_platform(value)
                if detected:
                    item["platform"] = detected
        updated.append(item)
    out[kind] = updated
    return out


def detect_platform(url: str) -> str | None:
    if "spotify" in url:
        return "spotify"
    if "instagram" in url:
        return "instagram"
    return None


def find_item(doc: dict[str, Any], kind: str, item_id: str) -> dict[str, Any] | None:
    return next((i for i in items(doc, kind) if str(i.get("id")) == item_id), None)


def _check_kind(kind: str) -> None:
    if kind not in ITEM_FIELDS:
        raise ValueError(f"unknown item kind: {kind!r}")
