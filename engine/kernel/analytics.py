"""
EPK Kernel — Analytics

Pure helpers: which counters a public event touches, and the editor's
summary of a profile's counters. The increments themselves are issued by
the assembly layer through the store's atomic increment.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from engine.kernel.types import today_iso

_MOBILE_UA = re.compile(r"Mobi|Android|iPhone|iPad|iPod|Windows Phone", re.IGNORECASE)

# Field paths are dotted; segments must not contain dots themselves.
_SAFE_SEGMENT = re.compile(r"[^A-Za-z0-9_\-]")


def device_class(user_agent: str | None) -> str:
    """Classify a visitor as "mobile" or "desktop" from the User-Agent header."""
    if user_agent and _MOBILE_UA.search(user_agent):
        return "mobile"
    return "desktop"


def path_segment(value: str) -> str:
    """Make an arbitrary label usable as one segment of a dotted field path."""
    return _SAFE_SEGMENT.sub("_", value) or "_"


def view_increments(now: datetime | None = None, user_agent: str | None = None) -> dict[str, int]:
    """Counters bumped by one public page view."""
    increments = {
        "views": 1,
        f"daily_views.{today_iso(now)}": 1,
    }
    if user_agent is not None:
        increments[f"stats.{device_class(user_agent)}"] = 1
    return increments


def unlock_increments() -> dict[str, int]:
    return {"vault_unlocks": 1}


def download_increments(asset: str) -> dict[str, int]:
    return {f"stats.downloads.{path_segment(asset)}": 1}


def link_click_increments(platform: str) -> dict[str, int]:
    return {f"stats.link_clicks.{path_segment(platform)}": 1}


def summarize(doc: dict[str, Any], days: int = 7) -> dict[str, Any]:
    """
    Editor analytics for one profile.

    - views / unlocks and the unlock conversion percentage
    - the most recent `days` entries of the per-day map, oldest first
    - mobile/desktop split as whole percentages
    - the three most downloaded vault assets
    """
    views = int(doc.get("views") or 0)
    unlocks = int(doc.get("vault_unlocks") or 0)
    daily = doc.get("daily_views") or {}
    stats = doc.get("stats") or {}

    recent = sorted(daily)[-days:] if days > 0 else []
    chart = [{"date": d, "label": _chart_label(d), "value": int(daily[d])} for d in recent]

    mobile = int(stats.get("mobile") or 0)
    desktop = int(stats.get("desktop") or 0)
    visits = (mobile + desktop) or 1

    downloads = stats.get("downloads") or {}
    top_downloads = sorted(downloads.items(), key=lambda kv: kv[1], reverse=True)[:3]

    return {
        "views": views,
        "vault_unlocks": unlocks,
        "conversion": round(unlocks / views * 100) if views > 0 else 0,
        "daily": chart,
        "devices": {
            "mobile": round(mobile / visits * 100),
            "desktop": round(desktop / visits * 100),
        },
        "top_downloads": [{"asset": name, "count": count} for name, count in top_downloads],
        "link_clicks": dict(stats.get("link_clicks") or {}),
    }


def _chart_label(iso_date: str) -> str:
    try:
        return date.fromisoformat(iso_date).strftime("%a")
    except ValueError:
        return iso_date
