"""
EPK Kernel — Section Model

Pure functions: (sections, argument) → new sections list.
No side effects. No IO. The input list and its sections are never modified.

List order is display order. Field edits address sections by id, not index,
so an edit in flight stays valid across moves and deletes.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any, Literal

from engine.kernel.types import (
    CONTENT_KINDS,
    ContactSection,
    CustomSection,
    PressSection,
    Section,
    SongsSection,
    TourSection,
    VaultSection,
    VideosSection,
    section_fields,
    section_from_dict,
    section_to_dict,
)

Direction = Literal["up", "down"]

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def default_sections() -> list[Section]:
    """The six fixed sections installed at bootstrap, in bootstrap order."""
    return [
        ContactSection(),
        VaultSection(),
        SongsSection(),
        VideosSection(),
        TourSection(),
        PressSection(),
    ]


def fallback_sections() -> list[Section]:
    """
    Ordering used by the public page when a stored document has no
    `sections` key at all. Differs from default_sections() on purpose:
    legacy documents predate the contact-first layout.
    """
    return [
        SongsSection(),
        VideosSection(),
        TourSection(),
        PressSection(),
        VaultSection(),
        ContactSection(),
    ]


def new_custom_id() -> str:
    return f"custom_{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def move(sections: list[Section], index: int, direction: Direction) -> list[Section]:
    """
    Swap the section at `index` with its neighbour.
    No-op at either boundary and for out-of-range indexes. Never wraps.
    """
    result = list(sections)
    if not 0 <= index < len(result):
        return result

    if direction == "up" and index > 0:
        result[index - 1], result[index] = result[index], result[index - 1]
    elif direction == "down" and index < len(result) - 1:
        result[index], result[index + 1] = result[index + 1], result[index]
    return result


def toggle_visibility(sections: list[Section], index: int) -> list[Section]:
    """Flip `visible` on the section at `index`. Out-of-range is a no-op."""
    result = list(sections)
    if 0 <= index < len(result):
        target = result[index]
        result[index] = dataclasses.replace(target, visible=not target.visible)
    return result


def add_custom(sections: list[Section]) -> list[Section]:
    """Append an empty, visible custom section with a fresh id."""
    return [*sections, CustomSection(id=new_custom_id())]


def delete(sections: list[Section], index: int) -> list[Section]:
    """
    Remove the section at `index`.

    Unconditional: there is no type check here. Restricting deletion to
    custom sections is the caller's job.
    """
    result = list(sections)
    if 0 <= index < len(result):
        del result[index]
    return result


def update_field(sections: list[Section], section_id: str, field: str, value: Any) -> list[Section]:
    """
    Replace exactly one field on the section with id `section_id`.
    Order and every other field are untouched. No-op if no id matches.

    Raises:
        ValueError: `field` is not settable on that section variant, or
                    `value` has the wrong type for it
    """
    result = list(sections)
    for i, section in enumerate(result):
        if section.id != section_id:
            continue
        _check_field(section, field, value)
        result[i] = dataclasses.replace(section, **{field: value})
        return result
    return result


def _check_field(section: Section, field: str, value: Any) -> None:
    if field == "id" or field not in section_fields(section):
        raise ValueError(f"field {field!r} cannot be set on a {section.type} section")
    if field == "visible":
        if not isinstance(value, bool):
            raise ValueError("visible must be a boolean")
        return
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    if field == "content_kind" and value not in CONTENT_KINDS:
        raise ValueError(f"content_kind must be one of {', '.join(CONTENT_KINDS)}")


# ---------------------------------------------------------------------------
# Document boundary
# ---------------------------------------------------------------------------


def sections_from_document(doc: dict[str, Any]) -> list[Section] | None:
    """
    Parse a profile document's stored sections.

    Returns None when the document has no `sections` key (legacy or partial
    documents); callers decide which default applies. Entries with an
    unknown type tag are skipped.
    """
    raw = doc.get("sections")
    if raw is None:
        return None

    parsed: list[Section] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(section_from_dict(item))
        except ValueError:
            continue
    return parsed


def sections_to_document(sections: list[Section]) -> list[dict[str, Any]]:
    return [section_to_dict(s) for s in sections]


def find_section(sections: list[Section], section_id: str) -> Section | None:
    return next((s for s in sections if s.id == section_id), None)
