"""
Editor session — the working draft of one identity's profile.

Mutators change the in-memory draft only. Nothing is durable until save(),
which replaces the whole stored document. Uploads go to the binary store
immediately and write their URL into the draft, which still needs a save.
"""

from __future__ import annotations

import copy
import logging
import re
import time
from typing import Any

from engine.kernel import profile as profile_doc
from engine.kernel import sections as section_ops
from engine.kernel.assembly import PRIMARY_COLLECTION, ensure_profile
from engine.kernel.errors import EPKError, SaveInProgress, ValidationRejected, WriteFailed
from engine.kernel.sections import Direction
from engine.kernel.store import DocumentStore
from engine.kernel.types import (
    COLOR_PATTERN,
    DEFAULT_COLORS,
    FONT_OPTIONS,
    PIN_PATTERN,
    CustomSection,
    Identity,
    Section,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("display_name", "tagline", "bio", "hero_image")
MANAGER_FIELDS = ("name", "email")

# Upload kind → where the durable URL lands in the draft
UPLOAD_KINDS = ("hero", "tech_rider", "press_photos", "audio", "custom_image", "custom_audio")

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._\-]")


class EditorSession:
    """One identity's draft plus the operations the editor offers on it."""

    def __init__(
        self,
        identity: Identity,
        store: DocumentStore,
        binary_store,
        max_upload_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.identity = identity
        self.profile_id = identity.subject
        self.store = store
        self.binary_store = binary_store
        self.max_upload_bytes = max_upload_bytes
        self.draft: dict[str, Any] | None = None
        self._saving = False

    @property
    def loaded(self) -> bool:
        return self.draft is not None

    @property
    def saving(self) -> bool:
        return self._saving

    async def load(self) -> dict[str, Any]:
        """Bootstrap the profile if needed and take it as the draft."""
        self.draft = await ensure_profile(
            self.store,
            self.profile_id,
            self.identity.display_name,
            self.identity.email,
        )
        return self.draft

    def _require_draft(self) -> dict[str, Any]:
        if self.draft is None:
            raise RuntimeError("Editor draft not loaded. Call load() first.")
        return self.draft

    # -----------------------------------------------------------------------
    # Sections
    # -----------------------------------------------------------------------

    @property
    def sections(self) -> list[Section]:
        parsed = section_ops.sections_from_document(self._require_draft())
        return parsed if parsed is not None else section_ops.default_sections()

    def _set_sections(self, sections: list[Section]) -> list[Section]:
        self._require_draft()["sections"] = section_ops.sections_to_document(sections)
        return sections

    def move_section(self, index: int, direction: Direction) -> list[Section]:
        return self._set_sections(section_ops.move(self.sections, index, direction))

    def toggle_section(self, index: int) -> list[Section]:
        return self._set_sections(section_ops.toggle_visibility(self.sections, index))

    def add_custom_section(self) -> CustomSection:
        sections = self._set_sections(section_ops.add_custom(self.sections))
        return sections[-1]  # type: ignore[return-value]

    def delete_section(self, index: int) -> list[Section]:
        return self._set_sections(section_ops.delete(self.sections, index))

    def update_section(self, section_id: str, field: str, value: Any) -> list[Section]:
        try:
            updated = section_ops.update_field(self.sections, section_id, field, value)
        except ValueError as e:
            raise ValidationRejected(str(e)) from e
        return self._set_sections(updated)

    # -----------------------------------------------------------------------
    # Item lists
    # -----------------------------------------------------------------------

    def add_item(self, kind: str) -> dict[str, Any]:
        try:
            self.draft, item = profile_doc.add_item(self._require_draft(), kind)
        except ValueError as e:
            raise ValidationRejected(str(e)) from e
        return item

    def update_item(self, kind: str, item_id: str, field: str, value: Any) -> dict[str, Any] | None:
        try:
            self.draft = profile_doc.update_item(self._require_draft(), kind, item_id, field, value)
        except ValueError as e:
            raise ValidationRejected(str(e)) from e
        return profile_doc.find_item(self.draft, kind, item_id)

    def remove_item(self, kind: str, item_id: str) -> None:
        try:
            self.draft = profile_doc.remove_item(self._require_draft(), kind, item_id)
        except ValueError as e:
            raise ValidationRejected(str(e)) from e

    # -----------------------------------------------------------------------
    # Scalars, theme, contact
    # -----------------------------------------------------------------------

    def update_profile(self, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Apply setter changes to the draft. All changes are validated before
        any is applied, so a rejected batch leaves the draft untouched.

        Raises:
            ValidationRejected: bad color, unknown font, malformed PIN, or a
                                non-string value
        """
        draft = copy.deepcopy(self._require_draft())
        for key, value in changes.items():
            if key in TEXT_FIELDS:
                draft[key] = _text(key, value)
            elif key == "colors":
                draft["colors"] = {**profile_doc.colors(draft), **_colors(value)}
            elif key == "font":
                if value not in FONT_OPTIONS:
                    raise ValidationRejected(f"Unknown font {value!r}.")
                draft["font"] = value
            elif key == "vault_pin":
                if not isinstance(value, str) or not PIN_PATTERN.match(value):
                    raise ValidationRejected("Vault PIN must be exactly four digits.")
                draft["vault_pin"] = value
            elif key == "manager":
                draft["manager"] = {**(draft.get("manager") or {}), **_manager(value)}
            else:
                raise ValidationRejected(f"Field {key!r} cannot be edited.")
        self.draft = draft
        return draft

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    async def save(self) -> dict[str, Any]:
        """
        Replace the stored profile with the draft. No retry.

        Raises:
            SaveInProgress: another save of this draft has not finished
            WriteFailed: the store rejected the write
        """
        draft = self._require_draft()
        if self._saving:
            raise SaveInProgress()

        self._saving = True
        try:
            await self.store.set(PRIMARY_COLLECTION, self.profile_id, draft)
        except WriteFailed:
            raise
        except (EPKError, OSError, ConnectionError) as e:
            raise WriteFailed(f"Could not save changes: {e}") from e
        finally:
            self._saving = False

        logger.info("editor: saved profile %s", self.profile_id)
        return draft

    async def upload(
        self,
        kind: str,
        filename: str,
        data: bytes,
        content_type: str,
        target_id: str | None = None,
    ) -> str:
        """
        Upload a file and point the draft at it.

        Size and target are checked before the binary store is contacted.

        Returns:
            The durable URL now referenced by the draft

        Raises:
            ValidationRejected: unknown kind, oversized file, or missing target
            WriteFailed: the binary store rejected the upload
        """
        self._require_draft()
        if kind not in UPLOAD_KINDS:
            raise ValidationRejected(f"Unknown upload kind {kind!r}.")
        if len(data) > self.max_upload_bytes:
            raise ValidationRejected(f"File too large. Max {self.max_upload_bytes // (1024 * 1024)}MB.")
        self._check_target(kind, target_id)

        path = f"uploads/{self.profile_id}/{kind}/{int(time.time() * 1000)}_{_safe_filename(filename)}"
        await self.binary_store.put(path, data, content_type)
        url = self.binary_store.get_url(path)
        self._apply_upload(kind, url, target_id)
        logger.info("editor: uploaded %s for %s", kind, self.profile_id)
        return url

    def _check_target(self, kind: str, target_id: str | None) -> None:
        draft = self._require_draft()
        if kind == "audio":
            if not target_id or profile_doc.find_item(draft, "songs", target_id) is None:
                raise ValidationRejected("Audio uploads need an existing song.")
        elif kind in ("custom_image", "custom_audio"):
            target = section_ops.find_section(self.sections, target_id or "")
            if not isinstance(target, CustomSection):
                raise ValidationRejected("Custom uploads need an existing custom section.")

    def _apply_upload(self, kind: str, url: str, target_id: str | None) -> None:
        draft = self._require_draft()
        if kind == "hero":
            draft["hero_image"] = url
        elif kind in ("tech_rider", "press_photos"):
            draft["vault"] = {**(draft.get("vault") or {}), kind: url}
        elif kind == "audio":
            self.draft = profile_doc.update_item(draft, "songs", target_id or "", "audio_url", url)
        else:
            self._set_sections(section_ops.update_field(self.sections, target_id or "", "file_url", url))


class EditorSessionRegistry:
    """One EditorSession per identity, held in process memory."""

    def __init__(self, binary_store, max_upload_bytes: int = 10 * 1024 * 1024) -> None:
        self.binary_store = binary_store
        self.max_upload_bytes = max_upload_bytes
        self._sessions: dict[str, EditorSession] = {}

    def get(self, identity: Identity, store: DocumentStore) -> EditorSession:
        session = self._sessions.get(identity.subject)
        if session is None or session.store is not store:
            session = EditorSession(identity, store, self.binary_store, self.max_upload_bytes)
            self._sessions[identity.subject] = session
        return session

    def discard(self, subject: str) -> None:
        """Drop the identity's draft, saved or not."""
        self._sessions.pop(subject, None)

    def __contains__(self, subject: str) -> bool:
        return subject in self._sessions


def _text(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationRejected(f"{key} must be a string.")
    return value


def _colors(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValidationRejected("colors must be an object.")
    out = {}
    for key, color in value.items():
        if key not in DEFAULT_COLORS:
            raise ValidationRejected(f"Unknown color {key!r}.")
        if not isinstance(color, str) or not COLOR_PATTERN.match(color):
            raise ValidationRejected(f"{key} color must look like #rrggbb.")
        out[key] = color
    return out


def _manager(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValidationRejected("manager must be an object.")
    out = {}
    for key, text in value.items():
        if key not in MANAGER_FIELDS:
            raise ValidationRejected(f"Unknown manager field {key!r}.")
        out[key] = _text(f"manager.{key}", text)
    return out


def _safe_filename(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    return _UNSAFE_FILENAME.sub("_", name) or "file"
