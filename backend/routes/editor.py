"""Editor routes — draft load, section and item edits, uploads, save, analytics."""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from backend import config
from backend.dependencies import get_editor_session, get_store
from backend.models.profile import (
    AnalyticsResponse,
    DraftResponse,
    FieldUpdateRequest,
    MoveSectionRequest,
    ProfileUpdateRequest,
    SaveResponse,
    UploadResponse,
)
from backend.services.editor import EditorSession
from backend.services.qr import qr_service
from engine.kernel import profile as profile_doc
from engine.kernel.analytics import summarize
from engine.kernel.assembly import PRIMARY_COLLECTION
from engine.kernel.errors import NotFound, ValidationRejected
from engine.kernel.store import DocumentStore

router = APIRouter(prefix="/api/editor", tags=["editor"])

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9_\-]")


def _draft_response(session: EditorSession) -> DraftResponse:
    return DraftResponse(
        profile_id=session.profile_id,
        public_url=config.settings.profile_url(session.profile_id),
        saving=session.saving,
        draft=session.draft or {},
    )


@router.get("", status_code=200)
async def load_draft(session: EditorSession = Depends(get_editor_session)) -> DraftResponse:
    """
    Reload the draft from the store, bootstrapping the profile if needed.
    Unsaved edits are discarded.
    """
    await session.load()
    return _draft_response(session)


@router.patch("/profile", status_code=200)
async def update_profile(
    req: ProfileUpdateRequest,
    session: EditorSession = Depends(get_editor_session),
) -> DraftResponse:
    """Set display name, tagline, bio, hero image, theme, vault PIN or contact."""
    session.update_profile(req.changes())
    return _draft_response(session)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@router.post("/sections", status_code=201)
async def add_section(session: EditorSession = Depends(get_editor_session)) -> DraftResponse:
    """Append an empty custom section."""
    session.add_custom_section()
    return _draft_response(session)


@router.post("/sections/{index}/move", status_code=200)
async def move_section(
    index: int,
    req: MoveSectionRequest,
    session: EditorSession = Depends(get_editor_session),
) -> DraftResponse:
    session.move_section(index, req.direction)
    return _draft_response(session)


@router.post("/sections/{index}/toggle", status_code=200)
async def toggle_section(index: int, session: EditorSession = Depends(get_editor_session)) -> DraftResponse:
    session.toggle_section(index)
    return _draft_response(session)


@router.delete("/sections/{index}", status_code=200)
async def delete_section(index: int, session: EditorSession = Depends(get_editor_session)) -> DraftResponse:
    """
    Delete a section. The editor only offers this for custom sections;
    fixed sections should be hidden instead.
    """
    sections = session.sections
    if not 0 <= index < len(sections):
        raise NotFound("No section at that position.")
    if sections[index].type != "custom":
        raise ValidationRejected("Only custom sections can be deleted. Hide it instead.")
    session.delete_section(index)
    return _draft_response(session)


@router.patch("/sections/{section_id}", status_code=200)
async def update_section(
    section_id: str,
    req: FieldUpdateRequest,
    session: EditorSession = Depends(get_editor_session),
) -> DraftResponse:
    session.update_section(section_id, req.field, req.value)
    return _draft_response(session)


# ---------------------------------------------------------------------------
# Item lists (songs, tour, videos, press, socials)
# ---------------------------------------------------------------------------


@router.post("/items/{kind}", status_code=201)
async def add_item(kind: str, session: EditorSession = Depends(get_editor_session)) -> DraftResponse:
    session.add_item(kind)
    return _draft_response(session)


@router.patch("/items/{kind}/{item_id}", status_code=200)
async def update_item(
    kind: str,
    item_id: str,
    req: FieldUpdateRequest,
    session: EditorSession = Depends(get_editor_session),
) -> DraftResponse:
    if session.update_item(kind, item_id, req.field, req.value) is None:
        raise NotFound(f"No {kind} item {item_id!r}.")
    return _draft_response(session)


@router.delete("/items/{kind}/{item_id}", status_code=200)
async def remove_item(
    kind: str,
    item_id: str,
    session: EditorSession = Depends(get_editor_session),
) -> DraftResponse:
    session.remove_item(kind, item_id)
    return _draft_response(session)


# ---------------------------------------------------------------------------
# Uploads, save, analytics, QR
# ---------------------------------------------------------------------------


@router.post("/uploads/{kind}", status_code=200)
async def upload_file(
    kind: str,
    file: UploadFile = File(...),
    target_id: str | None = Form(default=None),
    session: EditorSession = Depends(get_editor_session),
) -> UploadResponse:
    """
    Upload a hero image, vault asset, song audio or custom-section media.
    The draft references the new URL; it still needs a save.
    """
    if file.size is not None and file.size > session.max_upload_bytes:
        raise ValidationRejected(f"File too large. Max {session.max_upload_bytes // (1024 * 1024)}MB.")
    data = await file.read()
    url = await session.upload(
        kind,
        file.filename or "upload",
        data,
        file.content_type or "application/octet-stream",
        target_id=target_id,
    )
    return UploadResponse(url=url, draft=session.draft or {})


@router.post("/save", status_code=200)
async def save_draft(session: EditorSession = Depends(get_editor_session)) -> SaveResponse:
    """Persist the whole draft. Last save wins."""
    await session.save()
    return SaveResponse(public_url=config.settings.profile_url(session.profile_id))


@router.get("/analytics", status_code=200)
async def analytics(
    session: EditorSession = Depends(get_editor_session),
    store: DocumentStore = Depends(get_store),
) -> AnalyticsResponse:
    """Counters as currently stored (the draft's copy may be stale)."""
    stored = await store.get(PRIMARY_COLLECTION, session.profile_id)
    return AnalyticsResponse(**summarize(stored or session.draft or {}))


@router.get("/qr", status_code=200)
async def download_qr(session: EditorSession = Depends(get_editor_session)) -> Response:
    """QR code PNG pointing at the public page, in the profile's colors."""
    draft = session.draft or {}
    png = await qr_service.fetch_png(config.settings.profile_url(session.profile_id), profile_doc.colors(draft))
    name = _UNSAFE_NAME.sub("-", (draft.get("display_name") or "epk").strip()) or "epk"
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{name}-QR.png"'},
    )
