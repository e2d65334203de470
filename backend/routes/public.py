"""
Public EPK routes — the themed profile page, the vault gate, counted
downloads and link clicks, and the printable one-sheet.

Gate state lives for one page session: the unlock POST renders the
unlocked page, and any GET starts locked again.

Registered last: /{public_id} would otherwise shadow other routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from backend import config
from backend.dependencies import get_store
from engine.kernel import profile as profile_doc
from engine.kernel.assembly import (
    record_download,
    record_link_click,
    record_unlock,
    record_view,
    resolve_public,
)
from engine.kernel.errors import NotFound
from engine.kernel.gate import GateState, VaultGate
from engine.kernel.renderer import render_one_sheet, render_page, safe_url
from engine.kernel.store import DocumentStore
from engine.kernel.types import VAULT_ASSETS, RenderOptions

router = APIRouter(tags=["public"])

INCORRECT_PIN = "Incorrect PIN."
MALFORMED_PIN = "PIN must be 4 digits."


def _options(public_id: str, notice: str | None = None, pin: str | None = None) -> RenderOptions:
    return RenderOptions(public_url=config.settings.profile_url(public_id), notice=notice, pin=pin)


def _locked(doc: dict, public_id: str, notice: str, status_code: int) -> HTMLResponse:
    html = render_page(doc, public_id, GateState.LOCKED, _options(public_id, notice=notice))
    return HTMLResponse(html, status_code=status_code)


@router.get("/{public_id}", response_class=HTMLResponse)
async def public_page(
    public_id: str,
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> HTMLResponse:
    """Render the public page (vault locked) and count the view."""
    collection, doc = await resolve_public(store, public_id)
    await record_view(store, collection, public_id, user_agent=request.headers.get("user-agent", ""))
    return HTMLResponse(render_page(doc, public_id, GateState.LOCKED, _options(public_id)))


@router.post("/{public_id}/unlock", response_class=HTMLResponse)
async def unlock_vault(
    public_id: str,
    pin: str = Form(default=""),
    store: DocumentStore = Depends(get_store),
) -> HTMLResponse:
    """
    Submit a vault PIN. A match renders the unlocked page and counts one
    unlock; anything else renders the locked page with a notice.
    """
    collection, doc = await resolve_public(store, public_id)
    gate = VaultGate(profile_doc.vault_pin(doc))
    if gate.rejects_format(pin):
        return _locked(doc, public_id, MALFORMED_PIN, 422)

    if not gate.submit(pin):
        return _locked(doc, public_id, INCORRECT_PIN, 403)

    await record_unlock(store, collection, public_id)
    return HTMLResponse(render_page(doc, public_id, gate.state, _options(public_id, pin=pin)))


@router.post("/{public_id}/vault/{asset}")
async def download_asset(
    public_id: str,
    asset: str,
    pin: str = Form(default=""),
    store: DocumentStore = Depends(get_store),
):
    """Count a vault download and redirect to the asset. The PIN is re-checked."""
    collection, doc = await resolve_public(store, public_id)
    if asset not in VAULT_ASSETS:
        raise NotFound(f"No vault asset {asset!r}.")

    gate = VaultGate(profile_doc.vault_pin(doc))
    if gate.rejects_format(pin) or not gate.submit(pin):
        return _locked(doc, public_id, INCORRECT_PIN, 403)

    url = safe_url((doc.get("vault") or {}).get(asset))
    if not url:
        raise NotFound(f"{VAULT_ASSETS[asset]} not uploaded yet.")

    await record_download(store, collection, public_id, asset)
    return RedirectResponse(url, status_code=303)


@router.get("/{public_id}/links/{social_id}")
async def follow_link(
    public_id: str,
    social_id: str,
    store: DocumentStore = Depends(get_store),
) -> RedirectResponse:
    """Count a social link click and redirect to the link."""
    collection, doc = await resolve_public(store, public_id)
    link = profile_doc.find_item(doc, "socials", social_id)
    url = safe_url(link.get("url")) if link else ""
    if not link or not url:
        raise NotFound("No such link.")

    await record_link_click(store, collection, public_id, link.get("platform") or "website")
    return RedirectResponse(url, status_code=307)


@router.get("/{public_id}/one-sheet", response_class=HTMLResponse)
async def one_sheet(
    public_id: str,
    store: DocumentStore = Depends(get_store),
) -> HTMLResponse:
    """Print-formatted one-sheet with a QR code to the live page."""
    _, doc = await resolve_public(store, public_id)
    html = render_one_sheet(
        doc,
        public_id,
        config.settings.profile_url(public_id),
        qr_service_url=config.settings.QR_SERVICE_URL,
    )
    return HTMLResponse(html)
