"""
EPK Kernel — Assembly Layer

Sits between the pure functions (sections, profile, gate, renderer) and the
document store. This is where IO happens.

Operations: ensure_profile, resolve_public, record_view, record_unlock,
record_download, record_link_click
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from engine.kernel.analytics import (
    download_increments,
    link_click_increments,
    unlock_increments,
    view_increments,
)
from engine.kernel.errors import EPKError, NotFound, StoreUnavailable
from engine.kernel.profile import default_profile
from engine.kernel.store import DocumentStore
from engine.kernel.types import now_iso

logger = logging.getLogger(__name__)

# Manual slugs live in the primary namespace; identity-provider ids may live
# in the secondary one.
PRIMARY_COLLECTION = "bands"
SECONDARY_COLLECTION = "users"
LOOKUP_ORDER: tuple[str, ...] = (PRIMARY_COLLECTION, SECONDARY_COLLECTION)


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


async def ensure_profile(
    store: DocumentStore,
    profile_id: str,
    display_name_hint: str | None = None,
    email_hint: str | None = None,
) -> dict[str, Any]:
    """
    Return the profile at `profile_id`, creating it with defaults if absent.

    An existing document comes back verbatim: no merging, no upgrade, no
    write. Two concurrent first calls for the same id may both create;
    the last write wins.

    Raises:
        StoreUnavailable: the store could not be reached
        WriteFailed: the new document could not be written
    """
    existing = await _get(store, PRIMARY_COLLECTION, profile_id)
    if existing is not None:
        return existing

    profile = default_profile(display_name_hint, email_hint)
    profile["created_at"] = now_iso()
    await store.set(PRIMARY_COLLECTION, profile_id, profile)
    logger.info("bootstrap: created profile %s", profile_id)
    return profile


# ---------------------------------------------------------------------------
# Public lookup
# ---------------------------------------------------------------------------


async def resolve_public(store: DocumentStore, public_id: str) -> tuple[str, dict[str, Any]]:
    """
    Find a public profile, trying each namespace in LOOKUP_ORDER.

    Returns:
        (collection the document was found in, document)

    Raises:
        NotFound: no namespace has a document for `public_id`
        StoreUnavailable: the store could not be reached
    """
    for collection in LOOKUP_ORDER:
        doc = await _get(store, collection, public_id)
        if doc is not None:
            return collection, doc
    raise NotFound(f"No profile for {public_id!r}.")


async def _get(store: DocumentStore, collection: str, doc_id: str) -> dict[str, Any] | None:
    try:
        return await store.get(collection, doc_id)
    except StoreUnavailable:
        raise
    except (OSError, ConnectionError) as e:
        raise StoreUnavailable(str(e)) from e


# ---------------------------------------------------------------------------
# Analytics (best effort)
# ---------------------------------------------------------------------------


async def record_view(
    store: DocumentStore,
    collection: str,
    doc_id: str,
    now: datetime | None = None,
    user_agent: str | None = None,
) -> bool:
    """Count one public view: total, today's bucket, and device class."""
    return await _increment_quietly(store, collection, doc_id, view_increments(now, user_agent))


async def record_unlock(store: DocumentStore, collection: str, doc_id: str) -> bool:
    return await _increment_quietly(store, collection, doc_id, unlock_increments())


async def record_download(store: DocumentStore, collection: str, doc_id: str, asset: str) -> bool:
    return await _increment_quietly(store, collection, doc_id, download_increments(asset))


async def record_link_click(store: DocumentStore, collection: str, doc_id: str, platform: str) -> bool:
    return await _increment_quietly(store, collection, doc_id, link_click_increments(platform))


async def _increment_quietly(
    store: DocumentStore,
    collection: str,
    doc_id: str,
    increments: dict[str, int],
) -> bool:
    """
    Counters are a side effect of serving a page. A failed increment is
    logged and reported as False; it never reaches the viewer.
    """
    try:
        await store.increment(collection, doc_id, increments)
        return True
    except (EPKError, OSError, ConnectionError) as e:
        logger.warning("analytics: skipped %s for %s/%s: %s", sorted(increments), collection, doc_id, e)
        return False
