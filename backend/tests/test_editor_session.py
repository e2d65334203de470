"""
Tests for EditorSession: draft mutators, save, uploads.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from backend.services.editor import EditorSession, EditorSessionRegistry
from engine.kernel.errors import SaveInProgress, ValidationRejected, WriteFailed
from engine.kernel.store import MemoryDocumentStore
from engine.kernel.types import Identity

pytestmark = pytest.mark.asyncio(loop_scope="session")

IDENTITY = Identity(subject="artist-1", display_name="Artist One", email="one@example.com")


class SlowStore(MemoryDocumentStore):
    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def set(self, collection, doc_id, document):
        await self.release.wait()
        await super().set(collection, doc_id, document)


class BrokenStore(MemoryDocumentStore):
    fail = False

    async def set(self, collection, doc_id, document):
        if self.fail:
            raise WriteFailed("permission denied")
        await super().set(collection, doc_id, document)


async def loaded_session(binary_store, store=None, max_upload_bytes=10 * 1024 * 1024):
    session = EditorSession(IDENTITY, store or MemoryDocumentStore(), binary_store, max_upload_bytes)
    await session.load()
    return session


class TestLoadAndSave:
    async def test_load_bootstraps(self, binary_store):
        store = MemoryDocumentStore()
        session = await loaded_session(binary_store, store)
        assert session.draft["display_name"] == "Artist One"
        assert await store.get("bands", "artist-1") == session.draft

    async def test_edits_are_not_durable_until_save(self, binary_store):
        store = MemoryDocumentStore()
        session = await loaded_session(binary_store, store)
        session.update_profile({"tagline": "Synthwave from nowhere"})

        assert (await store.get("bands", "artist-1"))["tagline"] == "New Artist Profile"
        await session.save()
        assert (await store.get("bands", "artist-1"))["tagline"] == "Synthwave from nowhere"

    async def test_second_save_while_in_flight(self, binary_store):
        store = SlowStore()
        store.release.set()
        session = await loaded_session(binary_store, store)
        store.release.clear()

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        assert session.saving
        with pytest.raises(SaveInProgress):
            await session.save()

        store.release.set()
        await first
        assert not session.saving

    async def test_failed_save(self, binary_store):
        store = BrokenStore()
        session = await loaded_session(binary_store, store)
        store.fail = True
        with pytest.raises(WriteFailed):
            await session.save()
        assert not session.saving

    async def test_mutator_before_load(self, binary_store):
        session = EditorSession(IDENTITY, MemoryDocumentStore(), binary_store)
        with pytest.raises(RuntimeError):
            session.add_custom_section()


class TestMutators:
    async def test_sections(self, binary_store):
        session = await loaded_session(binary_store)
        custom = session.add_custom_section()
        session.update_section(custom.id, "title", "Merch")
        session.move_section(6, "up")
        session.toggle_section(0)

        types = [s["type"] for s in session.draft["sections"]]
        assert types == ["contact", "vault", "songs", "videos", "tour", "custom", "press"]
        assert session.draft["sections"][0]["visible"] is False
        assert session.draft["sections"][5]["title"] == "Merch"

        session.delete_section(5)
        assert len(session.draft["sections"]) == 6

    async def test_bad_section_field(self, binary_store):
        session = await loaded_session(binary_store)
        with pytest.raises(ValidationRejected):
            session.update_section("songs", "content", "nope")

    async def test_items(self, binary_store):
        session = await loaded_session(binary_store)
        song = session.add_item("songs")
        session.update_item("songs", song["id"], "title", "Static")
        assert session.draft["songs"][0]["title"] == "Static"
        session.remove_item("songs", song["id"])
        assert session.draft["songs"] == []

    async def test_bad_item_kind(self, binary_store):
        session = await loaded_session(binary_store)
        with pytest.raises(ValidationRejected):
            session.add_item("merch")

    async def test_profile_setters(self, binary_store):
        session = await loaded_session(binary_store)
        session.update_profile(
            {
                "display_name": "Neon Echo",
                "colors": {"accent": "#ff00aa"},
                "font": "font-mono",
                "vault_pin": "9876",
                "manager": {"email": "mgr@example.com"},
            }
        )
        draft = session.draft
        assert draft["display_name"] == "Neon Echo"
        assert draft["colors"] == {"background": "#050505", "accent": "#ff00aa", "font": "#ffffff"}
        assert draft["font"] == "font-mono"
        assert draft["vault_pin"] == "9876"
        assert draft["manager"] == {"name": "Artist One", "email": "mgr@example.com"}

    @pytest.mark.parametrize(
        "changes",
        [
            {"vault_pin": "12345"},
            {"vault_pin": "12a4"},
            {"colors": {"accent": "blue"}},
            {"colors": {"shadow": "#000000"}},
            {"font": "font-comic"},
            {"views": 1000},
        ],
    )
    async def test_rejected_setters_leave_draft_untouched(self, binary_store, changes):
        session = await loaded_session(binary_store)
        before = dict(session.draft)
        with pytest.raises(ValidationRejected):
            session.update_profile({"tagline": "changed", **changes})
        assert session.draft == before


class TestUploads:
    async def test_hero_upload(self, binary_store):
        session = await loaded_session(binary_store)
        url = await session.upload("hero", "photo one.jpg", b"jpeg", "image/jpeg")

        path = binary_store.put.await_args.args[0]
        assert path.startswith("uploads/artist-1/hero/")
        assert path.endswith("_photo_one.jpg")
        assert url.endswith(path)
        assert session.draft["hero_image"] == url

    async def test_vault_upload(self, binary_store):
        session = await loaded_session(binary_store)
        url = await session.upload("tech_rider", "rider.pdf", b"%PDF", "application/pdf")
        assert session.draft["vault"]["tech_rider"] == url
        assert session.draft["vault"]["press_photos"] == ""

    async def test_song_audio_upload(self, binary_store):
        session = await loaded_session(binary_store)
        song = session.add_item("songs")
        url = await session.upload("audio", "track.mp3", b"id3", "audio/mpeg", target_id=song["id"])
        assert session.draft["songs"][0]["audio_url"] == url

    async def test_custom_image_upload(self, binary_store):
        session = await loaded_session(binary_store)
        custom = session.add_custom_section()
        url = await session.upload("custom_image", "a.png", b"png", "image/png", target_id=custom.id)
        assert session.draft["sections"][-1]["file_url"] == url

    async def test_oversized_file_never_reaches_binary_store(self, binary_store):
        session = await loaded_session(binary_store, max_upload_bytes=10)
        with pytest.raises(ValidationRejected):
            await session.upload("hero", "big.jpg", b"x" * 11, "image/jpeg")
        binary_store.put.assert_not_awaited()

    async def test_audio_without_song(self, binary_store):
        session = await loaded_session(binary_store)
        with pytest.raises(ValidationRejected):
            await session.upload("audio", "track.mp3", b"id3", "audio/mpeg", target_id="missing")
        binary_store.put.assert_not_awaited()

    async def test_binary_store_failure(self, binary_store):
        binary_store.put = AsyncMock(side_effect=WriteFailed("Upload failed"))
        session = await loaded_session(binary_store)
        with pytest.raises(WriteFailed):
            await session.upload("hero", "a.jpg", b"x", "image/jpeg")
        assert "uploads" not in session.draft["hero_image"]


class TestRegistry:
    async def test_one_session_per_identity(self, binary_store):
        registry = EditorSessionRegistry(binary_store)
        store = MemoryDocumentStore()
        first = registry.get(IDENTITY, store)
        assert registry.get(IDENTITY, store) is first
        assert registry.get(Identity("someone-else"), store) is not first

    async def test_discard(self, binary_store):
        registry = EditorSessionRegistry(binary_store)
        store = MemoryDocumentStore()
        first = registry.get(IDENTITY, store)
        assert IDENTITY.subject in registry

        registry.discard(IDENTITY.subject)
        assert IDENTITY.subject not in registry
        assert registry.get(IDENTITY, store) is not first
        registry.discard("never-seen")
