"""
Pytest configuration and fixtures for Playback tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("IDP_JWT_SECRET", "test-idp-secret-for-testing-only")
os.environ.setdefault("PUBLIC_URL", "https://playback.test")
os.environ.setdefault("R2_PUBLIC_URL", "https://uploads.playback.test")
os.environ.setdefault("ALLOW_DEMO_IDENTITY", "true")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.config import settings  # noqa: E402
from backend.main import app  # noqa: E402
from backend.services.editor import EditorSessionRegistry  # noqa: E402
from engine.kernel.store import MemoryDocumentStore  # noqa: E402


@pytest.fixture
def binary_store():
    """Stand-in for R2: records puts, returns public URLs."""
    fake = MagicMock()
    fake.put = AsyncMock(side_effect=lambda path, data, content_type: path)
    fake.get_url = MagicMock(side_effect=lambda path: f"{settings.R2_PUBLIC_URL}/{path}")
    return fake


@pytest.fixture
def store(binary_store):
    """
    Fresh in-memory document store wired into the app.

    ASGITransport does not run the lifespan, so app.state is set here.
    """
    memory = MemoryDocumentStore()
    app.state.store = memory
    app.state.binary_store = binary_store
    app.state.editor_sessions = EditorSessionRegistry(binary_store, settings.MAX_UPLOAD_BYTES)
    yield memory
    app.state.store = None


@pytest_asyncio.fixture(loop_scope="session")
async def async_client(store):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
