"""
EPK Kernel — Document store

Abstract key-value document interface plus an in-memory implementation.
Production uses PostgresDocumentStore (engine/kernel/postgres_store.py).

Documents are full JSON objects keyed by (collection, id). `set` replaces
the whole document. `increment` is the only operation safe against
concurrent writers: it adds to numeric fields in place, creating missing
intermediate maps, so two viewers bumping the same counter both count.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from engine.kernel.errors import WriteFailed


class DocumentStore:
    """
    Abstract store interface.
    Implement with Postgres for production, or in-memory for tests and demo.
    """

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a document. Returns None if absent."""
        raise NotImplementedError

    async def set(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Write a full document, replacing any existing one."""
        raise NotImplementedError

    async def increment(self, collection: str, doc_id: str, increments: dict[str, int]) -> None:
        """
        Atomically add to numeric fields of an existing document.

        Keys are dotted paths ("daily_views.2024-05-01"). Missing fields
        start at zero.

        Raises:
            WriteFailed: the document does not exist
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release any held resources."""


class MemoryDocumentStore(DocumentStore):
    """In-memory store for tests and the demo profile."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        async with self._lock:
            doc = self.collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        async with self._lock:
            self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(document)

    async def increment(self, collection: str, doc_id: str, increments: dict[str, int]) -> None:
        async with self._lock:
            doc = self.collections.get(collection, {}).get(doc_id)
            if doc is None:
                raise WriteFailed(f"No document {collection}/{doc_id}")
            for path, by in increments.items():
                apply_increment(doc, path, by)


def apply_increment(doc: dict[str, Any], path: str, by: int) -> None:
    """Add `by` to the number at dotted `path`, creating maps along the way."""
    *parents, leaf = path.split(".")
    node = doc
    for key in parents:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    current = node.get(leaf)
    node[leaf] = (current if isinstance(current, int | float) and not isinstance(current, bool) else 0) + by
