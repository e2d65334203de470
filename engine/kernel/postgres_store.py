"""
PostgresDocumentStore adapter for the EPK kernel.

Implements the DocumentStore interface on a single JSONB table:

    documents(collection TEXT, id TEXT, body JSONB, updated_at TIMESTAMPTZ)

Bodies travel as JSON text so the adapter works the same with or without
connection-level JSONB codecs.
"""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from engine.kernel.errors import StoreUnavailable, WriteFailed
from engine.kernel.store import DocumentStore, apply_increment

# Connection-level failures (refused, reset, pool closed) as opposed to
# query errors.
_CONNECTION_ERRORS = (OSError, asyncpg.InterfaceError, asyncpg.CannotConnectNowError)


class PostgresDocumentStore(DocumentStore):
    """Postgres-backed document store."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a document. Returns None if not found."""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT body::text AS body FROM documents WHERE collection = $1 AND id = $2",
                    collection,
                    doc_id,
                )
        except (*_CONNECTION_ERRORS, asyncpg.PostgresError) as e:
            raise StoreUnavailable(f"Could not read {collection}/{doc_id}: {e}") from e
        return json.loads(row["body"]) if row else None

    async def set(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Write a full document, replacing any existing one."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO documents (collection, id, body, updated_at)
                    VALUES ($1, $2, $3::text::jsonb, now())
                    ON CONFLICT (collection, id)
                    DO UPDATE SET body = EXCLUDED.body, updated_at = now()
                    """,
                    collection,
                    doc_id,
                    json.dumps(document),
                )
        except (*_CONNECTION_ERRORS, asyncpg.PostgresError) as e:
            raise WriteFailed(f"Could not write {collection}/{doc_id}: {e}") from e

    async def increment(self, collection: str, doc_id: str, increments: dict[str, int]) -> None:
        """
        Add to counters inside one transaction holding the row lock
        (SELECT ... FOR UPDATE), so concurrent increments serialize rather
        than overwrite each other.
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        """
                        SELECT body::text AS body FROM documents
                        WHERE collection = $1 AND id = $2
                        FOR UPDATE
                        """,
                        collection,
                        doc_id,
                    )
                    if row is None:
                        raise WriteFailed(f"No document {collection}/{doc_id}")

                    body = json.loads(row["body"])
                    for path, by in increments.items():
                        apply_increment(body, path, by)

                    await conn.execute(
                        """
                        UPDATE documents
                        SET body = $3::text::jsonb, updated_at = now()
                        WHERE collection = $1 AND id = $2
                        """,
                        collection,
                        doc_id,
                        json.dumps(body),
                    )
        except (*_CONNECTION_ERRORS, asyncpg.PostgresError) as e:
            raise WriteFailed(f"Could not increment {collection}/{doc_id}: {e}") from e

    async def close(self) -> None:
        """Close the connection pool."""
        await self.pool.close()
