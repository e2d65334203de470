"""
Database connection pool.

The pool is handed to PostgresDocumentStore, which owns every query.
Never use pool.acquire() directly outside the store.
"""

from __future__ import annotations

import logging

import asyncpg

from backend.config import settings

logger = logging.getLogger(__name__)

pool: asyncpg.Pool | None = None


async def init_pool() -> asyncpg.Pool:
    """
    Initialize the connection pool.
    Called once at application startup when STORE_BACKEND=postgres.
    """
    global pool
    pool = await asyncpg.create_pool(
        dsn=settings.DATABASE_URL,
        min_size=2,
        max_size=20,
        command_timeout=60,
    )
    logger.info("database pool initialized")
    return pool


async def close_pool() -> None:
    """
    Close the connection pool.
    Called at application shutdown.
    """
    global pool
    if pool is not None:
        await pool.close()
        pool = None
        logger.info("database pool closed")
