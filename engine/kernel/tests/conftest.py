"""
Engine kernel test configuration.

Kernel tests use MemoryDocumentStore and function-scoped event loops.
PostgresDocumentStore tests that need DATABASE_URL are skipped automatically when not set.
"""
