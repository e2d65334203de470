"""Documents table for profile storage.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # One row per (collection, id). Profiles live in "bands"; identity-keyed
    # profiles may live in "users".
    op.execute("""
        CREATE TABLE documents (
            collection TEXT NOT NULL,
            id TEXT NOT NULL,
            body JSONB NOT NULL DEFAULT '{}'::jsonb,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (collection, id)
        );
    """)

    op.execute("""
        CREATE INDEX idx_documents_updated_at ON documents (updated_at DESC);
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS documents;")
