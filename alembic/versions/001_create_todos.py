"""Todos table for the Postgres and Neon todo lists.

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
    op.execute("""
        CREATE TABLE todos (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            due_by DATE,
            done BOOLEAN NOT NULL DEFAULT false,
            created_by TEXT NOT NULL
        );
    """)

    # Every list query filters on the owner
    op.execute("""
        CREATE INDEX idx_todos_created_by ON todos (created_by, due_by);
    """)


def downgrade():
    op.execute("DROP INDEX IF EXISTS idx_todos_created_by;")
    op.execute("DROP TABLE IF EXISTS todos;")
