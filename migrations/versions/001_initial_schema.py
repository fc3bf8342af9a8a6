"""Initial schema: reservations with identity and placement unique
constraints, cancellation audit trail, admin settings and announcement
singletons.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parents[1] / "sql" / "001_initial.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS announcements")
    op.execute("DROP TABLE IF EXISTS admin_settings")
    op.execute("DROP TABLE IF EXISTS cancelled_reservations")
    op.execute("DROP TABLE IF EXISTS reservations")
