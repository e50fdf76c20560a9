"""add unique index open draft

Revision ID: c9a1f4e27d35
Revises: b3f05e6c81d2
Create Date: 2026-10-20 08:41:05.302117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c9a1f4e27d35'
down_revision: Union[str, Sequence[str], None] = 'b3f05e6c81d2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STALE_DRAFTS = """
    SELECT id FROM submissions
    WHERE status = 'draft'
      AND id NOT IN (
          SELECT MAX(id) FROM submissions
          WHERE status = 'draft'
          GROUP BY assignment_id, student_id
      )
"""


def upgrade() -> None:
    """Upgrade schema."""
    # keep the newest open draft per (assignment, student)
    op.execute(f"DELETE FROM comments WHERE submission_id IN ({STALE_DRAFTS})")
    op.execute(f"DELETE FROM notifications WHERE submission_id IN ({STALE_DRAFTS})")
    op.execute(f"DELETE FROM submissions WHERE id IN ({STALE_DRAFTS})")

    op.create_index(
        "uq_submissions_open_draft",
        "submissions",
        ["assignment_id", "student_id"],
        unique=True,
        sqlite_where=sa.text("status = 'draft'"),
        postgresql_where=sa.text("status = 'draft'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_submissions_open_draft", table_name="submissions")
