"""add unique constraint grade submission

Revision ID: b3f05e6c81d2
Revises: 7c1e2d9a4b10
Create Date: 2026-10-19 10:02:17.640913

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = 'b3f05e6c81d2'
down_revision: Union[str, Sequence[str], None] = '7c1e2d9a4b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # keep the newest grade when earlier re-grades left duplicates behind
    op.execute(
        """
        DELETE FROM grades
        WHERE id NOT IN (
            SELECT MAX(id) FROM grades GROUP BY submission_id
        )
        """
    )
    with op.batch_alter_table("grades", recreate="always") as batch_op:
        batch_op.create_unique_constraint(
            "uq_grades_submission",
            ["submission_id"],
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("grades", recreate="always") as batch_op:
        batch_op.drop_constraint(
            "uq_grades_submission",
            type_="unique",
        )
