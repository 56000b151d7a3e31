"""add attempt counters and unique attempt index

Revision ID: 8e24b6d51c3a
Revises: 3f1c9a7d2b10
Create Date: 2026-10-09 10:41:03.552917

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e24b6d51c3a'
down_revision: Union[str, Sequence[str], None] = '3f1c9a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "attempt_counters",
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("assignment_id", "student_id"),
    )

    # backfill from existing rows so the cap holds for old submissions too
    op.execute(
        "INSERT INTO attempt_counters (assignment_id, student_id, count) "
        "SELECT assignment_id, student_id, COUNT(*) FROM submissions "
        "GROUP BY assignment_id, student_id"
    )

    with op.batch_alter_table("submissions", recreate="always") as batch_op:
        batch_op.create_unique_constraint(
            "uq_submission_attempt",
            ["assignment_id", "student_id", "attempt_index"],
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("submissions", recreate="always") as batch_op:
        batch_op.drop_constraint(
            "uq_submission_attempt",
            type_="unique",
        )
    op.drop_table("attempt_counters")
