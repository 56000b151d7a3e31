"""one active late request per assignment and student

Revision ID: c71d0e94a5f2
Revises: 8e24b6d51c3a
Create Date: 2026-10-18 11:02:17.904361

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c71d0e94a5f2'
down_revision: Union[str, Sequence[str], None] = '8e24b6d51c3a'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE = "status IN ('pending', 'approved')"


def upgrade() -> None:
    """Upgrade schema."""
    op.create_index(
        "uq_late_requests_active",
        "late_requests",
        ["assignment_id", "student_id"],
        unique=True,
        sqlite_where=sa.text(ACTIVE),
        postgresql_where=sa.text(ACTIVE),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_late_requests_active", table_name="late_requests")
