"""unique module quiz ids

Revision ID: a41c7d2e9f05
Revises: 3b7e91c0d2a4
Create Date: 2026-10-16 12:00:00.000000

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a41c7d2e9f05"
down_revision: str | Sequence[str] | None = "3b7e91c0d2a4"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # NULLs stay distinct, so modules without a quiz are unaffected.
    op.create_unique_constraint(
        "uq_course_modules_quiz_id", "course_modules", ["quiz_id"]
    )


def downgrade() -> None:
    op.drop_constraint("uq_course_modules_quiz_id", "course_modules", type_="unique")
