"""create course, enrollment, progress and certificate tables

Revision ID: 3b7e91c0d2a4
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e91c0d2a4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("instructor_id", sa.String(length=64), nullable=True),
        sa.Column("instructor_name", sa.String(length=255), nullable=True),
        sa.Column("final_exam_id", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])

    op.create_table(
        "course_modules",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "course_id", sa.String(length=64), sa.ForeignKey("courses.id"), nullable=False
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("quiz_id", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_course_modules_course_id", "course_modules", ["course_id"])

    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "module_id",
            sa.String(length=64),
            sa.ForeignKey("course_modules.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
    )
    op.create_index("ix_sections_module_id", "sections", ["module_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("learner_id", sa.String(length=64), nullable=False),
        sa.Column(
            "course_id", sa.String(length=64), sa.ForeignKey("courses.id"), nullable=False
        ),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.UniqueConstraint("learner_id", "course_id"),
    )
    op.create_index("ix_enrollments_learner_id", "enrollments", ["learner_id"])

    op.create_table(
        "progress_ledgers",
        sa.Column("learner_id", sa.String(length=64), primary_key=True),
        sa.Column(
            "course_id", sa.String(length=64), sa.ForeignKey("courses.id"), primary_key=True
        ),
        sa.Column(
            "enrollment_id",
            sa.String(length=64),
            sa.ForeignKey("enrollments.id"),
            nullable=False,
        ),
        sa.Column(
            "completed_sections",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "completed_quizzes",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "completed_final_exam", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("location_module_id", sa.String(length=64), nullable=True),
        sa.Column("location_section_id", sa.String(length=64), nullable=True),
        sa.Column("location_quiz_id", sa.String(length=64), nullable=True),
        sa.Column("overall_progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_accessed_at", sa.Integer(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "location_section_id IS NULL OR location_quiz_id IS NULL",
            name="ck_progress_ledgers_single_location",
        ),
        sa.CheckConstraint(
            "overall_progress BETWEEN 0 AND 100",
            name="ck_progress_ledgers_progress_range",
        ),
    )

    op.create_table(
        "certificates",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("certificate_id", sa.String(length=32), nullable=False, unique=True),
        sa.Column("learner_id", sa.String(length=64), nullable=False),
        sa.Column(
            "course_id", sa.String(length=64), sa.ForeignKey("courses.id"), nullable=False
        ),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("course_name", sa.String(length=500), nullable=False),
        sa.Column("instructor_name", sa.String(length=255), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("completion_date", sa.Integer(), nullable=False),
        sa.Column("issued_at", sa.Integer(), nullable=False),
        sa.UniqueConstraint("learner_id", "course_id"),
    )
    op.create_index("ix_certificates_learner_id", "certificates", ["learner_id"])


def downgrade() -> None:
    op.drop_index("ix_certificates_learner_id", table_name="certificates")
    op.drop_table("certificates")
    op.drop_table("progress_ledgers")
    op.drop_index("ix_enrollments_learner_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_sections_module_id", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_course_modules_course_id", table_name="course_modules")
    op.drop_table("course_modules")
    op.drop_index("ix_courses_instructor_id", table_name="courses")
    op.drop_table("courses")
