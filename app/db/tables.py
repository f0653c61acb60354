"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in app/models/.
Repos convert between SQLAlchemy rows and domain dataclasses.  Ids are
stored as strings because learner and exam ids come from other services.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from app.db.engine import Base

# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="draft"
    )  # draft|published|archived
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    instructor_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    instructor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    final_exam_id: Mapped[str | None] = mapped_column(String(64), nullable=True)


class CourseModuleRow(Base):
    __tablename__ = "course_modules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    quiz_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)


class SectionRow(Base):
    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    module_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("course_modules.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


# --- Enrollment and progress ---


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=False
    )
    enrolled_at: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active"
    )  # active|completed|cancelled
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("learner_id", "course_id"),)


class ProgressLedgerRow(Base):
    __tablename__ = "progress_ledgers"

    learner_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), primary_key=True
    )
    enrollment_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("enrollments.id"), nullable=False
    )
    completed_sections: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    completed_quizzes: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    completed_final_exam: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    location_module_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_section_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location_quiz_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    overall_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_accessed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "location_section_id IS NULL OR location_quiz_id IS NULL",
            name="ck_progress_ledgers_single_location",
        ),
        CheckConstraint(
            "overall_progress BETWEEN 0 AND 100",
            name="ck_progress_ledgers_progress_range",
        ),
    )


# --- Certificates ---


class CertificateRow(Base):
    __tablename__ = "certificates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    certificate_id: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False
    )
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=False
    )
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_name: Mapped[str] = mapped_column(String(500), nullable=False)
    instructor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_date: Mapped[int] = mapped_column(Integer, nullable=False)
    issued_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (UniqueConstraint("learner_id", "course_id"),)
