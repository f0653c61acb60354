"""Domain errors raised by the learning services.

Routers translate these into HTTP responses; services never return
error values.  Each error carries a short machine-readable code.
"""

from __future__ import annotations


class LearningError(Exception):
    """Base class for learning-domain errors."""

    code = "learning_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidReferenceError(LearningError):
    """An event names a section or quiz that is not in the module."""

    code = "invalid_reference"


class NotEnrolledError(LearningError):
    code = "not_enrolled"

    def __init__(self, message: str = "not enrolled in this course") -> None:
        super().__init__(message)


class ConcurrentModificationError(LearningError):
    """The ledger changed between load and save."""

    code = "concurrent_modification"

    def __init__(self, message: str = "progress was modified concurrently") -> None:
        super().__init__(message)


class CourseNotFoundError(LearningError):
    code = "course_not_found"

    def __init__(self, message: str = "course not found") -> None:
        super().__init__(message)


class CourseNotPublishedError(LearningError):
    code = "course_not_published"

    def __init__(self, message: str = "course is not available for enrollment") -> None:
        super().__init__(message)


class AlreadyEnrolledError(LearningError):
    code = "already_enrolled"

    def __init__(self, message: str = "already enrolled") -> None:
        super().__init__(message)


class NoProgressError(LearningError):
    code = "no_progress"

    def __init__(self, message: str = "no progress found for this course") -> None:
        super().__init__(message)


class NotEligibleError(LearningError):
    code = "not_eligible"

    def __init__(self, current_progress: int) -> None:
        self.current_progress = current_progress
        super().__init__("course not >= 100% complete")


class DuplicateCertificateError(LearningError):
    """Raised by a certificate store when (learner, course) already has one."""

    code = "duplicate_certificate"

    def __init__(self, message: str = "certificate already issued") -> None:
        super().__init__(message)


class CurriculumIntegrityError(LearningError):
    """The catalog gives two gradable items of one course the same id."""

    code = "curriculum_integrity"

    def __init__(self, message: str = "course content is inconsistent") -> None:
        super().__init__(message)
