"""Typed failures surfaced by the course progression and certificate features.

Every error carries a machine readable ``code`` (what went wrong) and the HTTP
``status_code`` the endpoints translate it into. Preconditions are raised
before any write is attempted; ``PersistenceError`` means the Supabase write or
read did not land and the previously stored record is still authoritative.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException


class ProgressionError(Exception):
    code = "progression_error"
    status_code = 400

    def __init__(self, message: Optional[str] = None, **context: Any) -> None:
        self.message = message or self.code.replace("_", " ")
        self.context = context
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.context:
            detail["context"] = {k: str(v) for k, v in self.context.items()}
        return detail


# --- Preconditions --------------------------------------------------------

class PreconditionError(ProgressionError):
    code = "precondition_failed"
    status_code = 409


class ModuleLockedError(PreconditionError):
    code = "module_locked"


class QuizLockedError(PreconditionError):
    code = "quiz_locked"


class EnrollmentMissingError(PreconditionError):
    code = "enrollment_missing"
    status_code = 404


class EmptyQuizError(PreconditionError):
    code = "quiz_has_no_questions"
    status_code = 422


class CertificateNotEligibleError(PreconditionError):
    code = "certificate_not_eligible"
    status_code = 422


# --- Lookups --------------------------------------------------------------

class NotFoundError(ProgressionError):
    code = "not_found"
    status_code = 404


class CourseNotFoundError(NotFoundError):
    code = "course_not_found"


class LessonNotFoundError(NotFoundError):
    code = "lesson_not_found"


class QuizNotFoundError(NotFoundError):
    code = "quiz_not_found"


class CertificateNotFoundError(NotFoundError):
    code = "certificate_not_found"


# --- Data / storage -------------------------------------------------------

class InvalidCourseGraphError(ProgressionError):
    code = "invalid_course_graph"
    status_code = 500


class PersistenceError(ProgressionError):
    code = "persistence_failed"
    status_code = 503


def to_http_exception(exc: ProgressionError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


__all__ = [
    "to_http_exception",
    "ProgressionError",
    "PreconditionError",
    "ModuleLockedError",
    "QuizLockedError",
    "EnrollmentMissingError",
    "EmptyQuizError",
    "CertificateNotEligibleError",
    "NotFoundError",
    "CourseNotFoundError",
    "LessonNotFoundError",
    "QuizNotFoundError",
    "CertificateNotFoundError",
    "InvalidCourseGraphError",
    "PersistenceError",
]
