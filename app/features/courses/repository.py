from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.common.errors import InvalidCourseGraphError
from app.common.utils import coerce_list
from app.db.repository import SupabaseRepository
from app.features.courses.schemas import (
    CourseGraph,
    CourseSchema,
    LessonSchema,
    ModuleSchema,
    QuizQuestionSchema,
    QuizSchema,
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def course_from_row(row: Dict[str, Any]) -> CourseSchema:
    return CourseSchema(
        id=_text(row.get("id")),
        title=_text(row.get("title") or row.get("name")),
        description=_text(row.get("description")),
        duration=_text(row.get("duration")) or None,
    )


def module_from_row(row: Dict[str, Any], course_id: str) -> ModuleSchema:
    return ModuleSchema(
        id=_text(row.get("id")),
        course_id=_text(row.get("course_id") or course_id),
        title=_text(row.get("title")),
        description=_text(row.get("description")),
        order=_int(row.get("order")),
    )


def lesson_from_row(row: Dict[str, Any]) -> LessonSchema:
    return LessonSchema(
        id=_text(row.get("id")),
        module_id=_text(row.get("module_id")),
        title=_text(row.get("title")),
        content=_text(row.get("content")),
        order=_int(row.get("order")),
    )


def quiz_from_row(row: Dict[str, Any], course_id: str) -> QuizSchema:
    raw_pass = row.get("pass_percentage")
    return QuizSchema(
        id=_text(row.get("id")),
        course_id=_text(row.get("course_id") or course_id),
        module_id=_text(row.get("module_id")) or None,
        title=_text(row.get("title")),
        description=_text(row.get("description")),
        type=_text(row.get("type") or row.get("quiz_type") or "module_quiz"),
        pass_percentage=float(raw_pass) if raw_pass is not None else 80.0,
    )


def question_from_row(row: Dict[str, Any]) -> QuizQuestionSchema:
    return QuizQuestionSchema(
        id=_text(row.get("id")),
        quiz_id=_text(row.get("quiz_id")),
        question_text=_text(row.get("question_text") or row.get("question")),
        question_type=_text(row.get("question_type") or row.get("type") or "multiple_choice"),
        options=[_text(o) for o in coerce_list(row.get("options"))],
        correct_answer=_text(row.get("correct_answer")),
        explanation=_text(row.get("explanation")) or None,
        order=_int(row.get("order")),
    )


class CourseRepository(SupabaseRepository):
    """Read-only access to the course graph tables."""

    logger = logging.getLogger("courses.repository")

    _COURSES = "certifree_courses"
    _MODULES = "certifree_modules"
    _LESSONS = "certifree_lessons"
    _QUIZZES = "certifree_quizzes"
    _QUESTIONS = "certifree_quiz_questions"
    _CERTIFICATIONS = "certifications"

    async def get_course_row(self, course_id: str) -> Optional[Dict[str, Any]]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._COURSES).select("*").eq("id", course_id).limit(1),
            op="courses.get",
        )
        return self._first(resp)

    async def get_linked_course_id(self, certification_id: str) -> Optional[str]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._CERTIFICATIONS).select("id, course_id").eq("id", certification_id).limit(1),
            op="certifications.course_link",
        )
        row = self._first(resp)
        if row and row.get("course_id"):
            return str(row["course_id"])
        return None

    async def list_modules(self, course_id: str) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._MODULES).select("*").eq("course_id", course_id).order("order"),
            op="modules.by_course",
        )
        return self._rows(resp)

    async def list_lessons(self, module_ids: List[str]) -> List[Dict[str, Any]]:
        if not module_ids:
            return []
        client = await self._client()
        resp = await self._execute(
            client.table(self._LESSONS).select("*").in_("module_id", module_ids).order("order"),
            op="lessons.by_modules",
        )
        return self._rows(resp)

    async def list_quizzes(self, course_id: str) -> List[Dict[str, Any]]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._QUIZZES).select("*").eq("course_id", course_id),
            op="quizzes.by_course",
        )
        return self._rows(resp)

    async def list_questions(self, quiz_ids: List[str]) -> List[Dict[str, Any]]:
        if not quiz_ids:
            return []
        client = await self._client()
        resp = await self._execute(
            client.table(self._QUESTIONS).select("*").in_("quiz_id", quiz_ids).order("order"),
            op="quiz_questions.by_quizzes",
        )
        return self._rows(resp)

    async def load_graph(self, course_id: str) -> Optional[CourseGraph]:
        """Fetch every row of the course and convert it into a validated graph."""
        course_row = await self.get_course_row(course_id)
        if not course_row:
            return None
        try:
            course = course_from_row(course_row)
            modules = [module_from_row(r, course.id) for r in await self.list_modules(course.id)]
            lessons = [lesson_from_row(r) for r in await self.list_lessons([m.id for m in modules])]
            quizzes = [quiz_from_row(r, course.id) for r in await self.list_quizzes(course.id)]
            questions = [question_from_row(r) for r in await self.list_questions([q.id for q in quizzes])]
        except ValidationError as exc:
            self.logger.warning("course_row_invalid course_id=%s error=%s", course_id, exc)
            raise InvalidCourseGraphError(str(exc), course_id=course_id) from exc
        self.logger.debug(
            "course_graph_loaded course_id=%s modules=%d lessons=%d quizzes=%d questions=%d",
            course.id,
            len(modules),
            len(lessons),
            len(quizzes),
            len(questions),
        )
        return CourseGraph.build(
            course=course,
            modules=modules,
            lessons=lessons,
            quizzes=quizzes,
            questions=questions,
        )


course_repository = CourseRepository()

__all__ = ["course_repository", "CourseRepository"]
