from __future__ import annotations

import logging
from typing import Optional

from app.common.errors import CourseNotFoundError
from app.features.courses.repository import CourseRepository, course_repository
from app.features.courses.schemas import (
    CourseGraph,
    CourseOutline,
    OutlineModule,
    OutlineQuestion,
    OutlineQuiz,
    QuizSchema,
)


def _outline_quiz(graph: CourseGraph, quiz: Optional[QuizSchema]) -> Optional[OutlineQuiz]:
    if quiz is None:
        return None
    return OutlineQuiz(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        type=quiz.type,
        pass_percentage=quiz.pass_percentage,
        questions=[
            OutlineQuestion(
                id=q.id,
                question_text=q.question_text,
                question_type=q.question_type,
                options=list(q.options),
                order=q.order,
            )
            for q in graph.questions_for(quiz.id)
        ],
    )


def build_outline(graph: CourseGraph) -> CourseOutline:
    """Learner-facing view of the graph; correct answers never leave the server."""
    modules = [
        OutlineModule(
            id=m.id,
            title=m.title,
            description=m.description,
            order=m.order,
            lessons=graph.lessons_for(m.id),
            quiz=_outline_quiz(graph, graph.module_quiz(m.id)),
        )
        for m in graph.ordered_modules()
    ]
    return CourseOutline(
        course=graph.course,
        modules=modules,
        final_quiz=_outline_quiz(graph, graph.final_quiz),
        totals={
            "modules": len(graph.modules),
            "lessons": len(graph.lessons),
            "quizzes": len(graph.quizzes),
        },
    )


class CourseService:
    def __init__(self, repository: CourseRepository = course_repository, logger: Optional[logging.Logger] = None) -> None:
        self._repo = repository
        self._log = logger or logging.getLogger("courses.service")

    async def resolve_course_id(self, identifier: str) -> str:
        """Accept a course id or a certification id that links to a course."""
        if await self._repo.get_course_row(identifier):
            return identifier
        linked = await self._repo.get_linked_course_id(identifier)
        if linked:
            self._log.debug("course_id_resolved certification_id=%s course_id=%s", identifier, linked)
            return linked
        raise CourseNotFoundError(course_id=identifier)

    async def get_graph(self, course_id: str) -> CourseGraph:
        graph = await self._repo.load_graph(course_id)
        if graph is None:
            raise CourseNotFoundError(course_id=course_id)
        return graph

    async def get_outline(self, identifier: str) -> CourseOutline:
        course_id = await self.resolve_course_id(identifier)
        return build_outline(await self.get_graph(course_id))


course_service = CourseService()

__all__ = ["course_service", "CourseService", "build_outline"]
