"""Which modules and quizzes a learner may currently act on.

Everything here is a pure function of the course graph and one enrollment
snapshot. Nothing is cached: callers pass the freshest snapshot they have.
"""

from __future__ import annotations

from app.features.courses.schemas import CourseGraph, ModuleSchema, QuizSchema, QuizType
from app.features.progression.schemas import EnrollmentSnapshot, LockState


def module_lessons_complete(graph: CourseGraph, module_id: str, snapshot: EnrollmentSnapshot) -> bool:
    # A module without lessons is vacuously complete.
    return all(snapshot.has_lesson(lesson.order) for lesson in graph.lessons_for(module_id))


def module_quiz_passed(graph: CourseGraph, module_id: str, snapshot: EnrollmentSnapshot) -> bool:
    quiz = graph.module_quiz(module_id)
    return quiz is None or snapshot.has_passed(quiz.id)


def is_module_completed(graph: CourseGraph, module_id: str, snapshot: EnrollmentSnapshot) -> bool:
    return module_lessons_complete(graph, module_id, snapshot) and module_quiz_passed(graph, module_id, snapshot)


def is_module_locked(graph: CourseGraph, module: ModuleSchema, snapshot: EnrollmentSnapshot) -> bool:
    if module.order <= 1:
        return False
    previous = graph.module_at(module.order - 1)
    if previous is None:
        return False
    return not is_module_completed(graph, previous.id, snapshot)


def is_module_quiz_locked(graph: CourseGraph, module: ModuleSchema, snapshot: EnrollmentSnapshot) -> bool:
    """Unlocked only once the module is reachable and every lesson in it is done."""
    if is_module_locked(graph, module, snapshot):
        return True
    return not module_lessons_complete(graph, module.id, snapshot)


def all_modules_completed(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> bool:
    return all(is_module_completed(graph, m.id, snapshot) for m in graph.modules)


def is_final_quiz_locked(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> bool:
    return not all_modules_completed(graph, snapshot)


def is_quiz_locked(graph: CourseGraph, quiz: QuizSchema, snapshot: EnrollmentSnapshot) -> bool:
    if quiz.type == QuizType.final_quiz:
        return is_final_quiz_locked(graph, snapshot)
    module = graph.module(quiz.module_id) if quiz.module_id else None
    if module is None:
        return True
    return is_module_quiz_locked(graph, module, snapshot)


def count_completed_modules(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> int:
    return sum(1 for m in graph.modules if is_module_completed(graph, m.id, snapshot))


def evaluate_locks(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> LockState:
    modules = graph.ordered_modules()
    module_quizzes = {}
    for m in modules:
        quiz = graph.module_quiz(m.id)
        if quiz is not None:
            module_quizzes[quiz.id] = is_module_quiz_locked(graph, m, snapshot)
    final = graph.final_quiz
    return LockState(
        modules={m.id: is_module_locked(graph, m, snapshot) for m in modules},
        module_quizzes=module_quizzes,
        final_quiz=is_final_quiz_locked(graph, snapshot) if final is not None else None,
    )


__all__ = [
    "module_lessons_complete",
    "module_quiz_passed",
    "is_module_completed",
    "is_module_locked",
    "is_module_quiz_locked",
    "all_modules_completed",
    "is_final_quiz_locked",
    "is_quiz_locked",
    "count_completed_modules",
    "evaluate_locks",
]
