"""Overall completion percentage and snapshot recomputation.

Weighting: lessons count for 70%, module quizzes for 30% (a module without a
quiz counts as passed). A course with an unpassed final quiz tops out at 99 so
nothing downstream treats the learner as done before the gating quiz.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional

from app.common.utils import current_timestamp
from app.features.courses.schemas import CourseGraph
from app.features.progression.locks import count_completed_modules, module_quiz_passed
from app.features.progression.schemas import EnrollmentSnapshot

LESSON_WEIGHT = 0.7
MODULE_QUIZ_WEIGHT = 0.3
FINAL_QUIZ_CAP = 99


def _round_half_up(value: float) -> int:
    # Snap float noise (e.g. 67.49999999) before rounding half up.
    return int(math.floor(round(value, 9) + 0.5))


def lesson_fraction(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> float:
    total = len(graph.lessons)
    if total == 0:
        return 0.0
    done = sum(1 for lesson in graph.lessons if snapshot.has_lesson(lesson.order))
    return done / total


def module_quiz_fraction(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> float:
    total = len(graph.modules)
    if total == 0:
        return 0.0
    passed = sum(1 for m in graph.modules if module_quiz_passed(graph, m.id, snapshot))
    return passed / total


def calculate_overall_progress(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> int:
    if not graph.modules:
        return 0
    raw = (lesson_fraction(graph, snapshot) * LESSON_WEIGHT + module_quiz_fraction(graph, snapshot) * MODULE_QUIZ_WEIGHT) * 100
    overall = min(100, max(0, _round_half_up(raw)))
    final = graph.final_quiz
    if overall == 100 and final is not None and not snapshot.has_passed(final.id):
        return FINAL_QUIZ_CAP
    return overall


def module_lesson_progress(graph: CourseGraph, module_id: str, snapshot: EnrollmentSnapshot) -> int:
    lessons = graph.lessons_for(module_id)
    if not lessons:
        return 100
    done = sum(1 for lesson in lessons if snapshot.has_lesson(lesson.order))
    return _round_half_up(done / len(lessons) * 100)


def recompute_snapshot(
    graph: CourseGraph,
    snapshot: EnrollmentSnapshot,
    *,
    progress_array: Optional[Iterable[int]] = None,
    passed_quizzes: Optional[Iterable[str]] = None,
    now: Optional[datetime] = None,
) -> EnrollmentSnapshot:
    """Return a new snapshot with every derived field rebuilt from scratch."""
    data = snapshot.model_dump()
    if progress_array is not None:
        data["progress_array"] = list(progress_array)
    if passed_quizzes is not None:
        data["passed_quizzes"] = list(passed_quizzes)
    draft = EnrollmentSnapshot.model_validate(data)

    progress = calculate_overall_progress(graph, draft)
    if progress == 100:
        completed_at = draft.completed_at or now or current_timestamp()
    else:
        completed_at = None
    return draft.model_copy(
        update={
            "progress": progress,
            "completed_modules_count": count_completed_modules(graph, draft),
            "completed_at": completed_at,
        }
    )


__all__ = [
    "calculate_overall_progress",
    "lesson_fraction",
    "module_quiz_fraction",
    "module_lesson_progress",
    "recompute_snapshot",
]
