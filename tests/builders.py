# tests/builders.py
from app.features.courses.repository import (
    course_from_row,
    lesson_from_row,
    module_from_row,
    question_from_row,
    quiz_from_row,
)
from app.features.courses.schemas import CourseGraph
from app.features.progression.schemas import EnrollmentSnapshot

from fakesupabase import COURSE_ID, scenario_tables


def graph_from_tables(tables):
    course = course_from_row(tables["certifree_courses"][0])
    return CourseGraph.build(
        course=course,
        modules=[module_from_row(r, course.id) for r in tables.get("certifree_modules", [])],
        lessons=[lesson_from_row(r) for r in tables.get("certifree_lessons", [])],
        quizzes=[quiz_from_row(r, course.id) for r in tables.get("certifree_quizzes", [])],
        questions=[question_from_row(r) for r in tables.get("certifree_quiz_questions", [])],
    )


def scenario_graph():
    return graph_from_tables(scenario_tables())


def snapshot(progress_array=(), passed_quizzes=(), **extra):
    return EnrollmentSnapshot(
        id="enr-1",
        user_id="user-1",
        course_id=COURSE_ID,
        progress_array=progress_array,
        passed_quizzes=passed_quizzes,
        **extra,
    )
