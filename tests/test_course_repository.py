import pytest

from fakesupabase import COURSE_ID, FINAL_QUIZ, MODULE_1

from app.common.errors import CourseNotFoundError, InvalidCourseGraphError, PersistenceError
from app.features.courses.repository import CourseRepository, question_from_row
from app.features.courses.schemas import QuestionType, QuizType
from app.features.courses.service import CourseService

pytestmark = pytest.mark.anyio


def test_question_row_coercion():
    q = question_from_row(
        {
            "id": 7,
            "quiz_id": 3,
            "question": "Is the sky blue?",
            "question_type": "true_false",
            "options": '["true", "false"]',
            "correct_answer": True,
            "order": "2",
        }
    )
    assert q.id == "7"
    assert q.question_text == "Is the sky blue?"
    assert q.question_type == QuestionType.true_false
    assert q.options == ["true", "false"]
    assert q.correct_answer == "true"
    assert q.order == 2


async def test_load_graph(fake_db):
    graph = await CourseRepository().load_graph(COURSE_ID)

    assert graph.course.title == "Cloud Foundations"
    assert [m.order for m in graph.ordered_modules()] == [1, 2]
    assert [lesson.order for lesson in graph.lessons_for(MODULE_1)] == [1, 2]
    assert graph.final_quiz.id == FINAL_QUIZ
    assert graph.final_quiz.type == QuizType.final_quiz
    assert graph.module_quiz("module-2") is None


async def test_missing_course_returns_none(fake_db):
    assert await CourseRepository().load_graph("nope") is None
    with pytest.raises(CourseNotFoundError):
        await CourseService(CourseRepository()).get_graph("nope")


async def test_gap_in_module_order_is_rejected(fake_db):
    fake_db.rows("certifree_modules")[1]["order"] = 3
    with pytest.raises(InvalidCourseGraphError) as exc:
        await CourseRepository().load_graph(COURSE_ID)
    assert exc.value.status_code == 500


async def test_duplicate_lesson_order_across_modules_is_rejected(fake_db):
    fake_db.rows("certifree_lessons")[2]["order"] = 1
    with pytest.raises(InvalidCourseGraphError):
        await CourseRepository().load_graph(COURSE_ID)


async def test_second_final_quiz_is_rejected(fake_db):
    fake_db.rows("certifree_quizzes").append(
        {"id": "quiz-final-2", "course_id": COURSE_ID, "title": "Again", "type": "final_quiz"}
    )
    with pytest.raises(InvalidCourseGraphError):
        await CourseRepository().load_graph(COURSE_ID)


async def test_supabase_failure_becomes_persistence_error(fake_db):
    fake_db.fail_on.add(("certifree_lessons", "select"))
    with pytest.raises(PersistenceError) as exc:
        await CourseRepository().load_graph(COURSE_ID)
    assert exc.value.context["operation"] == "lessons.by_modules"


async def test_outline_hides_answers_and_resolves_certification_id(fake_db):
    service = CourseService(CourseRepository())
    outline = await service.get_outline("cert-cloud")

    assert outline.course.id == COURSE_ID
    assert outline.totals == {"modules": 2, "lessons": 3, "quizzes": 2}
    assert outline.modules[0].quiz.questions[0].options == ["Kitchen", "us-east-1", "Garage"]
    assert "correct_answer" not in outline.model_dump_json()
    assert "explanation" not in outline.modules[0].quiz.model_dump()


async def test_unknown_identifier(fake_db):
    with pytest.raises(CourseNotFoundError):
        await CourseService(CourseRepository()).resolve_course_id("nothing")
