import pytest

from builders import scenario_graph
from fakesupabase import FINAL_QUIZ, MODULE_QUIZ

from app.common.errors import EmptyQuizError
from app.features.progression.grading import (
    grade_quiz,
    is_answer_correct,
    next_attempt_number,
    recorded_answers,
)


graph = scenario_graph()


def _question(qid):
    return next(q for q in graph.questions if q.id == qid)


def test_multiple_choice_requires_exact_match():
    q = _question("q1")
    assert is_answer_correct(q, "us-east-1") is True
    assert is_answer_correct(q, "US-EAST-1") is False
    assert is_answer_correct(q, " us-east-1") is False


def test_true_false_requires_exact_match():
    q = _question("q2")
    assert is_answer_correct(q, "true") is True
    assert is_answer_correct(q, "True") is False


def test_short_answer_is_trimmed_and_case_insensitive():
    q = _question("qf")
    assert is_answer_correct(q, "  object storage ") is True
    assert is_answer_correct(q, "OBJECT STORAGE") is True
    assert is_answer_correct(q, "block storage") is False


def test_missing_answer_is_incorrect():
    assert is_answer_correct(_question("q1"), None) is False


def test_grade_half_correct_fails_eighty_percent_threshold():
    quiz = graph.quiz(MODULE_QUIZ)
    result = grade_quiz(quiz, graph.questions_for(quiz.id), {"q1": "us-east-1", "q2": "false"})
    assert result.correct_count == 1
    assert result.total_questions == 2
    assert result.score_percentage == pytest.approx(50.0)
    assert result.passed is False
    assert [r.correct for r in result.question_results] == [True, False]


def test_grade_full_marks_passes():
    quiz = graph.quiz(MODULE_QUIZ)
    result = grade_quiz(quiz, graph.questions_for(quiz.id), {"q1": "us-east-1", "q2": "true"})
    assert result.score_percentage == pytest.approx(100.0)
    assert result.passed is True


def test_score_equal_to_threshold_passes():
    quiz = graph.quiz(FINAL_QUIZ)
    result = grade_quiz(quiz, graph.questions_for(quiz.id), {"qf": "object storage"})
    assert result.pass_percentage == 100
    assert result.passed is True


def test_empty_quiz_is_rejected():
    quiz = graph.quiz(MODULE_QUIZ)
    with pytest.raises(EmptyQuizError) as exc:
        grade_quiz(quiz, [], {})
    assert exc.value.context["quiz_id"] == MODULE_QUIZ
    assert exc.value.status_code == 422


def test_attempt_numbers_count_up_from_one():
    assert next_attempt_number(0) == 1
    assert next_attempt_number(2) == 3


def test_recorded_answers_drop_unknown_question_ids():
    questions = graph.questions_for(MODULE_QUIZ)
    assert recorded_answers(questions, {"q1": "x", "nope": "y"}) == {"q1": "x"}
