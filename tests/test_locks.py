from builders import scenario_graph, snapshot
from fakesupabase import FINAL_QUIZ, MODULE_1, MODULE_2, MODULE_QUIZ

from app.features.progression.locks import (
    count_completed_modules,
    evaluate_locks,
    is_module_completed,
    is_module_locked,
    is_quiz_locked,
)


graph = scenario_graph()


def test_first_module_is_never_locked():
    assert is_module_locked(graph, graph.module(MODULE_1), snapshot()) is False


def test_second_module_locked_until_first_completed():
    m2 = graph.module(MODULE_2)
    assert is_module_locked(graph, m2, snapshot(progress_array=[1, 2])) is True
    assert is_module_locked(graph, m2, snapshot(progress_array=[1, 2], passed_quizzes=[MODULE_QUIZ])) is False


def test_passing_quiz_without_lessons_does_not_complete_module():
    snap = snapshot(progress_array=[1], passed_quizzes=[MODULE_QUIZ])
    assert is_module_completed(graph, MODULE_1, snap) is False
    assert is_module_locked(graph, graph.module(MODULE_2), snap) is True


def test_module_quiz_locked_until_lessons_done():
    quiz = graph.quiz(MODULE_QUIZ)
    assert is_quiz_locked(graph, quiz, snapshot(progress_array=[1])) is True
    assert is_quiz_locked(graph, quiz, snapshot(progress_array=[1, 2])) is False


def test_final_quiz_locked_until_every_module_completed():
    final = graph.quiz(FINAL_QUIZ)
    assert is_quiz_locked(graph, final, snapshot(progress_array=[1, 2], passed_quizzes=[MODULE_QUIZ])) is True
    done = snapshot(progress_array=[1, 2, 3], passed_quizzes=[MODULE_QUIZ])
    assert is_quiz_locked(graph, final, done) is False


def test_module_without_quiz_counts_as_quiz_passed():
    snap = snapshot(progress_array=[1, 2, 3], passed_quizzes=[MODULE_QUIZ])
    assert is_module_completed(graph, MODULE_2, snap) is True
    assert count_completed_modules(graph, snap) == 2


def test_evaluate_locks_reports_every_gate():
    state = evaluate_locks(graph, snapshot())
    assert state.modules == {MODULE_1: False, MODULE_2: True}
    assert state.module_quizzes == {MODULE_QUIZ: True}
    assert state.final_quiz is True


def test_evaluate_locks_without_final_quiz():
    from builders import graph_from_tables
    from fakesupabase import scenario_tables

    tables = scenario_tables()
    tables["certifree_quizzes"] = [q for q in tables["certifree_quizzes"] if q["type"] != "final_quiz"]
    no_final = graph_from_tables(tables)
    assert evaluate_locks(no_final, snapshot()).final_quiz is None
