from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from app.common.errors import EmptyQuizError
from app.features.courses.schemas import QuestionType, QuizQuestionSchema, QuizSchema
from app.features.progression.schemas import GradeResult, QuestionResult


def normalise_short_answer(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().casefold()


def is_answer_correct(question: QuizQuestionSchema, submitted: Optional[str]) -> bool:
    if submitted is None:
        return False
    if question.question_type == QuestionType.short_answer:
        return normalise_short_answer(submitted) == normalise_short_answer(question.correct_answer)
    # multiple_choice / true_false: exact match only
    return submitted == question.correct_answer


def grade_quiz(
    quiz: QuizSchema,
    questions: Sequence[QuizQuestionSchema],
    answers: Mapping[str, str],
) -> GradeResult:
    if not questions:
        raise EmptyQuizError("quiz has no questions to grade", quiz_id=quiz.id)

    results = []
    for question in questions:
        submitted = answers.get(question.id)
        results.append(
            QuestionResult(
                question_id=question.id,
                correct=is_answer_correct(question, submitted),
                submitted=submitted,
                explanation=question.explanation,
            )
        )
    correct = sum(1 for r in results if r.correct)
    score = correct / len(questions) * 100.0
    return GradeResult(
        quiz_id=quiz.id,
        correct_count=correct,
        total_questions=len(questions),
        score_percentage=score,
        pass_percentage=quiz.pass_percentage,
        passed=score >= quiz.pass_percentage,
        question_results=results,
    )


def next_attempt_number(prior_attempts: int) -> int:
    return max(0, int(prior_attempts)) + 1


def recorded_answers(questions: Sequence[QuizQuestionSchema], answers: Mapping[str, str]) -> Dict[str, str]:
    """Answers worth persisting: only ids that belong to the quiz."""
    known = {q.id for q in questions}
    return {qid: value for qid, value in answers.items() if qid in known}


__all__ = [
    "grade_quiz",
    "is_answer_correct",
    "next_attempt_number",
    "normalise_short_answer",
    "recorded_answers",
]
