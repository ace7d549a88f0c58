from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from app.common.errors import (
    EnrollmentMissingError,
    LessonNotFoundError,
    ModuleLockedError,
    PersistenceError,
    ProgressionError,
    QuizLockedError,
    QuizNotFoundError,
)
from app.common.locks import LearnerLocks, learner_locks
from app.core.config import get_settings
from app.features.certificates.service import CertificateIssuer, certificate_issuer, check_eligibility
from app.features.courses.schemas import CourseGraph
from app.features.courses.service import CourseService, course_service
from app.features.progression.grading import grade_quiz, next_attempt_number, recorded_answers
from app.features.progression.locks import (
    evaluate_locks,
    is_module_completed,
    is_module_locked,
    is_quiz_locked,
    module_quiz_passed,
)
from app.features.progression.progress import module_lesson_progress, recompute_snapshot
from app.features.progression.repository import (
    EnrollmentRepository,
    QuizAttemptRepository,
    enrollment_repository,
    quiz_attempt_repository,
)
from app.features.progression.schemas import (
    CourseProgressState,
    EnrollmentSnapshot,
    ModuleState,
    QuizAttemptSchema,
    QuizSubmissionResult,
)


class EnrollmentLifecycleService:
    """Applies learner actions to the enrollment snapshot.

    Each mutation is a read-modify-write of the whole snapshot: the course graph
    and the enrollment are fetched fresh, the action is validated against the
    lock rules, a new snapshot is derived and written back. Actions from the
    same learner on the same course are serialized; across processes the last
    write wins.
    """

    def __init__(
        self,
        *,
        courses: CourseService = course_service,
        enrollments: EnrollmentRepository = enrollment_repository,
        attempts: QuizAttemptRepository = quiz_attempt_repository,
        issuer: CertificateIssuer = certificate_issuer,
        locks: LearnerLocks = learner_locks,
        auto_issue_certificates: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._courses = courses
        self._enrollments = enrollments
        self._attempts = attempts
        self._issuer = issuer
        self._locks = locks
        self._auto_issue = auto_issue_certificates
        self._log = logger or logging.getLogger("progression.service")

    @property
    def auto_issue_certificates(self) -> bool:
        if self._auto_issue is None:
            return get_settings().auto_issue_certificates
        return self._auto_issue

    async def _require_enrollment(self, user_id: str, course_id: str) -> EnrollmentSnapshot:
        snapshot = await self._enrollments.get(user_id, course_id)
        if snapshot is None:
            raise EnrollmentMissingError(user_id=user_id, course_id=course_id)
        return snapshot

    async def _persist(
        self,
        graph: CourseGraph,
        snapshot: EnrollmentSnapshot,
        recipient_name: Optional[str],
    ) -> EnrollmentSnapshot:
        saved = await self._enrollments.save(snapshot)
        self._log.info(
            "enrollment_saved user_id=%s course_id=%s progress=%d completed_modules=%d",
            saved.user_id,
            saved.course_id,
            saved.progress,
            saved.completed_modules_count,
        )
        if saved.progress == 100 and self.auto_issue_certificates:
            try:
                await self._issuer.issue_if_eligible(graph, saved, recipient_name or saved.user_id)
            except ProgressionError as exc:
                self._log.warning(
                    "certificate_auto_issue_failed user_id=%s course_id=%s code=%s",
                    saved.user_id,
                    saved.course_id,
                    exc.code,
                )
        return saved

    # --- transitions ------------------------------------------------------

    async def enroll(self, user_id: str, course_id: str) -> EnrollmentSnapshot:
        async with self._locks.lock_for(user_id, course_id):
            await self._courses.get_graph(course_id)
            existing = await self._enrollments.get(user_id, course_id)
            if existing is not None:
                return existing
            try:
                created = await self._enrollments.create(user_id, course_id)
            except PersistenceError:
                # Another session may have enrolled first (unique user/course).
                existing = await self._enrollments.get(user_id, course_id)
                if existing is not None:
                    return existing
                raise
            self._log.info("enrollment_created user_id=%s course_id=%s", user_id, course_id)
            return created

    async def get_enrollment(self, user_id: str, course_id: str) -> EnrollmentSnapshot:
        return await self._require_enrollment(user_id, course_id)

    async def toggle_lesson(
        self,
        user_id: str,
        course_id: str,
        lesson_id: str,
        completed: bool,
        *,
        recipient_name: Optional[str] = None,
    ) -> EnrollmentSnapshot:
        async with self._locks.lock_for(user_id, course_id):
            graph = await self._courses.get_graph(course_id)
            lesson = graph.lesson(lesson_id)
            if lesson is None:
                raise LessonNotFoundError(lesson_id=lesson_id, course_id=course_id)
            snapshot = await self._require_enrollment(user_id, course_id)
            module = graph.module(lesson.module_id)
            if module is not None and is_module_locked(graph, module, snapshot):
                raise ModuleLockedError(
                    "complete the previous module first", module_id=module.id, lesson_id=lesson_id
                )

            orders = set(snapshot.progress_array)
            if completed:
                orders.add(lesson.order)
            else:
                orders.discard(lesson.order)
            updated = recompute_snapshot(graph, snapshot, progress_array=orders)
            return await self._persist(graph, updated, recipient_name)

    async def submit_quiz(
        self,
        user_id: str,
        course_id: str,
        quiz_id: str,
        answers: Mapping[str, str],
        *,
        recipient_name: Optional[str] = None,
    ) -> QuizSubmissionResult:
        async with self._locks.lock_for(user_id, course_id):
            graph = await self._courses.get_graph(course_id)
            quiz = graph.quiz(quiz_id)
            if quiz is None:
                raise QuizNotFoundError(quiz_id=quiz_id, course_id=course_id)
            snapshot = await self._require_enrollment(user_id, course_id)
            if is_quiz_locked(graph, quiz, snapshot):
                raise QuizLockedError(quiz_id=quiz_id, quiz_type=quiz.type.value)

            questions = graph.questions_for(quiz.id)
            grade = grade_quiz(quiz, questions, answers)
            prior = await self._attempts.count_for_quiz(user_id, quiz.id)
            attempt = await self._attempts.insert(
                QuizAttemptSchema(
                    user_id=user_id,
                    quiz_id=quiz.id,
                    score_percentage=grade.score_percentage,
                    passed=grade.passed,
                    attempt_number=next_attempt_number(prior),
                    answers=recorded_answers(questions, answers),
                )
            )
            self._log.info(
                "quiz_attempt_recorded user_id=%s quiz_id=%s attempt=%d score=%.1f passed=%s",
                user_id,
                quiz.id,
                attempt.attempt_number,
                grade.score_percentage,
                grade.passed,
            )

            passed = set(snapshot.passed_quizzes)
            if grade.passed:
                passed.add(quiz.id)
            updated = recompute_snapshot(graph, snapshot, passed_quizzes=passed)
            saved = await self._persist(graph, updated, recipient_name)
            return QuizSubmissionResult(attempt=attempt, grade=grade, enrollment=saved)

    # --- read side --------------------------------------------------------

    async def list_attempts(self, user_id: str, course_id: str, quiz_id: str) -> List[QuizAttemptSchema]:
        graph = await self._courses.get_graph(course_id)
        if graph.quiz(quiz_id) is None:
            raise QuizNotFoundError(quiz_id=quiz_id, course_id=course_id)
        return await self._attempts.list_for_quiz(user_id, quiz_id)

    async def course_state(self, user_id: str, course_id: str) -> CourseProgressState:
        graph = await self._courses.get_graph(course_id)
        snapshot = await self._require_enrollment(user_id, course_id)
        derived = recompute_snapshot(graph, snapshot)
        locks = evaluate_locks(graph, derived)
        modules: List[ModuleState] = []
        for m in graph.ordered_modules():
            quiz = graph.module_quiz(m.id)
            modules.append(
                ModuleState(
                    module_id=m.id,
                    order=m.order,
                    locked=locks.modules.get(m.id, False),
                    lesson_progress=module_lesson_progress(graph, m.id, derived),
                    completed=is_module_completed(graph, m.id, derived),
                    quiz_id=quiz.id if quiz else None,
                    quiz_locked=locks.module_quizzes.get(quiz.id) if quiz else None,
                    quiz_passed=module_quiz_passed(graph, m.id, derived),
                )
            )
        if derived.progress != snapshot.progress:
            self._log.debug(
                "stored_progress_drift user_id=%s course_id=%s stored=%d derived=%d",
                user_id,
                course_id,
                snapshot.progress,
                derived.progress,
            )
        return CourseProgressState(
            enrollment=snapshot,
            progress=derived.progress,
            modules=modules,
            locks=locks,
            certificate=check_eligibility(graph, derived),
        )


enrollment_service = EnrollmentLifecycleService()

__all__ = ["enrollment_service", "EnrollmentLifecycleService"]
