import asyncio

import pytest

from fakesupabase import COURSE_ID, FINAL_QUIZ, MODULE_QUIZ

from app.common.errors import (
    CourseNotFoundError,
    EmptyQuizError,
    EnrollmentMissingError,
    LessonNotFoundError,
    ModuleLockedError,
    PersistenceError,
    QuizLockedError,
    QuizNotFoundError,
)
from app.common.locks import LearnerLocks
from app.features.certificates.repository import CertificateRepository
from app.features.certificates.service import CertificateIssuer
from app.features.courses.repository import CourseRepository
from app.features.courses.service import CourseService
from app.features.progression.repository import EnrollmentRepository, QuizAttemptRepository
from app.features.progression.service import EnrollmentLifecycleService

pytestmark = pytest.mark.anyio

USER = "user-1"
WRONG_M1 = {"q1": "us-east-1", "q2": "false"}
RIGHT_M1 = {"q1": "us-east-1", "q2": "true"}
RIGHT_FINAL = {"qf": " object storage "}


def _service(auto_issue=False):
    locks = LearnerLocks()
    courses = CourseService(CourseRepository())
    enrollments = EnrollmentRepository()
    issuer = CertificateIssuer(
        certificates=CertificateRepository(bucket="test-certs"),
        enrollments=enrollments,
        courses=courses,
        locks=locks,
    )
    return EnrollmentLifecycleService(
        courses=courses,
        enrollments=enrollments,
        attempts=QuizAttemptRepository(),
        issuer=issuer,
        locks=locks,
        auto_issue_certificates=auto_issue,
    )


async def test_enroll_creates_empty_snapshot_once(fake_db):
    service = _service()
    first = await service.enroll(USER, COURSE_ID)
    again = await service.enroll(USER, COURSE_ID)

    assert first.progress == 0
    assert first.progress_array == ()
    assert first.passed_quizzes == ()
    assert first.completed_at is None
    assert again.id == first.id
    assert len(fake_db.rows("certifree_enrollments")) == 1


async def test_enroll_unknown_course(fake_db):
    with pytest.raises(CourseNotFoundError):
        await _service().enroll(USER, "missing-course")


async def test_toggle_requires_enrollment(fake_db):
    with pytest.raises(EnrollmentMissingError):
        await _service().toggle_lesson(USER, COURSE_ID, "lesson-1", True)


async def test_toggle_unknown_lesson(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    with pytest.raises(LessonNotFoundError):
        await service.toggle_lesson(USER, COURSE_ID, "lesson-x", True)


async def test_toggle_adds_and_removes_lesson_order(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)

    on = await service.toggle_lesson(USER, COURSE_ID, "lesson-1", True)
    assert on.progress_array == (1,)
    assert on.progress == 38

    off = await service.toggle_lesson(USER, COURSE_ID, "lesson-1", False)
    assert off.progress_array == ()
    assert off.progress == 15
    assert fake_db.rows("certifree_enrollments")[0]["progress_array"] == []


async def test_locked_module_rejects_lesson_without_writing(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    writes_before = [c for c in fake_db.calls if c[1] == "update"]

    with pytest.raises(ModuleLockedError) as exc:
        await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)

    assert exc.value.status_code == 409
    assert [c for c in fake_db.calls if c[1] == "update"] == writes_before


async def test_quiz_rejections_happen_before_any_attempt(fake_db):
    service = _service()
    with pytest.raises(EnrollmentMissingError):
        await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)

    await service.enroll(USER, COURSE_ID)
    with pytest.raises(QuizNotFoundError):
        await service.submit_quiz(USER, COURSE_ID, "quiz-x", {})
    with pytest.raises(QuizLockedError):
        await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    with pytest.raises(QuizLockedError):
        await service.submit_quiz(USER, COURSE_ID, FINAL_QUIZ, RIGHT_FINAL)

    assert fake_db.rows("certifree_quiz_attempts") == []


async def test_empty_quiz_is_rejected_without_attempt(fake_db):
    fake_db.rows("certifree_modules").append(
        {"id": "module-3", "course_id": COURSE_ID, "title": "Extras", "order": 3}
    )
    fake_db.rows("certifree_quizzes").append(
        {"id": "quiz-empty", "course_id": COURSE_ID, "module_id": "module-3", "title": "Empty", "type": "module_quiz"}
    )
    service = _service()
    await service.enroll(USER, COURSE_ID)
    for lesson in ("lesson-1", "lesson-2"):
        await service.toggle_lesson(USER, COURSE_ID, lesson, True)
    await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)

    with pytest.raises(EmptyQuizError):
        await service.submit_quiz(USER, COURSE_ID, "quiz-empty", {})
    assert [a["quiz_id"] for a in fake_db.rows("certifree_quiz_attempts")] == [MODULE_QUIZ]


async def test_attempt_numbers_increase_per_quiz(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-1", True)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-2", True)

    numbers = []
    for answers in (WRONG_M1, RIGHT_M1, WRONG_M1):
        result = await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, answers)
        numbers.append(result.attempt.attempt_number)
    assert numbers == [1, 2, 3]

    history = await service.list_attempts(USER, COURSE_ID, MODULE_QUIZ)
    assert [a.attempt_number for a in history] == [1, 2, 3]
    assert [a.passed for a in history] == [False, True, False]
    # a later failed attempt never revokes an earlier pass
    enrollment = await service.get_enrollment(USER, COURSE_ID)
    assert MODULE_QUIZ in enrollment.passed_quizzes


async def test_failed_save_leaves_stored_snapshot_untouched(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    before = await service.toggle_lesson(USER, COURSE_ID, "lesson-1", True)

    fake_db.fail_on.add(("certifree_enrollments", "update"))
    with pytest.raises(PersistenceError) as exc:
        await service.toggle_lesson(USER, COURSE_ID, "lesson-2", True)
    assert exc.value.status_code == 503

    fake_db.fail_on.clear()
    stored = await service.get_enrollment(USER, COURSE_ID)
    assert stored == before


async def test_concurrent_toggles_for_one_learner_are_serialized(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    fake_db.latency = 0.01

    await asyncio.gather(
        service.toggle_lesson(USER, COURSE_ID, "lesson-1", True),
        service.toggle_lesson(USER, COURSE_ID, "lesson-2", True),
    )

    stored = await service.get_enrollment(USER, COURSE_ID)
    assert stored.progress_array == (1, 2)
    assert stored.progress == 62


async def test_saved_attempt_survives_failed_enrollment_save(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    for lesson in ("lesson-1", "lesson-2"):
        before = await service.toggle_lesson(USER, COURSE_ID, lesson, True)

    fake_db.fail_on.add(("certifree_enrollments", "update"))
    with pytest.raises(PersistenceError):
        await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)

    attempts = fake_db.rows("certifree_quiz_attempts")
    assert [(a["attempt_number"], a["passed"]) for a in attempts] == [(1, True)]

    fake_db.fail_on.clear()
    stored = await service.get_enrollment(USER, COURSE_ID)
    assert stored == before
    assert MODULE_QUIZ not in stored.passed_quizzes

    retry = await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    assert retry.attempt.attempt_number == 2
    assert MODULE_QUIZ in retry.enrollment.passed_quizzes
    assert retry.enrollment.progress == 77


async def test_end_to_end_progression(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-1", True)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-2", True)

    failed = await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, WRONG_M1)
    assert failed.grade.score_percentage == pytest.approx(50.0)
    assert failed.grade.passed is False
    assert failed.enrollment.completed_modules_count == 0
    state = await service.course_state(USER, COURSE_ID)
    assert state.locks.modules["module-2"] is True
    with pytest.raises(ModuleLockedError):
        await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)

    passed = await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    assert passed.grade.passed is True
    assert passed.enrollment.completed_modules_count == 1

    last_lesson = await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)
    assert last_lesson.progress == 99
    assert last_lesson.completed_at is None
    state = await service.course_state(USER, COURSE_ID)
    assert state.locks.final_quiz is False
    assert state.certificate.eligible is False
    assert state.certificate.final_quiz_passed is False

    final = await service.submit_quiz(USER, COURSE_ID, FINAL_QUIZ, RIGHT_FINAL)
    assert final.enrollment.progress == 100
    assert final.enrollment.completed_modules_count == 2
    assert final.enrollment.completed_at is not None

    state = await service.course_state(USER, COURSE_ID)
    assert state.progress == 100
    assert state.certificate.eligible is True
    assert [m.completed for m in state.modules] == [True, True]
    # explicit issuance is the default
    assert fake_db.rows("certifree_certificates") == []


async def test_progress_never_decreases_along_the_course(fake_db):
    service = _service()
    await service.enroll(USER, COURSE_ID)

    progress = []
    for lesson in ("lesson-1", "lesson-2"):
        progress.append((await service.toggle_lesson(USER, COURSE_ID, lesson, True)).progress)
    for answers in (WRONG_M1, RIGHT_M1):
        progress.append((await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, answers)).enrollment.progress)
    progress.append((await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)).progress)
    progress.append((await service.submit_quiz(USER, COURSE_ID, FINAL_QUIZ, RIGHT_FINAL)).enrollment.progress)

    assert progress == [38, 62, 62, 77, 99, 100]
    assert progress == sorted(progress)


async def test_auto_issue_on_completion(fake_db):
    service = _service(auto_issue=True)
    await service.enroll(USER, COURSE_ID)
    for lesson in ("lesson-1", "lesson-2"):
        await service.toggle_lesson(USER, COURSE_ID, lesson, True)
    await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)
    assert fake_db.rows("certifree_certificates") == []

    await service.submit_quiz(USER, COURSE_ID, FINAL_QUIZ, RIGHT_FINAL)
    certificates = fake_db.rows("certifree_certificates")
    assert len(certificates) == 1
    assert ("test-certs", f"{USER}/{COURSE_ID}/certificate.pdf") in fake_db.storage.objects


async def test_auto_issue_failure_does_not_fail_submission(fake_db, caplog):
    service = _service(auto_issue=True)
    await service.enroll(USER, COURSE_ID)
    for lesson in ("lesson-1", "lesson-2"):
        await service.toggle_lesson(USER, COURSE_ID, lesson, True)
    await service.submit_quiz(USER, COURSE_ID, MODULE_QUIZ, RIGHT_M1)
    await service.toggle_lesson(USER, COURSE_ID, "lesson-3", True)

    fake_db.storage.fail_on.add("upload")
    result = await service.submit_quiz(USER, COURSE_ID, FINAL_QUIZ, RIGHT_FINAL)

    assert result.enrollment.progress == 100
    assert fake_db.rows("certifree_certificates") == []
    assert "certificate_auto_issue_failed" in caplog.text
