"""Enrollment, lesson completion and quiz submission endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.common.deps import CurrentUser, get_current_user
from app.common.errors import ProgressionError, to_http_exception

from .schemas import (
    CourseProgressState,
    EnrollmentSnapshot,
    LessonCompletionRequest,
    QuizAttemptSchema,
    QuizSubmissionRequest,
    QuizSubmissionResult,
)
from .service import enrollment_service


logger = logging.getLogger("progression.endpoints")

router = APIRouter(prefix="/courses", tags=["Progression"])


@router.post("/{course_id}/enroll", response_model=EnrollmentSnapshot)
async def enroll(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentSnapshot:
    try:
        return await enrollment_service.enroll(current_user.id, course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{course_id}/enrollment", response_model=EnrollmentSnapshot)
async def get_enrollment(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentSnapshot:
    try:
        return await enrollment_service.get_enrollment(current_user.id, course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{course_id}/progress", response_model=CourseProgressState)
async def course_progress(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> CourseProgressState:
    try:
        return await enrollment_service.course_state(current_user.id, course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{course_id}/lessons/{lesson_id}/completion", response_model=EnrollmentSnapshot)
async def set_lesson_completion(
    course_id: str,
    lesson_id: str,
    payload: Optional[LessonCompletionRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentSnapshot:
    try:
        return await enrollment_service.toggle_lesson(
            current_user.id,
            course_id,
            lesson_id,
            payload.completed if payload is not None else True,
            recipient_name=current_user.display_name,
        )
    except ProgressionError as exc:
        logger.info("lesson_toggle_rejected user_id=%s lesson_id=%s code=%s", current_user.id, lesson_id, exc.code)
        raise to_http_exception(exc) from exc


@router.post("/{course_id}/quizzes/{quiz_id}/submissions", response_model=QuizSubmissionResult)
async def submit_quiz(
    course_id: str,
    quiz_id: str,
    payload: QuizSubmissionRequest,
    current_user: CurrentUser = Depends(get_current_user),
) -> QuizSubmissionResult:
    try:
        return await enrollment_service.submit_quiz(
            current_user.id,
            course_id,
            quiz_id,
            payload.answers,
            recipient_name=current_user.display_name,
        )
    except ProgressionError as exc:
        logger.info("quiz_submission_rejected user_id=%s quiz_id=%s code=%s", current_user.id, quiz_id, exc.code)
        raise to_http_exception(exc) from exc


@router.get("/{course_id}/quizzes/{quiz_id}/attempts", response_model=List[QuizAttemptSchema])
async def list_quiz_attempts(
    course_id: str,
    quiz_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> List[QuizAttemptSchema]:
    try:
        return await enrollment_service.list_attempts(current_user.id, course_id, quiz_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc
