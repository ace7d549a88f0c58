"""Learner-facing course outline."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.common.deps import CurrentUser, get_current_user
from app.common.errors import ProgressionError, to_http_exception

from .schemas import CourseOutline
from .service import course_service


router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("/{course_id}/outline", response_model=CourseOutline)
async def course_outline(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> CourseOutline:
    try:
        return await course_service.get_outline(course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc
