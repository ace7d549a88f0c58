"""Certificate eligibility, issuance and lookup."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.common.deps import CurrentUser, get_current_user
from app.common.errors import ProgressionError, to_http_exception

from .schemas import CertificateEligibility, CertificateIssueResponse, CertificateSchema
from .service import certificate_issuer


router = APIRouter(tags=["Certificates"])


@router.get("/courses/{course_id}/certificate/eligibility", response_model=CertificateEligibility)
async def certificate_eligibility(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> CertificateEligibility:
    try:
        return await certificate_issuer.eligibility(current_user.id, course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc


@router.post("/courses/{course_id}/certificate", response_model=CertificateIssueResponse)
async def issue_certificate(
    course_id: str,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
) -> CertificateIssueResponse:
    try:
        certificate, created = await certificate_issuer.issue(
            current_user.id, course_id, current_user.display_name
        )
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return CertificateIssueResponse(certificate=certificate, created=created)


@router.get("/courses/{course_id}/certificate", response_model=CertificateSchema)
async def get_certificate(
    course_id: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> CertificateSchema:
    try:
        return await certificate_issuer.get_certificate(current_user.id, course_id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc


@router.get("/certificates", response_model=List[CertificateSchema])
async def my_certificates(
    current_user: CurrentUser = Depends(get_current_user),
) -> List[CertificateSchema]:
    try:
        return await certificate_issuer.list_certificates(current_user.id)
    except ProgressionError as exc:
        raise to_http_exception(exc) from exc
