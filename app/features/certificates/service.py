from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from app.common.errors import (
    CertificateNotEligibleError,
    CertificateNotFoundError,
    EnrollmentMissingError,
    PersistenceError,
)
from app.common.locks import LearnerLocks, learner_locks
from app.common.utils import current_timestamp
from app.features.certificates.generator import render_certificate_pdf
from app.features.certificates.repository import (
    CertificateRepository,
    certificate_object_path,
    certificate_repository,
)
from app.features.certificates.schemas import CertificateEligibility, CertificateSchema
from app.features.courses.schemas import CourseGraph
from app.features.courses.service import CourseService, course_service
from app.features.progression.locks import is_module_completed
from app.features.progression.repository import EnrollmentRepository, enrollment_repository
from app.features.progression.schemas import EnrollmentSnapshot


def check_eligibility(graph: CourseGraph, snapshot: EnrollmentSnapshot) -> CertificateEligibility:
    missing = [m.id for m in graph.ordered_modules() if not is_module_completed(graph, m.id, snapshot)]
    final = graph.final_quiz
    final_passed = final is None or snapshot.has_passed(final.id)
    return CertificateEligibility(
        eligible=not missing and final_passed,
        all_modules_completed=not missing,
        final_quiz_passed=final_passed,
        missing_modules=missing,
    )


class CertificateIssuer:
    """Gates, renders, stores and records course certificates, once per learner."""

    def __init__(
        self,
        *,
        certificates: CertificateRepository = certificate_repository,
        enrollments: EnrollmentRepository = enrollment_repository,
        courses: CourseService = course_service,
        locks: LearnerLocks = learner_locks,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._certificates = certificates
        self._enrollments = enrollments
        self._courses = courses
        self._locks = locks
        self._log = logger or logging.getLogger("certificates.service")

    async def get_certificate(self, user_id: str, course_id: str) -> CertificateSchema:
        certificate = await self._certificates.get(user_id, course_id)
        if certificate is None:
            raise CertificateNotFoundError(user_id=user_id, course_id=course_id)
        return certificate

    async def list_certificates(self, user_id: str) -> List[CertificateSchema]:
        return await self._certificates.list_for_user(user_id)

    async def eligibility(self, user_id: str, course_id: str) -> CertificateEligibility:
        graph = await self._courses.get_graph(course_id)
        snapshot = await self._enrollments.get(user_id, course_id)
        if snapshot is None:
            raise EnrollmentMissingError(user_id=user_id, course_id=course_id)
        return check_eligibility(graph, snapshot)

    async def issue(self, user_id: str, course_id: str, recipient_name: str) -> Tuple[CertificateSchema, bool]:
        """Issue the certificate on explicit request; returns (certificate, created)."""
        async with self._locks.lock_for(user_id, course_id):
            existing = await self._certificates.get(user_id, course_id)
            if existing is not None:
                return existing, False
            graph = await self._courses.get_graph(course_id)
            snapshot = await self._enrollments.get(user_id, course_id)
            if snapshot is None:
                raise EnrollmentMissingError(user_id=user_id, course_id=course_id)
            return await self.issue_for_snapshot(graph, snapshot, recipient_name)

    async def issue_if_eligible(
        self, graph: CourseGraph, snapshot: EnrollmentSnapshot, recipient_name: str
    ) -> Optional[CertificateSchema]:
        """Auto-issuance hook; the caller already holds the learner lock."""
        if not check_eligibility(graph, snapshot).eligible:
            return None
        existing = await self._certificates.get(snapshot.user_id, snapshot.course_id)
        if existing is not None:
            return existing
        certificate, _ = await self.issue_for_snapshot(graph, snapshot, recipient_name)
        return certificate

    async def issue_for_snapshot(
        self, graph: CourseGraph, snapshot: EnrollmentSnapshot, recipient_name: str
    ) -> Tuple[CertificateSchema, bool]:
        eligibility = check_eligibility(graph, snapshot)
        if not eligibility.eligible:
            raise CertificateNotEligibleError(
                "complete every module and pass the final quiz first",
                missing_modules=",".join(eligibility.missing_modules),
                final_quiz_passed=eligibility.final_quiz_passed,
            )

        user_id, course_id = snapshot.user_id, snapshot.course_id
        issued_at = current_timestamp()
        content = render_certificate_pdf(
            recipient_name=recipient_name,
            course_title=graph.course.title,
            issued_at=issued_at,
            certificate_ref=f"{course_id[:8]}-{user_id[:8]}".upper(),
        )
        path = certificate_object_path(user_id, course_id)
        url = await self._certificates.upload_artifact(path, content)

        try:
            certificate = await self._certificates.insert(user_id, course_id, url)
        except PersistenceError:
            winner = await self._certificates.get(user_id, course_id)
            if winner is not None:
                self._log.info("certificate_insert_raced user_id=%s course_id=%s", user_id, course_id)
                return winner, False
            try:
                await self._certificates.remove_artifact(path)
            except PersistenceError:
                self._log.warning("certificate_orphan_artifact path=%s", path)
            raise

        self._log.info(
            "certificate_issued user_id=%s course_id=%s certificate_id=%s",
            user_id,
            course_id,
            certificate.id,
        )
        return certificate, True


certificate_issuer = CertificateIssuer()

__all__ = ["certificate_issuer", "CertificateIssuer", "check_eligibility"]
