from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.common.errors import PersistenceError
from app.common.utils import parse_timestamp
from app.core.config import get_settings
from app.db.repository import SupabaseRepository
from app.features.certificates.schemas import CertificateSchema


def certificate_from_row(row: Dict[str, Any]) -> CertificateSchema:
    return CertificateSchema(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        course_id=str(row.get("course_id")),
        storage_path=str(row.get("storage_path") or ""),
        created_at=parse_timestamp(row.get("created_at")),
    )


def certificate_object_path(user_id: str, course_id: str) -> str:
    # One object per learner and course; re-uploads replace it.
    return f"{user_id}/{course_id}/certificate.pdf"


class CertificateRepository(SupabaseRepository):
    """Certificate records plus the stored PDF artifacts."""

    logger = logging.getLogger("certificates.repository")

    _TABLE = "certifree_certificates"

    def __init__(self, bucket: Optional[str] = None) -> None:
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket or get_settings().certificate_bucket

    async def get(self, user_id: str, course_id: str) -> Optional[CertificateSchema]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._TABLE).select("*").eq("user_id", user_id).eq("course_id", course_id).limit(1),
            op="certificates.get",
        )
        row = self._first(resp)
        return certificate_from_row(row) if row else None

    async def list_for_user(self, user_id: str) -> List[CertificateSchema]:
        client = await self._client()
        resp = await self._execute(
            client.table(self._TABLE).select("*").eq("user_id", user_id).order("created_at", desc=True),
            op="certificates.by_user",
        )
        return [certificate_from_row(r) for r in self._rows(resp)]

    async def insert(self, user_id: str, course_id: str, storage_path: str) -> CertificateSchema:
        client = await self._client()
        payload = {"user_id": user_id, "course_id": course_id, "storage_path": storage_path}
        resp = await self._execute(client.table(self._TABLE).insert(payload), op="certificates.insert")
        row = self._first(resp)
        if not row:
            raise PersistenceError("certificate insert returned no row", user_id=user_id, course_id=course_id)
        return certificate_from_row(row)

    # --- storage ---------------------------------------------------------

    async def upload_artifact(self, path: str, content: bytes) -> str:
        """Upload the PDF and return its public URL."""
        client = await self._client()
        bucket = client.storage.from_(self.bucket)
        try:
            await bucket.upload(
                path,
                content,
                file_options={"content-type": "application/pdf", "upsert": "true"},
            )
            url = await bucket.get_public_url(path)
        except Exception as exc:
            self.logger.warning("storage_upload_failed bucket=%s path=%s error=%s", self.bucket, path, exc)
            raise PersistenceError("certificate upload failed", path=path) from exc
        return str(url).rstrip("?")

    async def remove_artifact(self, path: str) -> None:
        client = await self._client()
        try:
            await client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            self.logger.warning("storage_remove_failed bucket=%s path=%s error=%s", self.bucket, path, exc)
            raise PersistenceError("certificate cleanup failed", path=path) from exc


certificate_repository = CertificateRepository()

__all__ = ["certificate_repository", "CertificateRepository", "certificate_object_path"]
