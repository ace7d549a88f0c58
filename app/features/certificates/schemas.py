from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CertificateSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    course_id: str
    storage_path: str
    created_at: Optional[datetime] = None


class CertificateEligibility(BaseModel):
    eligible: bool
    all_modules_completed: bool
    final_quiz_passed: bool
    missing_modules: List[str] = Field(default_factory=list)


class CertificateIssueResponse(BaseModel):
    certificate: CertificateSchema
    created: bool
