"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    certificate_id: str
    user_id: UUID
    course_id: UUID
    student_name: str
    course_title: str
    course_code: str = ""
    instructor: str = ""
    issued_at: datetime
    status: str = "generated"


class CourseCertificateListResponse(BaseModel):
    course_id: UUID
    items: list[CertificateResponse]
    total: int
