"""Pydantic schemas for course management."""

from datetime import date, datetime
from enum import Enum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from skillhub.courses.models import CourseCategory, CourseLevel


class CourseSort(str, Enum):
    """Orderings offered by the catalog."""

    TITLE = "title"
    DATE = "date"
    LEVEL = "level"


# ==============================================================================
# Request Schemas
# ==============================================================================


class ModuleFileInput(BaseModel):
    """Attachment metadata for an already uploaded file."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=2000)
    file_size: int = Field(0, ge=0, description="Size in bytes")
    file_type: str | None = Field(None, max_length=50)


class SyllabusItemInput(BaseModel):
    """One syllabus entry as submitted by the course form.

    Entries with a blank topic and blank video links are discarded when
    the course is saved.
    """

    label: str | None = Field(None, max_length=100, description='e.g. "Week 1"')
    topic: str = Field("", max_length=500)
    videos: list[str] = Field(default_factory=list, description="Video URLs")
    files: list[ModuleFileInput] = Field(default_factory=list)


class CreateCourseRequest(BaseModel):
    """Course creation request. Every field is required."""

    title: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    category: CourseCategory
    description: str = Field(..., min_length=1, max_length=5000)
    duration: str = Field(..., min_length=1, max_length=100)
    level: CourseLevel
    max_students: int = Field(..., gt=0, description="Enrollment capacity")
    start_date: date
    end_date: date
    instructor: str | None = Field(
        None, max_length=100, description="Defaults to the creator's name"
    )
    syllabus: list[SyllabusItemInput] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_dates(self) -> Self:
        if self.start_date >= self.end_date:
            msg = "End date must be after start date"
            raise ValueError(msg)
        return self


class UpdateCourseRequest(BaseModel):
    """Partial course update; a given syllabus replaces the current one."""

    title: str | None = Field(None, min_length=1, max_length=200)
    code: str | None = Field(None, min_length=1, max_length=50)
    category: CourseCategory | None = None
    description: str | None = Field(None, min_length=1, max_length=5000)
    duration: str | None = Field(None, min_length=1, max_length=100)
    level: CourseLevel | None = None
    max_students: int | None = Field(None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    instructor: str | None = Field(None, min_length=1, max_length=100)
    syllabus: list[SyllabusItemInput] | None = Field(None, min_length=1)


# ==============================================================================
# Response Schemas
# ==============================================================================


class ModuleFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_id: UUID
    file_name: str
    file_url: str
    file_type: str
    file_size: int
    uploaded_at: datetime


class CourseModuleResponse(BaseModel):
    """Syllabus entry."""

    model_config = ConfigDict(from_attributes=True)

    position: int
    label: str
    topic: str
    videos: list[str]
    files: list[ModuleFileResponse] = Field(default_factory=list)
    total_videos: int = 0


class CourseResponse(BaseModel):
    """Course with its syllabus."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    code: str
    category: str
    description: str
    instructor: str
    duration: str
    level: str
    max_students: int
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool
    creator_id: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    total_modules: int = 0
    syllabus: list[CourseModuleResponse] = Field(default_factory=list)


class CourseListResponse(BaseModel):
    items: list[CourseResponse]
    total: int


class CourseModulesResponse(BaseModel):
    """Syllabus of one course, as served to enrolled students."""

    course_id: UUID
    modules: list[CourseModuleResponse]
