"""Database models for courses and their syllabus.

Cassandra table definitions for:
- courses: course record keyed by id
- course_modules: ordered syllabus entries, clustered by position
- module_files: attachments of one syllabus entry
- courses_by_creator: lookup for a faculty member's own courses
"""

import posixpath
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse
from uuid import UUID, uuid4

from skillhub.auth.models import ensure_utc_aware


class CourseLevel(str, Enum):
    """Difficulty level, ordered from easiest."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


LEVEL_ORDER: dict[str, int] = {
    CourseLevel.BEGINNER.value: 1,
    CourseLevel.INTERMEDIATE.value: 2,
    CourseLevel.ADVANCED.value: 3,
}


class CourseCategory(str, Enum):
    PROGRAMMING = "Programming"
    MARKETING = "Marketing"
    DATA_SCIENCE = "Data Science"
    MANAGEMENT = "Management"
    DESIGN = "Design"
    BUSINESS = "Business"
    LANGUAGE = "Language"
    OTHER = "Other"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    code TEXT,
    category TEXT,
    description TEXT,
    instructor TEXT,
    duration TEXT,
    level TEXT,
    max_students INT,
    start_date DATE,
    end_date DATE,
    is_active BOOLEAN,
    creator_id UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSE_MODULES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_modules (
    course_id UUID,
    position INT,
    label TEXT,
    topic TEXT,
    video_urls LIST<TEXT>,
    PRIMARY KEY (course_id, position)
) WITH CLUSTERING ORDER BY (position ASC)
"""

MODULE_FILES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_files (
    course_id UUID,
    position INT,
    file_id UUID,
    file_name TEXT,
    file_url TEXT,
    file_type TEXT,
    file_size BIGINT,
    uploaded_at TIMESTAMP,
    PRIMARY KEY ((course_id), position, file_id)
) WITH CLUSTERING ORDER BY (position ASC, file_id ASC)
"""

COURSES_BY_CREATOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_creator (
    creator_id UUID,
    created_at TIMESTAMP,
    course_id UUID,
    PRIMARY KEY (creator_id, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSE_MODULES_TABLE_CQL,
    MODULE_FILES_TABLE_CQL,
    COURSES_BY_CREATOR_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def to_date(value: Any) -> date | None:
    """Normalize a Cassandra DATE (``cassandra.util.Date``) to ``date``."""
    if value is None or isinstance(value, date):
        return value
    return value.date()


def file_type_from_name(file_name: str) -> str:
    """Lower-case extension without the dot, or "file" when there is none."""
    path = urlparse(file_name).path or file_name
    ext = posixpath.splitext(path)[1].lstrip(".").lower()
    return ext or "file"


def default_module_label(position: int) -> str:
    return f"Module {position + 1}"


# ==============================================================================
# Entity Classes
# ==============================================================================


class ModuleFile:
    """A file attached to a syllabus entry.

    Only metadata is stored; ``file_url`` points at wherever the bytes live.
    """

    def __init__(
        self,
        file_name: str,
        file_url: str,
        file_size: int = 0,
        file_type: str | None = None,
        file_id: UUID | None = None,
        uploaded_at: datetime | None = None,
    ):
        self.file_id = file_id or uuid4()
        self.file_name = file_name
        self.file_url = file_url
        self.file_size = file_size
        self.file_type = file_type or file_type_from_name(file_name)
        self.uploaded_at = ensure_utc_aware(uploaded_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "ModuleFile":
        return cls(
            file_id=row.file_id,
            file_name=row.file_name,
            file_url=row.file_url,
            file_size=row.file_size or 0,
            file_type=row.file_type,
            uploaded_at=row.uploaded_at,
        )

    def is_duplicate_of(self, other: "ModuleFile") -> bool:
        """Same name and same size count as the same upload."""
        return self.file_name == other.file_name and self.file_size == other.file_size

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "uploaded_at": self.uploaded_at,
        }

    def __repr__(self) -> str:
        return f"<ModuleFile {self.file_name} ({self.file_size} bytes)>"


class CourseModule:
    """One syllabus entry: a topic with its videos and files.

    Attributes:
        position: Zero-based index in the syllabus; the unlock order
        label: Heading shown to students, e.g. "Module 1" or "Week 3"
        topic: What the module covers
        videos: Ordered video URLs; progress refers to them by index
        files: Attachments
    """

    def __init__(
        self,
        position: int,
        topic: str,
        label: str | None = None,
        videos: list[str] | None = None,
        files: list[ModuleFile] | None = None,
    ):
        self.position = position
        self.topic = topic.strip()
        self.label = (label or "").strip() or default_module_label(position)
        self.videos = list(videos or [])
        self.files = list(files or [])

    @classmethod
    def from_row(cls, row: Any) -> "CourseModule":
        return cls(
            position=row.position,
            label=row.label,
            topic=row.topic,
            videos=list(row.video_urls or []),
        )

    @property
    def total_videos(self) -> int:
        return len(self.videos)

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "label": self.label,
            "topic": self.topic,
            "videos": list(self.videos),
            "files": [f.to_dict() for f in self.files],
        }

    def __repr__(self) -> str:
        return f"<CourseModule {self.position} {self.topic!r}>"


class Course:
    """A course offered on SkillHub.

    Attributes:
        id: Unique identifier
        title: Course title
        code: Short course code, e.g. "CS101"
        category: One of ``CourseCategory``
        description: Long description
        instructor: Display name of the teaching faculty member
        duration: Free text such as "12 weeks"
        level: One of ``CourseLevel``
        max_students: Enrollment capacity
        start_date / end_date: Course run
        is_active: False once soft deleted
        creator_id: Faculty member who owns the course
        syllabus: Ordered modules, loaded separately from the course row
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        code: str = "",
        category: str = CourseCategory.OTHER.value,
        description: str = "",
        instructor: str = "",
        duration: str = "",
        level: str = CourseLevel.BEGINNER.value,
        max_students: int = 0,
        start_date: date | None = None,
        end_date: date | None = None,
        is_active: bool = True,
        creator_id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        syllabus: list[CourseModule] | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.code = code.strip()
        self.category = category
        self.description = description
        self.instructor = instructor
        self.duration = duration
        self.level = level
        self.max_students = max_students
        self.start_date = start_date
        self.end_date = end_date
        self.is_active = is_active
        self.creator_id = creator_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)
        self.syllabus = list(syllabus or [])

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row (syllabus not loaded)."""
        return cls(
            id=row.id,
            title=row.title,
            code=row.code,
            category=row.category,
            description=row.description or "",
            instructor=row.instructor or "",
            duration=row.duration or "",
            level=row.level,
            max_students=row.max_students or 0,
            start_date=to_date(row.start_date),
            end_date=to_date(row.end_date),
            is_active=row.is_active if row.is_active is not None else True,
            creator_id=row.creator_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @property
    def total_modules(self) -> int:
        return len(self.syllabus)

    def video_counts(self) -> list[int]:
        """Number of videos per module, in syllabus order."""
        return [module.total_videos for module in self.syllabus]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "code": self.code,
            "category": self.category,
            "description": self.description,
            "instructor": self.instructor,
            "duration": self.duration,
            "level": self.level,
            "max_students": self.max_students,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "is_active": self.is_active,
            "creator_id": self.creator_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "syllabus": [m.to_dict() for m in self.syllabus],
        }

    def __repr__(self) -> str:
        state = "active" if self.is_active else "deleted"
        return f"<Course {self.code} {self.title} ({state})>"
