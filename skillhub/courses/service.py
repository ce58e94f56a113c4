"""Course management service layer.

Business logic for:
- Course CRUD with soft delete, restore and permanent delete
- Syllabus storage (modules, video links, file attachments)
- Catalog search, category filter and sorting
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from skillhub.core.logging import get_logger
from skillhub.courses.models import LEVEL_ORDER, Course, CourseModule, ModuleFile
from skillhub.courses.schemas import (
    CourseModuleResponse,
    CourseResponse,
    CourseSort,
    CreateCourseRequest,
    ModuleFileInput,
    SyllabusItemInput,
    UpdateCourseRequest,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class ModuleNotFoundError(CourseError):
    def __init__(self, message: str = "Module not found"):
        super().__init__(message, "module_not_found")


class FileNotFoundInModuleError(CourseError):
    def __init__(self, message: str = "File not found"):
        super().__init__(message, "file_not_found")


class DuplicateFileError(CourseError):
    """Same file name and size already attached to the module."""

    def __init__(self, file_name: str):
        super().__init__(
            f'File "{file_name}" is already attached to this module', "duplicate_file"
        )


class EmptySyllabusError(CourseError):
    def __init__(self, message: str = "Add at least one module with a topic"):
        super().__init__(message, "empty_syllabus")


class InvalidCourseError(CourseError):
    def __init__(self, message: str):
        super().__init__(message, "invalid_course")


class CourseDeletedError(CourseError):
    def __init__(self, message: str = "Course is no longer available"):
        super().__init__(message, "course_deleted")


# ==============================================================================
# Pure helpers
# ==============================================================================


def _check_duplicate(files: list[ModuleFile], candidate: ModuleFile) -> None:
    for existing in files:
        if existing.is_duplicate_of(candidate):
            raise DuplicateFileError(candidate.file_name)


def build_syllabus(items: Iterable[SyllabusItemInput]) -> list[CourseModule]:
    """Turn submitted syllabus entries into positioned modules.

    Blank video links are dropped and entries without a topic are skipped.

    Raises:
        DuplicateFileError: If an entry lists the same file twice
        EmptySyllabusError: If no entry has a topic
    """
    modules: list[CourseModule] = []
    for item in items:
        topic = item.topic.strip()
        if not topic:
            continue
        module = CourseModule(
            position=len(modules),
            topic=topic,
            label=item.label,
            videos=[url.strip() for url in item.videos if url.strip()],
        )
        for file_input in item.files:
            attachment = _file_from_input(file_input)
            _check_duplicate(module.files, attachment)
            module.files.append(attachment)
        modules.append(module)

    if not modules:
        raise EmptySyllabusError
    return modules


def _file_from_input(data: ModuleFileInput) -> ModuleFile:
    return ModuleFile(
        file_name=data.file_name.strip(),
        file_url=data.file_url.strip(),
        file_size=data.file_size,
        file_type=data.file_type,
    )


def filter_courses(
    courses: Iterable[Course],
    search: str | None = None,
    category: str | None = None,
    sort: CourseSort | None = None,
) -> list[Course]:
    """Apply catalog search, category filter and ordering.

    ``search`` matches title, code or description case-insensitively.
    """
    result = list(courses)
    if search and search.strip():
        needle = search.strip().lower()
        result = [
            c
            for c in result
            if needle in c.title.lower()
            or needle in c.code.lower()
            or needle in c.description.lower()
        ]
    if category and category.lower() != "all":
        result = [c for c in result if c.category.lower() == category.lower()]

    if sort == CourseSort.TITLE:
        result.sort(key=lambda c: c.title.lower())
    elif sort == CourseSort.DATE:
        result.sort(key=lambda c: (c.start_date is None, c.start_date))
    elif sort == CourseSort.LEVEL:
        result.sort(key=lambda c: LEVEL_ORDER.get(c.level, len(LEVEL_ORDER) + 1))
    return result


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Course and syllabus persistence."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        ks = self.keyspace
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {ks}.courses WHERE id = ?"
        )
        self._get_all_courses = self.session.prepare(f"SELECT * FROM {ks}.courses")
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {ks}.courses (
                id, title, code, category, description, instructor, duration,
                level, max_students, start_date, end_date, is_active, creator_id,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._set_course_active = self.session.prepare(
            f"UPDATE {ks}.courses SET is_active = ?, updated_at = ? WHERE id = ?"
        )
        self._delete_course = self.session.prepare(
            f"DELETE FROM {ks}.courses WHERE id = ?"
        )

        # Syllabus
        self._get_modules = self.session.prepare(
            f"SELECT * FROM {ks}.course_modules WHERE course_id = ?"
        )
        self._insert_module = self.session.prepare(f"""
            INSERT INTO {ks}.course_modules (course_id, position, label, topic, video_urls)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._delete_modules = self.session.prepare(
            f"DELETE FROM {ks}.course_modules WHERE course_id = ?"
        )
        self._get_files = self.session.prepare(
            f"SELECT * FROM {ks}.module_files WHERE course_id = ?"
        )
        self._insert_file = self.session.prepare(f"""
            INSERT INTO {ks}.module_files (
                course_id, position, file_id, file_name, file_url, file_type,
                file_size, uploaded_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_file = self.session.prepare(
            f"DELETE FROM {ks}.module_files WHERE course_id = ? AND position = ? AND file_id = ?"
        )
        self._delete_files = self.session.prepare(
            f"DELETE FROM {ks}.module_files WHERE course_id = ?"
        )

        # Lookup by creator
        self._get_courses_by_creator = self.session.prepare(
            f"SELECT course_id FROM {ks}.courses_by_creator WHERE creator_id = ?"
        )
        self._insert_course_by_creator = self.session.prepare(f"""
            INSERT INTO {ks}.courses_by_creator (creator_id, created_at, course_id)
            VALUES (?, ?, ?)
        """)
        self._delete_course_by_creator = self.session.prepare(f"""
            DELETE FROM {ks}.courses_by_creator
            WHERE creator_id = ? AND created_at = ? AND course_id = ?
        """)

    # --------------------------------------------------------------------------
    # Reads
    # --------------------------------------------------------------------------

    async def get_course(self, course_id: UUID, with_syllabus: bool = True) -> Course | None:
        """Get course by ID, deleted or not."""
        result = await self.session.aexecute(self._get_course_by_id, [course_id])
        row = result.one()
        if not row:
            return None
        course = Course.from_row(row)
        if with_syllabus:
            course.syllabus = await self.get_syllabus(course_id)
        return course

    async def require_course(self, course_id: UUID) -> Course:
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def get_syllabus(self, course_id: UUID) -> list[CourseModule]:
        """Modules in position order with their attachments."""
        module_rows = await self.session.aexecute(self._get_modules, [course_id])
        modules = [CourseModule.from_row(row) for row in module_rows]

        by_position = {m.position: m for m in modules}
        file_rows = await self.session.aexecute(self._get_files, [course_id])
        for row in file_rows:
            module = by_position.get(row.position)
            if module is not None:
                module.files.append(ModuleFile.from_row(row))
        for module in modules:
            module.files.sort(key=lambda f: f.uploaded_at)
        return modules

    async def list_courses(
        self,
        search: str | None = None,
        category: str | None = None,
        sort: CourseSort | None = None,
        include_inactive: bool = False,
    ) -> list[Course]:
        """Catalog listing; soft-deleted courses are hidden by default."""
        rows = await self.session.aexecute(self._get_all_courses)
        courses = [Course.from_row(row) for row in rows]
        if not include_inactive:
            courses = [c for c in courses if c.is_active]

        courses = filter_courses(courses, search=search, category=category, sort=sort)
        for course in courses:
            course.syllabus = await self.get_syllabus(course.id)
        return courses

    async def list_courses_by_creator(self, creator_id: UUID) -> list[Course]:
        """A faculty member's courses, newest first, including deleted ones."""
        rows = await self.session.aexecute(self._get_courses_by_creator, [creator_id])
        courses = []
        for row in rows:
            course = await self.get_course(row.course_id)
            if course:
                courses.append(course)
        return courses

    # --------------------------------------------------------------------------
    # Writes
    # --------------------------------------------------------------------------

    async def create_course(
        self, data: CreateCourseRequest, creator_id: UUID, creator_name: str
    ) -> Course:
        """Create a course with its syllabus."""
        course = Course(
            title=data.title,
            code=data.code,
            category=data.category.value,
            description=data.description,
            instructor=(data.instructor or "").strip() or creator_name,
            duration=data.duration,
            level=data.level.value,
            max_students=data.max_students,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=True,
            creator_id=creator_id,
            syllabus=build_syllabus(data.syllabus),
        )

        await self._write_course(course)
        await self.session.aexecute(
            self._insert_course_by_creator,
            [course.creator_id, course.created_at, course.id],
        )
        await self._write_syllabus(course.id, course.syllabus)

        logger.info(
            "course_created",
            course_id=str(course.id),
            code=course.code,
            modules=course.total_modules,
        )
        return course

    async def update_course(self, course_id: UUID, data: UpdateCourseRequest) -> Course:
        """Apply a partial update. A given syllabus replaces the stored one."""
        course = await self.require_course(course_id)

        for field in (
            "title",
            "code",
            "description",
            "duration",
            "max_students",
            "start_date",
            "end_date",
            "instructor",
        ):
            value = getattr(data, field)
            if value is not None:
                setattr(course, field, value.strip() if isinstance(value, str) else value)
        if data.category is not None:
            course.category = data.category.value
        if data.level is not None:
            course.level = data.level.value

        if course.start_date and course.end_date and course.start_date >= course.end_date:
            raise InvalidCourseError("End date must be after start date")

        new_syllabus = build_syllabus(data.syllabus) if data.syllabus is not None else None

        course.updated_at = datetime.now(UTC)
        await self._write_course(course)

        if new_syllabus is not None:
            await self.session.aexecute(self._delete_modules, [course_id])
            await self.session.aexecute(self._delete_files, [course_id])
            await self._write_syllabus(course_id, new_syllabus)
            course.syllabus = new_syllabus
            logger.info(
                "course_syllabus_replaced",
                course_id=str(course_id),
                modules=len(new_syllabus),
            )

        logger.info("course_updated", course_id=str(course_id))
        return course

    async def set_active(self, course_id: UUID, is_active: bool) -> Course:
        """Soft delete (False) or restore (True) a course."""
        course = await self.require_course(course_id)
        course.is_active = is_active
        course.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._set_course_active, [is_active, course.updated_at, course_id]
        )
        logger.info(
            "course_restored" if is_active else "course_soft_deleted",
            course_id=str(course_id),
        )
        return course

    async def delete_course(self, course_id: UUID) -> None:
        """Remove the course, its syllabus and its creator lookup row."""
        course = await self.require_course(course_id)

        await self.session.aexecute(self._delete_files, [course_id])
        await self.session.aexecute(self._delete_modules, [course_id])
        if course.creator_id is not None:
            await self.session.aexecute(
                self._delete_course_by_creator,
                [course.creator_id, course.created_at, course_id],
            )
        await self.session.aexecute(self._delete_course, [course_id])
        logger.info("course_permanently_deleted", course_id=str(course_id))

    async def add_module_file(
        self, course_id: UUID, position: int, data: ModuleFileInput
    ) -> ModuleFile:
        """Attach a file to one syllabus entry.

        Raises:
            ModuleNotFoundError: If the position does not exist
            DuplicateFileError: If the same name and size is already attached
        """
        course = await self.require_course(course_id)
        module = self._module_at(course, position)
        attachment = _file_from_input(data)
        _check_duplicate(module.files, attachment)

        await self._write_file(course_id, position, attachment)
        logger.info(
            "module_file_added",
            course_id=str(course_id),
            position=position,
            file_name=attachment.file_name,
        )
        return attachment

    async def remove_module_file(
        self, course_id: UUID, position: int, file_id: UUID
    ) -> None:
        course = await self.require_course(course_id)
        module = self._module_at(course, position)
        if not any(f.file_id == file_id for f in module.files):
            raise FileNotFoundInModuleError
        await self.session.aexecute(self._delete_file, [course_id, position, file_id])

    # --------------------------------------------------------------------------
    # Internals
    # --------------------------------------------------------------------------

    @staticmethod
    def _module_at(course: Course, position: int) -> CourseModule:
        if not 0 <= position < course.total_modules:
            raise ModuleNotFoundError
        return course.syllabus[position]

    async def _write_course(self, course: Course) -> None:
        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.code,
                course.category,
                course.description,
                course.instructor,
                course.duration,
                course.level,
                course.max_students,
                course.start_date,
                course.end_date,
                course.is_active,
                course.creator_id,
                course.created_at,
                course.updated_at,
            ],
        )

    async def _write_syllabus(self, course_id: UUID, modules: list[CourseModule]) -> None:
        for module in modules:
            await self.session.aexecute(
                self._insert_module,
                [course_id, module.position, module.label, module.topic, module.videos],
            )
            for attachment in module.files:
                await self._write_file(course_id, module.position, attachment)

    async def _write_file(
        self, course_id: UUID, position: int, attachment: ModuleFile
    ) -> None:
        await self.session.aexecute(
            self._insert_file,
            [
                course_id,
                position,
                attachment.file_id,
                attachment.file_name,
                attachment.file_url,
                attachment.file_type,
                attachment.file_size,
                attachment.uploaded_at,
            ],
        )

    # --------------------------------------------------------------------------
    # Responses
    # --------------------------------------------------------------------------

    @staticmethod
    def module_to_response(module: CourseModule) -> CourseModuleResponse:
        return CourseModuleResponse.model_validate(module)

    def to_response(self, course: Course) -> CourseResponse:
        return CourseResponse(
            **{k: v for k, v in course.to_dict().items() if k != "syllabus"},
            total_modules=course.total_modules,
            syllabus=[self.module_to_response(m) for m in course.syllabus],
        )
