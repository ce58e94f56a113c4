"""Student progress tracking service layer.

Business logic for:
- Video completion reports with automatic module completion
- Manual module completion toggles
- Keeping enrollment progress and certificates consistent with the unlock
  rules in ``skillhub.progress.unlock``
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from skillhub.certificates.service import CertificateService
from skillhub.core.logging import get_logger
from skillhub.courses.models import Course
from skillhub.courses.service import CourseDeletedError, CourseNotFoundError, CourseService
from skillhub.enrollments.models import Enrollment
from skillhub.enrollments.service import EnrollmentService
from skillhub.progress import unlock
from skillhub.progress.models import COMPLETION_THRESHOLD, ModuleProgress, state_from_rows
from skillhub.progress.schemas import (
    CourseProgressResponse,
    CourseProgressSummary,
    ModuleProgressResponse,
    VideoProgressRequest,
    VideoProgressResponse,
)
from skillhub.progress.unlock import CourseProgressState


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


@dataclass
class ProgressSnapshot:
    """Everything known about one student in one course."""

    course: Course
    enrollment: Enrollment
    state: CourseProgressState

    @property
    def eligible(self) -> bool:
        return unlock.is_certificate_eligible(self.state)


class ProgressService:
    """Service for student progress tracking."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: CourseService,
        enrollment_service: EnrollmentService,
        certificate_service: CertificateService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.certificate_service = certificate_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_progress
            WHERE user_id = ? AND course_id = ?
        """)
        self._upsert_module_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.module_progress
            (user_id, course_id, module_index, completed_videos, total_videos,
             completed, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        # Set append, so concurrent reports for one module both land
        self._add_watched_videos = self.session.prepare(f"""
            UPDATE {self.keyspace}.module_progress
            SET completed_videos = completed_videos + ?, total_videos = ?,
                completed = ?, updated_at = ?
            WHERE user_id = ? AND course_id = ? AND module_index = ?
        """)
        self._delete_course_progress = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.module_progress
            WHERE user_id = ? AND course_id = ?
        """)
        self._delete_modules_from = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.module_progress
            WHERE user_id = ? AND course_id = ? AND module_index >= ?
        """)

    # ==========================================================================
    # Loading and saving state
    # ==========================================================================

    async def load_state(self, user_id: UUID, course: Course) -> CourseProgressState:
        """Stored progress fitted to the course's current syllabus."""
        rows = await self.session.aexecute(self._get_course_progress, [user_id, course.id])
        saved = state_from_rows([ModuleProgress.from_row(row) for row in rows])
        return unlock.reconcile(saved, course.video_counts())

    async def _save_state(
        self,
        user_id: UUID,
        course_id: UUID,
        before: CourseProgressState,
        after: CourseProgressState,
        overwrite: bool = False,
    ) -> None:
        """Write modules that changed.

        Watched videos are appended to the stored set unless ``overwrite`` is
        set, which replaces the row.
        """
        now = datetime.now(UTC)
        for index, module in enumerate(after.modules):
            if index < len(before.modules) and before.modules[index] == module:
                continue
            if overwrite:
                await self.session.aexecute(
                    self._upsert_module_progress,
                    [
                        user_id,
                        course_id,
                        index,
                        set(module.completed_videos),
                        module.total_videos,
                        module.completed,
                        now,
                    ],
                )
                continue
            previous = (
                before.modules[index].completed_videos
                if index < len(before.modules)
                else frozenset()
            )
            await self.session.aexecute(
                self._add_watched_videos,
                [
                    set(module.completed_videos - previous),
                    module.total_videos,
                    module.completed,
                    now,
                    user_id,
                    course_id,
                    index,
                ],
            )

    async def get_snapshot(self, user_id: UUID, course_id: UUID) -> ProgressSnapshot:
        """Load course, enrollment and progress for an enrolled student.

        Raises:
            NotEnrolledError: If the student is not enrolled
            CourseNotFoundError: If the course no longer exists
        """
        enrollment = await self.enrollment_service.require_enrollment(user_id, course_id)
        course = await self.course_service.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        state = await self.load_state(user_id, course)
        return ProgressSnapshot(course=course, enrollment=enrollment, state=state)

    # ==========================================================================
    # Operations
    # ==========================================================================

    async def get_course_progress(
        self, user_id: UUID, course_id: UUID
    ) -> CourseProgressResponse:
        """Progress report; a certificate the student no longer qualifies for is revoked."""
        snapshot = await self.get_snapshot(user_id, course_id)
        has_certificate = await self._sync_certificate(user_id, snapshot)
        return self.to_response(user_id, snapshot, has_certificate)

    async def record_video_progress(
        self, user_id: UUID, data: VideoProgressRequest
    ) -> VideoProgressResponse:
        """Apply a video player report.

        Below the completion threshold the report is accepted and nothing
        changes.

        Raises:
            NotEnrolledError, ModuleLockedError, ModuleIndexError, VideoIndexError
        """
        snapshot = await self.get_snapshot(user_id, data.course_id)
        self._ensure_active(snapshot.course)

        counted = data.completed or Decimal(str(data.watched_percentage)) >= COMPLETION_THRESHOLD
        if not counted:
            # Still validate the target so a bad index is reported early
            if not unlock.is_unlocked(snapshot.state, data.module_index):
                raise unlock.ModuleLockedError
            module = snapshot.state.modules[data.module_index]
            if data.video_index >= module.total_videos:
                raise unlock.VideoIndexError(data.module_index, data.video_index)
            has_certificate = await self._sync_certificate(user_id, snapshot)
            return VideoProgressResponse(
                counted=False,
                module_completed=snapshot.state.modules[data.module_index].completed,
                progress=self.to_response(user_id, snapshot, has_certificate),
            )

        snapshot = await self._apply(
            user_id,
            snapshot,
            lambda state: unlock.record_video_completion(
                state, data.module_index, data.video_index
            ),
        )
        has_certificate = await self._sync_certificate(user_id, snapshot)
        return VideoProgressResponse(
            counted=True,
            module_completed=snapshot.state.modules[data.module_index].completed,
            progress=self.to_response(user_id, snapshot, has_certificate),
        )

    async def set_module_completion(
        self, user_id: UUID, course_id: UUID, module_index: int, completed: bool
    ) -> CourseProgressResponse:
        """Manually mark a module completed or incomplete.

        Raises:
            NotEnrolledError, ModuleLockedError, ModuleIndexError
        """
        snapshot = await self.get_snapshot(user_id, course_id)
        self._ensure_active(snapshot.course)
        snapshot = await self._apply(
            user_id,
            snapshot,
            lambda state: unlock.set_module_completed(state, module_index, completed),
        )
        has_certificate = await self._sync_certificate(user_id, snapshot)
        return self.to_response(user_id, snapshot, has_certificate)

    async def delete_progress(self, user_id: UUID, course_id: UUID) -> None:
        """Forget a student's progress in a course (on unenroll)."""
        await self.session.aexecute(self._delete_course_progress, [user_id, course_id])
        await self.certificate_service.revoke(user_id, course_id)

    async def delete_course_progress(self, course_id: UUID, user_ids: list[UUID]) -> None:
        for user_id in user_ids:
            await self.session.aexecute(self._delete_course_progress, [user_id, course_id])

    async def resync_course(self, course: Course) -> None:
        """Refit every enrolled student's progress after a syllabus change.

        Rows past the last module are deleted, remaining rows are rewritten
        against the new video counts, and certificates the students no longer
        qualify for are revoked.
        """
        video_counts = course.video_counts()
        for enrollment in await self.enrollment_service.get_course_enrollments(course.id):
            user_id = enrollment.user_id
            rows = await self.session.aexecute(self._get_course_progress, [user_id, course.id])
            saved = state_from_rows([ModuleProgress.from_row(row) for row in rows])
            state = unlock.reconcile(saved, video_counts)

            if len(saved) > len(state):
                await self.session.aexecute(
                    self._delete_modules_from, [user_id, course.id, len(state)]
                )
            stored = CourseProgressState(state.modules[: len(saved)])
            await self._save_state(user_id, course.id, saved, stored, overwrite=True)

            summary = unlock.summarize(state)
            await self.enrollment_service.record_progress(
                enrollment,
                progress_percent=summary.overall_progress,
                modules_completed=summary.completed_modules,
                modules_total=summary.total_modules,
                completed=summary.is_completed,
            )
            snapshot = ProgressSnapshot(course=course, enrollment=enrollment, state=state)
            await self._sync_certificate(user_id, snapshot)

        logger.info("course_progress_resynced", course_id=str(course.id))

    # ==========================================================================
    # Internals
    # ==========================================================================

    @staticmethod
    def _ensure_active(course: Course) -> None:
        if not course.is_active:
            raise CourseDeletedError

    async def _apply(
        self,
        user_id: UUID,
        snapshot: ProgressSnapshot,
        transition: Callable[[CourseProgressState], CourseProgressState],
    ) -> ProgressSnapshot:
        before = snapshot.state
        after = transition(before)
        course_id = snapshot.course.id
        log = logger.bind(user_id=str(user_id), course_id=str(course_id))

        await self._save_state(user_id, course_id, before, after)

        for index, (old, new) in enumerate(zip(before.modules, after.modules, strict=True)):
            if new.completed and not old.completed:
                log.info("module_completed", module_index=index)
            elif old.completed and not new.completed:
                log.info("module_uncompleted", module_index=index)
        relocked = unlock.relocked_modules(before, after)
        if relocked:
            log.info("modules_relocked", modules=relocked)

        summary = unlock.summarize(after)
        if summary.is_completed and not unlock.is_certificate_eligible(before):
            log.info("course_progress_eligible")

        enrollment = await self.enrollment_service.record_progress(
            snapshot.enrollment,
            progress_percent=summary.overall_progress,
            modules_completed=summary.completed_modules,
            modules_total=summary.total_modules,
            completed=summary.is_completed,
        )
        return ProgressSnapshot(course=snapshot.course, enrollment=enrollment, state=after)

    async def _sync_certificate(self, user_id: UUID, snapshot: ProgressSnapshot) -> bool:
        """Whether a valid certificate exists, revoking one that is no longer valid."""
        certificate = await self.certificate_service.get_certificate(
            user_id, snapshot.course.id
        )
        if certificate is None:
            return False
        if not snapshot.eligible:
            await self.certificate_service.revoke(user_id, snapshot.course.id)
            return False
        return True

    def to_response(
        self, user_id: UUID, snapshot: ProgressSnapshot, has_certificate: bool
    ) -> CourseProgressResponse:
        state = snapshot.state
        summary = unlock.summarize(state)
        statuses = unlock.module_statuses(state)
        modules = [
            ModuleProgressResponse(
                index=index,
                label=syllabus_entry.label,
                topic=syllabus_entry.topic,
                status=statuses[index],
                completed=module.completed,
                completed_videos=sorted(module.completed_videos),
                total_videos=module.total_videos,
            )
            for index, (syllabus_entry, module) in enumerate(
                zip(snapshot.course.syllabus, state.modules, strict=True)
            )
        ]
        return CourseProgressResponse(
            course_id=snapshot.course.id,
            user_id=user_id,
            course_progress=CourseProgressSummary(
                total_modules=summary.total_modules,
                completed_modules=summary.completed_modules,
                total_videos=summary.total_videos,
                completed_videos=summary.completed_videos,
                overall_progress=summary.overall_progress,
                is_completed=summary.is_completed,
                certificate_generated=has_certificate,
            ),
            modules=modules,
            unlocked_modules=sorted(unlock.unlocked_modules(state)),
            certificate_eligible=summary.is_completed,
            state=unlock.to_dict(state),
        )
