"""Database models for module progress.

One row per (student, course, module position). The partition holds a
student's whole progress through one course, so a single query loads the
state the unlock rules work on.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from skillhub.auth.models import ensure_utc_aware
from skillhub.progress.unlock import CourseProgressState, ModuleProgressState


# A video counts as watched from 90% onwards
COMPLETION_THRESHOLD = Decimal(90)


MODULE_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_progress (
    user_id UUID,
    course_id UUID,
    module_index INT,
    completed_videos SET<INT>,
    total_videos INT,
    completed BOOLEAN,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id, course_id), module_index)
) WITH CLUSTERING ORDER BY (module_index ASC)
"""

PROGRESS_TABLES_CQL = [
    MODULE_PROGRESS_TABLE_CQL,
]


class ModuleProgress:
    """Stored progress for one module."""

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        module_index: int,
        completed_videos: set[int] | None = None,
        total_videos: int = 0,
        completed: bool = False,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.module_index = module_index
        self.completed_videos = set(completed_videos or ())
        self.total_videos = total_videos
        self.completed = completed
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "ModuleProgress":
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            module_index=row.module_index,
            completed_videos=set(row.completed_videos or ()),
            total_videos=row.total_videos or 0,
            completed=bool(row.completed),
            updated_at=row.updated_at,
        )

    def to_state(self) -> ModuleProgressState:
        return ModuleProgressState(
            total_videos=self.total_videos,
            completed_videos=frozenset(self.completed_videos),
            completed=self.completed,
        )

    def __repr__(self) -> str:
        return (
            f"<ModuleProgress user={self.user_id} module={self.module_index} "
            f"{len(self.completed_videos)}/{self.total_videos}>"
        )


def state_from_rows(rows: list[ModuleProgress]) -> CourseProgressState:
    """Assemble course state; positions without a row start empty."""
    by_index = {row.module_index: row for row in rows}
    size = max(by_index) + 1 if by_index else 0
    return CourseProgressState(
        tuple(
            by_index[i].to_state() if i in by_index else ModuleProgressState(total_videos=0)
            for i in range(size)
        )
    )
