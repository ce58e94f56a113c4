"""Sequential module unlocking and certificate eligibility.

Pure functions over an immutable course progress state. Nothing here
touches storage, so the rules can be tested in isolation and the state can
be persisted as plain JSON.

Rules:
- Module 0 is always unlocked.
- Module i+1 is unlocked only while every module 0..i is completed, so the
  unlocked set is always a prefix of the syllabus.
- Un-completing module i therefore re-locks every module after it. Their
  own completion flags are kept and count again once the prefix is
  completed.
- A certificate is available only when every module is unlocked and
  completed. A course without modules never qualifies.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ModuleLockedError(ProgressError):
    def __init__(
        self,
        message: str = "This module is locked. Complete the previous module to unlock it.",
    ):
        super().__init__(message, "module_locked")


class ModuleIndexError(ProgressError):
    def __init__(self, index: int):
        super().__init__(f"Module {index} does not exist in this course", "module_not_found")


class VideoIndexError(ProgressError):
    def __init__(self, module_index: int, video_index: int):
        super().__init__(
            f"Video {video_index} does not exist in module {module_index}",
            "video_not_found",
        )


class ModuleStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED_INCOMPLETE = "unlocked_incomplete"
    UNLOCKED_COMPLETED = "unlocked_completed"


@dataclass(frozen=True)
class ModuleProgressState:
    """Progress inside one module."""

    total_videos: int
    completed_videos: frozenset[int] = field(default_factory=frozenset)
    completed: bool = False


@dataclass(frozen=True)
class CourseProgressState:
    """Progress of one student through one course, in syllabus order."""

    modules: tuple[ModuleProgressState, ...] = ()

    @classmethod
    def empty(cls, video_counts: list[int]) -> "CourseProgressState":
        return cls(tuple(ModuleProgressState(total_videos=n) for n in video_counts))

    def __len__(self) -> int:
        return len(self.modules)


@dataclass(frozen=True)
class ProgressSummary:
    total_modules: int
    completed_modules: int
    total_videos: int
    completed_videos: int
    overall_progress: int
    is_completed: bool


# ==============================================================================
# Queries
# ==============================================================================


def unlocked_modules(state: CourseProgressState) -> set[int]:
    """Indices of unlocked modules: the longest completed prefix plus one."""
    if not state.modules:
        return set()
    unlocked = {0}
    for index, module in enumerate(state.modules[:-1]):
        if not module.completed:
            break
        unlocked.add(index + 1)
    return unlocked


def _check_index(state: CourseProgressState, index: int) -> None:
    if not 0 <= index < len(state.modules):
        raise ModuleIndexError(index)


def is_unlocked(state: CourseProgressState, index: int) -> bool:
    _check_index(state, index)
    return index in unlocked_modules(state)


def module_status(state: CourseProgressState, index: int) -> ModuleStatus:
    if not is_unlocked(state, index):
        return ModuleStatus.LOCKED
    if state.modules[index].completed:
        return ModuleStatus.UNLOCKED_COMPLETED
    return ModuleStatus.UNLOCKED_INCOMPLETE


def module_statuses(state: CourseProgressState) -> list[ModuleStatus]:
    return [module_status(state, i) for i in range(len(state.modules))]


def is_certificate_eligible(state: CourseProgressState) -> bool:
    """True when every module is unlocked and completed."""
    if not state.modules:
        return False
    all_unlocked = unlocked_modules(state) == set(range(len(state.modules)))
    return all_unlocked and all(m.completed for m in state.modules)


def summarize(state: CourseProgressState) -> ProgressSummary:
    """Counts and overall percentage.

    Only unlocked modules count as completed; a retained flag on a
    re-locked module does not.
    """
    statuses = module_statuses(state)
    total = len(statuses)
    completed = statuses.count(ModuleStatus.UNLOCKED_COMPLETED)
    eligible = is_certificate_eligible(state)

    if eligible:
        overall = 100
    elif total:
        overall = round(completed / total * 100)
    else:
        overall = 0

    return ProgressSummary(
        total_modules=total,
        completed_modules=completed,
        total_videos=sum(m.total_videos for m in state.modules),
        completed_videos=sum(len(m.completed_videos) for m in state.modules),
        overall_progress=overall,
        is_completed=eligible,
    )


# ==============================================================================
# Transitions
# ==============================================================================


def _with_module(
    state: CourseProgressState, index: int, module: ModuleProgressState
) -> CourseProgressState:
    modules = list(state.modules)
    modules[index] = module
    return CourseProgressState(tuple(modules))


def complete_module(state: CourseProgressState, index: int) -> CourseProgressState:
    """Mark an unlocked module completed, unlocking the next one.

    Raises:
        ModuleLockedError: If the module is locked
    """
    if not is_unlocked(state, index):
        raise ModuleLockedError
    return _with_module(state, index, replace(state.modules[index], completed=True))


def uncomplete_module(state: CourseProgressState, index: int) -> CourseProgressState:
    """Mark an unlocked module incomplete, re-locking every later module."""
    if not is_unlocked(state, index):
        raise ModuleLockedError
    return _with_module(state, index, replace(state.modules[index], completed=False))


def set_module_completed(
    state: CourseProgressState, index: int, completed: bool
) -> CourseProgressState:
    if completed:
        return complete_module(state, index)
    return uncomplete_module(state, index)


def toggle_module(state: CourseProgressState, index: int) -> CourseProgressState:
    _check_index(state, index)
    return set_module_completed(state, index, not state.modules[index].completed)


def record_video_completion(
    state: CourseProgressState, index: int, video_index: int
) -> CourseProgressState:
    """Record a watched video; the last missing one completes the module.

    Raises:
        ModuleLockedError: If the module is locked
        VideoIndexError: If the module has no such video
    """
    if not is_unlocked(state, index):
        raise ModuleLockedError
    module = state.modules[index]
    if not 0 <= video_index < module.total_videos:
        raise VideoIndexError(index, video_index)

    watched = module.completed_videos | {video_index}
    completed = module.completed or len(watched) >= module.total_videos
    return _with_module(
        state, index, replace(module, completed_videos=frozenset(watched), completed=completed)
    )


def relocked_modules(
    before: CourseProgressState, after: CourseProgressState
) -> list[int]:
    """Modules unlocked in ``before`` that are locked in ``after``."""
    return sorted(unlocked_modules(before) - unlocked_modules(after))


def reconcile(state: CourseProgressState, video_counts: list[int]) -> CourseProgressState:
    """Fit saved progress to the course's current syllabus.

    Extra modules are dropped, missing ones start empty, video totals follow
    the syllabus and watched indices beyond them are discarded. A completion
    flag survives only while the module's video count is unchanged; otherwise
    the module is completed only if every current video was watched.
    """
    modules = []
    for index, total in enumerate(video_counts):
        if index < len(state.modules):
            saved = state.modules[index]
            watched = frozenset(v for v in saved.completed_videos if v < total)
            watched_all = total > 0 and len(watched) == total
            modules.append(
                ModuleProgressState(
                    total_videos=total,
                    completed_videos=watched,
                    completed=watched_all or (saved.completed and saved.total_videos == total),
                )
            )
        else:
            modules.append(ModuleProgressState(total_videos=total))
    return CourseProgressState(tuple(modules))


# ==============================================================================
# Serialization
# ==============================================================================


def to_dict(state: CourseProgressState) -> dict[str, Any]:
    """JSON-compatible form: ``{"modules": {"0": {...}, ...}}``."""
    return {
        "modules": {
            str(index): {
                "completed_videos": sorted(module.completed_videos),
                "total_videos": module.total_videos,
                "completed": module.completed,
            }
            for index, module in enumerate(state.modules)
        }
    }


def from_dict(data: dict[str, Any]) -> CourseProgressState:
    """Inverse of ``to_dict``. Missing indices become empty modules."""
    raw = {int(key): value for key, value in (data.get("modules") or {}).items()}
    size = max(raw) + 1 if raw else 0
    modules = []
    for index in range(size):
        item = raw.get(index) or {}
        modules.append(
            ModuleProgressState(
                total_videos=int(item.get("total_videos", 0)),
                completed_videos=frozenset(int(v) for v in item.get("completed_videos", [])),
                completed=bool(item.get("completed", False)),
            )
        )
    return CourseProgressState(tuple(modules))
