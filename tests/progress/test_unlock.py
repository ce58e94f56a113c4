"""Tests for the sequential unlock state machine."""

import pytest

from skillhub.progress import unlock
from skillhub.progress.unlock import (
    CourseProgressState,
    ModuleIndexError,
    ModuleLockedError,
    ModuleProgressState,
    ModuleStatus,
    VideoIndexError,
)


def _state(*completed: bool, videos: int = 2) -> CourseProgressState:
    return CourseProgressState(
        tuple(ModuleProgressState(total_videos=videos, completed=c) for c in completed)
    )


class TestUnlockedModules:
    """Unlocked modules always form a prefix."""

    def test_empty_course(self) -> None:
        assert unlock.unlocked_modules(CourseProgressState()) == set()

    def test_first_module_always_unlocked(self) -> None:
        assert unlock.unlocked_modules(_state(False, False, False)) == {0}

    def test_completed_prefix_unlocks_next(self) -> None:
        assert unlock.unlocked_modules(_state(True, True, False, False)) == {0, 1, 2}

    def test_gap_stops_the_prefix(self) -> None:
        """A completed module after an incomplete one stays locked."""
        state = _state(True, False, True, False)
        assert unlock.unlocked_modules(state) == {0, 1}
        assert unlock.module_status(state, 2) == ModuleStatus.LOCKED

    def test_all_completed(self) -> None:
        assert unlock.unlocked_modules(_state(True, True)) == {0, 1}

    def test_statuses(self) -> None:
        assert unlock.module_statuses(_state(True, False, False)) == [
            ModuleStatus.UNLOCKED_COMPLETED,
            ModuleStatus.UNLOCKED_INCOMPLETE,
            ModuleStatus.LOCKED,
        ]

    def test_out_of_range_index(self) -> None:
        with pytest.raises(ModuleIndexError):
            unlock.is_unlocked(_state(False), 3)


class TestTransitions:
    """Tests for complete/uncomplete/toggle."""

    def test_complete_unlocks_next(self) -> None:
        state = unlock.complete_module(_state(False, False), 0)
        assert unlock.is_unlocked(state, 1)

    def test_complete_locked_module_rejected(self) -> None:
        with pytest.raises(ModuleLockedError):
            unlock.complete_module(_state(False, False, False), 2)

    def test_uncomplete_relocks_later_modules(self) -> None:
        """Later completion flags are kept but no longer count."""
        before = _state(True, True, True)
        after = unlock.uncomplete_module(before, 0)

        assert unlock.unlocked_modules(after) == {0}
        assert unlock.relocked_modules(before, after) == [1, 2]
        assert after.modules[1].completed is True
        assert unlock.summarize(after).completed_modules == 0

    def test_recompleting_restores_retained_flags(self) -> None:
        state = unlock.uncomplete_module(_state(True, True, True), 0)
        state = unlock.complete_module(state, 0)
        assert unlock.is_certificate_eligible(state)

    def test_toggle(self) -> None:
        state = unlock.toggle_module(_state(False, False), 0)
        assert state.modules[0].completed is True
        state = unlock.toggle_module(state, 0)
        assert state.modules[0].completed is False

    def test_transitions_do_not_mutate(self) -> None:
        before = _state(False)
        unlock.complete_module(before, 0)
        assert before.modules[0].completed is False


class TestVideoCompletion:
    """Tests for record_video_completion."""

    def test_last_video_completes_module(self) -> None:
        state = _state(False, False, videos=2)
        state = unlock.record_video_completion(state, 0, 0)
        assert state.modules[0].completed is False
        state = unlock.record_video_completion(state, 0, 1)
        assert state.modules[0].completed is True
        assert unlock.is_unlocked(state, 1)

    def test_repeated_video_counts_once(self) -> None:
        state = _state(False, videos=2)
        state = unlock.record_video_completion(state, 0, 0)
        state = unlock.record_video_completion(state, 0, 0)
        assert state.modules[0].completed_videos == frozenset({0})
        assert state.modules[0].completed is False

    def test_locked_module_rejected(self) -> None:
        with pytest.raises(ModuleLockedError):
            unlock.record_video_completion(_state(False, False), 1, 0)

    def test_bad_video_index(self) -> None:
        with pytest.raises(VideoIndexError):
            unlock.record_video_completion(_state(False, videos=2), 0, 2)

    def test_module_without_videos_has_no_video_slots(self) -> None:
        with pytest.raises(VideoIndexError):
            unlock.record_video_completion(_state(False, videos=0), 0, 0)


class TestEligibilityAndSummary:
    def test_empty_course_never_eligible(self) -> None:
        assert unlock.is_certificate_eligible(CourseProgressState()) is False

    def test_eligible_when_all_completed(self) -> None:
        assert unlock.is_certificate_eligible(_state(True, True, True))

    def test_not_eligible_with_one_missing(self) -> None:
        assert not unlock.is_certificate_eligible(_state(True, False, True))

    def test_summary_percent(self) -> None:
        summary = unlock.summarize(_state(True, False, False))
        assert summary.completed_modules == 1
        assert summary.total_modules == 3
        assert summary.overall_progress == 33
        assert summary.is_completed is False

    def test_summary_full(self) -> None:
        summary = unlock.summarize(_state(True, True))
        assert summary.overall_progress == 100
        assert summary.is_completed is True


class TestSerialization:
    def test_round_trip(self) -> None:
        state = CourseProgressState(
            (
                ModuleProgressState(3, frozenset({2, 0}), completed=False),
                ModuleProgressState(1, frozenset({0}), completed=True),
            )
        )
        data = unlock.to_dict(state)
        assert data["modules"]["0"]["completed_videos"] == [0, 2]
        assert unlock.from_dict(data) == state

    def test_from_dict_fills_gaps(self) -> None:
        state = unlock.from_dict({"modules": {"1": {"total_videos": 2, "completed": True}}})
        assert len(state) == 2
        assert state.modules[0] == ModuleProgressState(total_videos=0)

    def test_reconcile_with_changed_syllabus(self) -> None:
        """Extra modules go, new ones start empty, stale video indices drop."""
        saved = CourseProgressState(
            (
                ModuleProgressState(3, frozenset({0, 2}), completed=True),
                ModuleProgressState(2, frozenset({1}), completed=False),
                ModuleProgressState(1, frozenset(), completed=True),
            )
        )
        state = unlock.reconcile(saved, [2, 2])
        assert len(state) == 2
        assert state.modules[0].completed_videos == frozenset({0})
        assert state.modules[0].total_videos == 2
        # fewer videos than when it was completed: only watched ones count
        assert state.modules[0].completed is False

        grown = unlock.reconcile(saved, [3, 2, 1, 4])
        assert grown.modules[0].completed is True
        assert grown.modules[2].completed is True
        assert grown.modules[3] == ModuleProgressState(total_videos=4)

    def test_reconcile_added_videos_reopen_module(self) -> None:
        saved = CourseProgressState(
            (
                ModuleProgressState(1, frozenset({0}), completed=True),
                ModuleProgressState(1, frozenset({0}), completed=True),
                ModuleProgressState(1, frozenset({0}), completed=True),
            )
        )
        state = unlock.reconcile(saved, [1, 1, 3])

        assert state.modules[2] == ModuleProgressState(3, frozenset({0}), completed=False)
        assert unlock.is_certificate_eligible(state) is False

    def test_reconcile_full_video_set_completes(self) -> None:
        saved = CourseProgressState((ModuleProgressState(2, frozenset({0, 1})),))
        assert unlock.reconcile(saved, [2]).modules[0].completed is True

    def test_reconcile_keeps_manual_completion_of_unchanged_module(self) -> None:
        saved = CourseProgressState((ModuleProgressState(0, completed=True),))
        assert unlock.reconcile(saved, [0]).modules[0].completed is True
