"""Tests for the followee reliability tracker."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from quorumgossip.consensus.reliability import PeerReliabilityTracker

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from _pytest.capture import CaptureFixture
    from _pytest.fixtures import FixtureRequest
    from _pytest.logging import LogCaptureFixture
    from _pytest.monkeypatch import MonkeyPatch
    from pytest_mock.plugin import MockerFixture


def _tracker(membership: List[bool]) -> PeerReliabilityTracker:
    tracker = PeerReliabilityTracker()
    tracker.initialize(membership)
    return tracker


def test_initialize_counts_followees() -> None:
    tracker = _tracker([True, False, True, True])
    assert tracker.size == 4
    assert tracker.total_followees == 3
    assert tracker.active_count() == 3
    assert tracker.excluded == frozenset()
    assert tracker.is_followee(0) and not tracker.is_followee(1)
    assert not tracker.is_followee(-1) and not tracker.is_followee(4)


def test_silent_followees_are_excluded() -> None:
    """Only followees that did not speak are excluded when the round closes."""
    tracker = _tracker([True, True, True, False])
    tracker.record_spoke(0)
    tracker.record_spoke(1)
    tracker.record_spoke(3)  # not a followee, ignored

    assert tracker.finalize_round() == (2,)
    assert tracker.excluded == frozenset({2})
    assert tracker.active_count() == 2
    assert not tracker.is_excluded(3)


def test_exclusion_is_permanent() -> None:
    """An excluded followee never comes back, even if it speaks later."""
    tracker = _tracker([True, True, True])
    tracker.record_spoke(0)
    tracker.record_spoke(1)
    tracker.finalize_round()

    for _ in range(3):
        tracker.record_spoke(0)
        tracker.record_spoke(1)
        tracker.record_spoke(2)
        assert tracker.finalize_round() == ()
        assert tracker.is_excluded(2)
        assert not tracker.is_trusted(2)
        assert tracker.active_count() == 2


def test_spoke_markers_reset_each_round() -> None:
    """Speaking in one round does not protect a followee in the next."""
    tracker = _tracker([True, True])
    tracker.record_spoke(0)
    tracker.record_spoke(1)
    assert tracker.finalize_round() == ()

    tracker.record_spoke(1)
    assert tracker.finalize_round() == (0,)
    assert tracker.active_count() == 1


def test_active_count_never_negative() -> None:
    tracker = _tracker([True, True])
    for _ in range(4):
        tracker.finalize_round()
    assert tracker.active_count() == 0
    assert tracker.excluded == frozenset({0, 1})


def test_reinitialize_resets_history() -> None:
    """A second initialize is a reset, not an incremental update."""
    tracker = _tracker([True, True])
    tracker.finalize_round()
    assert tracker.active_count() == 0

    tracker.initialize([True, False, True])
    assert tracker.excluded == frozenset()
    assert tracker.active_count() == 2
    assert tracker.size == 3
