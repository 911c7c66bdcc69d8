"""Followee reliability tracking.

A followee that stays silent for a whole round is excluded for the rest of the
node's lifetime. Exclusion is never undone, which bounds how long a silent
adversary can weigh on the quorum denominator.
"""

from __future__ import annotations

from typing import FrozenSet, List, Set, Tuple

from quorumgossip.types import Membership, PeerIndex


class PeerReliabilityTracker:
    """Track which configured followees are still trusted."""

    def __init__(self) -> None:
        self._followees: Tuple[bool, ...] = ()
        self._excluded: List[bool] = []
        self._spoke: Set[PeerIndex] = set()
        self._total = 0
        self._active = 0

    def initialize(self, membership: Membership) -> None:
        """Record the followee membership vector and reset all history.

        Calling this again is a reinitialisation: previous exclusions are
        forgotten.
        """
        self._followees = tuple(bool(f) for f in membership)
        self._excluded = [False] * len(self._followees)
        self._spoke = set()
        self._total = sum(self._followees)
        self._active = self._total

    @property
    def size(self) -> int:
        """Length of the membership vector (number of peer indices)."""
        return len(self._followees)

    @property
    def total_followees(self) -> int:
        return self._total

    @property
    def excluded(self) -> FrozenSet[PeerIndex]:
        """Indices of followees excluded so far."""
        return frozenset(i for i, flag in enumerate(self._excluded) if flag)

    def is_followee(self, index: PeerIndex) -> bool:
        return 0 <= index < len(self._followees) and self._followees[index]

    def is_excluded(self, index: PeerIndex) -> bool:
        return 0 <= index < len(self._excluded) and self._excluded[index]

    def is_trusted(self, index: PeerIndex) -> bool:
        """Return True for an in-range followee that has not been excluded."""
        return self.is_followee(index) and not self._excluded[index]

    def record_spoke(self, index: PeerIndex) -> None:
        """Mark that followee ``index`` sent something this round."""
        if self.is_trusted(index):
            self._spoke.add(index)

    def finalize_round(self) -> Tuple[PeerIndex, ...]:
        """Exclude every trusted followee that stayed silent this round.

        Returns:
            The indices excluded by this call, in ascending order.
        """
        newly_excluded = tuple(
            i for i in range(len(self._followees)) if self.is_trusted(i) and i not in self._spoke
        )
        for i in newly_excluded:
            self._excluded[i] = True
        self._active = max(0, self._active - len(newly_excluded))
        self._spoke = set()
        return newly_excluded

    def active_count(self) -> int:
        """Return the number of followees that are still trusted."""
        return max(0, self._active)


__all__ = ["PeerReliabilityTracker"]
