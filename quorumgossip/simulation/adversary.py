"""Adversarial node behaviours used to exercise the compliant node."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

import numpy as np

from quorumgossip.types import Candidate, Membership, Transaction

SPAM_ID_LOW = 1_000_000
SPAM_ID_HIGH = 2_000_000


class SimpleMaliciousNode:
    """Alternate between spamming fresh transaction ids and going silent.

    Even rounds emit ``spam_count`` random ids from ``[1_000_000, 2_000_000)``;
    odd rounds emit nothing. Seeds and inbound candidates are ignored.
    """

    def __init__(self, *, seed: Optional[int] = 42, spam_count: int = 3) -> None:
        self._rng = np.random.default_rng(seed)
        self._spam_count = spam_count
        self._followees: List[bool] = []
        self._round = 0

    def set_followees(self, membership: Membership) -> None:
        self._followees = list(membership)

    def seed_pending_transactions(self, transactions: Optional[Iterable[Transaction]]) -> None:
        pass

    def send_to_followers(self) -> Set[Transaction]:
        if self._round % 2 == 0:
            ids = self._rng.integers(SPAM_ID_LOW, SPAM_ID_HIGH, size=self._spam_count)
            return {Transaction(int(i)) for i in ids}
        return set()

    def receive_from_followees(self, candidates: Optional[Iterable[Candidate]]) -> None:
        self._round += 1


class SilentNode:
    """Never emits anything; followers end up excluding it after one round."""

    def set_followees(self, membership: Membership) -> None:
        pass

    def seed_pending_transactions(self, transactions: Optional[Iterable[Transaction]]) -> None:
        pass

    def send_to_followers(self) -> Set[Transaction]:
        return set()

    def receive_from_followees(self, candidates: Optional[Iterable[Candidate]]) -> None:
        pass


__all__ = ["SimpleMaliciousNode", "SilentNode"]
