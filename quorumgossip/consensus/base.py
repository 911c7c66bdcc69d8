from __future__ import annotations

from typing import Iterable, Optional, Protocol, Set

from quorumgossip.types import Candidate, Membership, Transaction


class Node(Protocol):
    """Capability set every simulated participant exposes to the driver.

    Compliant and adversarial nodes both implement it; the driver never
    touches node internals beyond these four calls.
    """

    def set_followees(self, membership: Membership) -> None:
        """Record which peer indices this node follows."""

    def seed_pending_transactions(self, transactions: Optional[Iterable[Transaction]]) -> None:
        """Merge the initial transaction set into the node's beliefs."""

    def send_to_followers(self) -> Set[Transaction]:
        """Return the transactions broadcast this round."""

    def receive_from_followees(self, candidates: Optional[Iterable[Candidate]]) -> None:
        """Consume this round's inbox and advance one round."""


__all__ = ["Node"]
