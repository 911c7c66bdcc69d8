"""Base types shared by the consensus core and the simulation harness."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Sequence

PeerIndex = int
Membership = Sequence[bool]


@dataclass(frozen=True, order=True)
class Transaction:
    """Opaque transaction identifier.

    Equality and hashing depend only on ``id``; validity is not modelled.
    """

    id: int

    def __str__(self) -> str:
        """Return string representation of the transaction."""
        return f"tx:{self.id}"


@dataclass(frozen=True)
class Candidate:
    """One inbound claim: ``sender`` proposes ``tx`` this round."""

    tx: Transaction
    sender: PeerIndex


class NodeState(Enum):
    """Lifecycle of a compliant node as driven by the simulator."""

    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    ROUND_ACTIVE = "round_active"


@dataclass(frozen=True)
class RoundOutcome:
    """Summary of a single ``receive_from_followees`` transition."""

    round: int
    alpha: float
    threshold: int
    active_followees: int
    newly_excluded: tuple[PeerIndex, ...]
    candidates_considered: int
    accepted: int
    retained_fallback: bool
    beliefs: FrozenSet[Transaction]


__all__ = [
    "PeerIndex",
    "Membership",
    "Transaction",
    "Candidate",
    "NodeState",
    "RoundOutcome",
]
