"""Compliant node: belief-set evolution under an adaptive quorum."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, Optional, Set

from quorumgossip.consensus.quorum import (
    interpolate_alpha,
    quorum_bounds,
    required_quorum_count,
    round_progress,
    supported_transactions,
)
from quorumgossip.consensus.reliability import PeerReliabilityTracker
from quorumgossip.types import (
    Candidate,
    Membership,
    NodeState,
    PeerIndex,
    RoundOutcome,
    Transaction,
)

LOGGER = logging.getLogger(__name__)


class QuorumConsensusNode:
    """A node that only carries forward transactions its followees corroborate.

    Each round the node counts, per transaction, the distinct trusted followees
    that proposed it and keeps the transactions whose support reaches a quorum
    of the active followees. The required fraction grows linearly from
    ``alpha_start`` to ``alpha_end`` over the configured number of rounds.
    Followees that stay silent for a round are excluded permanently.
    """

    def __init__(
        self,
        p_graph: float,
        p_malicious: float,
        p_tx_distribution: float,
        num_rounds: int,
        *,
        name: str = "",
    ) -> None:
        """Create a node for a simulation with the given estimates.

        Args:
            p_graph: Estimated follow-graph density.
            p_malicious: Estimated fraction of malicious peers.
            p_tx_distribution: Estimated fraction of seeds each node starts with.
            num_rounds: Total rounds the simulation will run (clamped to >= 1).
            name: Optional label used in log messages.
        """
        self.p_graph = p_graph
        self.p_malicious = p_malicious
        self.p_tx_distribution = p_tx_distribution
        self.num_rounds = max(1, int(num_rounds))
        self.name = name

        self._alpha_start, self._alpha_end = quorum_bounds(p_malicious)
        self._tracker = PeerReliabilityTracker()
        self._beliefs: Set[Transaction] = set()
        self._round = 0
        self._state = NodeState.UNINITIALIZED
        self._last_round: Optional[RoundOutcome] = None

    # ----------------------------------------------------------------------------------
    # Read-only views
    # ----------------------------------------------------------------------------------
    @property
    def alpha_start(self) -> float:
        return self._alpha_start

    @property
    def alpha_end(self) -> float:
        return self._alpha_end

    @property
    def round(self) -> int:
        """Number of completed ``receive_from_followees`` calls."""
        return self._round

    @property
    def state(self) -> NodeState:
        return self._state

    @property
    def tracker(self) -> PeerReliabilityTracker:
        return self._tracker

    @property
    def total_followees(self) -> int:
        return self._tracker.total_followees

    @property
    def active_followees(self) -> int:
        return self._tracker.active_count()

    @property
    def beliefs(self) -> FrozenSet[Transaction]:
        return frozenset(self._beliefs)

    @property
    def last_round(self) -> Optional[RoundOutcome]:
        """Outcome of the most recent round, or None before the first one."""
        return self._last_round

    def alpha_for_round(self, round_index: int) -> float:
        """Return the acceptance fraction used at ``round_index``."""
        progress = round_progress(round_index, self.num_rounds)
        return interpolate_alpha(self._alpha_start, self._alpha_end, progress)

    # ----------------------------------------------------------------------------------
    # Node protocol
    # ----------------------------------------------------------------------------------
    def set_followees(self, membership: Membership) -> None:
        """Initialise reliability tracking for the given membership vector."""
        self._tracker.initialize(membership)
        LOGGER.debug("Node %s follows %s peers", self.name, self._tracker.total_followees)

    def seed_pending_transactions(self, transactions: Optional[Iterable[Transaction]]) -> None:
        """Merge the initial transactions into the belief set."""
        if transactions is not None:
            self._beliefs.update(transactions)
        if self._state is NodeState.UNINITIALIZED:
            self._state = NodeState.SEEDED

    def send_to_followers(self) -> Set[Transaction]:
        """Return the current belief set for broadcast."""
        return set(self._beliefs)

    def receive_from_followees(self, candidates: Optional[Iterable[Candidate]]) -> None:
        """Consume this round's candidates and compute the next belief set."""
        self._state = NodeState.ROUND_ACTIVE
        round_index = self._round
        alpha = self.alpha_for_round(round_index)

        if self._tracker.total_followees == 0:
            self._finish_round(
                RoundOutcome(
                    round=round_index,
                    alpha=alpha,
                    threshold=required_quorum_count(alpha, 0),
                    active_followees=0,
                    newly_excluded=(),
                    candidates_considered=0,
                    accepted=0,
                    retained_fallback=False,
                    beliefs=frozenset(self._beliefs),
                )
            )
            return

        support: Dict[Transaction, Set[PeerIndex]] = defaultdict(set)
        considered = 0
        for candidate in candidates or ():
            sender = candidate.sender
            if not self._tracker.is_trusted(sender):
                continue
            self._tracker.record_spoke(sender)
            support[candidate.tx].add(sender)
            considered += 1

        newly_excluded = self._tracker.finalize_round()
        if newly_excluded:
            LOGGER.info(
                "Node %s excluded silent followees %s at round %s",
                self.name,
                list(newly_excluded),
                round_index,
            )

        active = self._tracker.active_count()
        threshold = required_quorum_count(alpha, active)
        accepted = supported_transactions(support, threshold)

        retained = not support and bool(self._beliefs)
        if not retained:
            self._beliefs = accepted

        self._finish_round(
            RoundOutcome(
                round=round_index,
                alpha=alpha,
                threshold=threshold,
                active_followees=active,
                newly_excluded=newly_excluded,
                candidates_considered=considered,
                accepted=len(accepted),
                retained_fallback=retained,
                beliefs=frozenset(self._beliefs),
            )
        )

    def _finish_round(self, outcome: RoundOutcome) -> None:
        self._last_round = outcome
        self._round += 1
        LOGGER.debug(
            "Node %s round %s: alpha=%.3f threshold=%s active=%s beliefs=%s%s",
            self.name,
            outcome.round,
            outcome.alpha,
            outcome.threshold,
            outcome.active_followees,
            len(outcome.beliefs),
            " (retained)" if outcome.retained_fallback else "",
        )


__all__ = ["QuorumConsensusNode"]
