"""Round-driven simulation of a gossip network of compliant and adversarial nodes.

Every round has two phases separated by a hard barrier: all nodes emit first,
then every inbox is delivered along the follow graph and processed. Inbox
processing may fan out over a thread pool because nodes never share state.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from math import floor
from typing import Dict, Iterable, List, Optional, Sequence, Set

import numpy as np

from quorumgossip.config import SimulationSettings
from quorumgossip.consensus.base import Node
from quorumgossip.consensus.node import QuorumConsensusNode
from quorumgossip.metrics import RoundMetrics
from quorumgossip.simulation.adversary import SimpleMaliciousNode
from quorumgossip.simulation.evaluation import AgreementReport, evaluate_agreement
from quorumgossip.simulation.graph import build_follow_graph, followees_of
from quorumgossip.simulation.seeding import assign_initial_sets, generate_seed_transactions
from quorumgossip.types import Candidate, Transaction

LOGGER = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Everything a finished run produced."""

    final_sets: List[Set[Transaction]]
    compliant_indices: List[int]
    report: AgreementReport
    metrics: RoundMetrics

    @property
    def compliant_sets(self) -> List[Set[Transaction]]:
        return [self.final_sets[i] for i in self.compliant_indices]


class Simulation:
    """Drive ``num_rounds`` synchronous rounds over a fixed follow graph."""

    def __init__(
        self,
        nodes: Sequence[Node],
        follow: np.ndarray,
        *,
        num_rounds: int,
        initial_sets: Optional[Sequence[Iterable[Transaction]]] = None,
        seed_ids: Iterable[int] = (),
        agreement_ratio: float = 0.75,
        workers: int = 1,
    ) -> None:
        """Wire the nodes to the graph and hand out their initial sets.

        Args:
            nodes: One node per graph index.
            follow: Boolean matrix, ``follow[j, i]`` meaning ``i`` follows ``j``.
            num_rounds: Rounds executed by :meth:`run`.
            initial_sets: Optional starting transactions per node.
            seed_ids: Identifiers treated as valid when scoring agreement.
            agreement_ratio: Share of compliant nodes that must agree.
            workers: Threads used for inbox processing; 1 runs inline.

        Raises:
            ValueError: If the graph, node list and initial sets disagree in size
                or ``num_rounds``/``workers`` are not positive.
        """
        n = len(nodes)
        if follow.shape != (n, n):
            raise ValueError(f"follow graph shape {follow.shape} does not match {n} nodes")
        if initial_sets is not None and len(initial_sets) != n:
            raise ValueError("initial_sets must provide one entry per node")
        if num_rounds < 1:
            raise ValueError("num_rounds must be positive")
        if workers < 1:
            raise ValueError("workers must be positive")

        self.nodes = list(nodes)
        self.follow = np.asarray(follow, dtype=bool)
        self.num_rounds = num_rounds
        self.seed_ids = frozenset(seed_ids)
        self.agreement_ratio = agreement_ratio
        self.workers = workers
        self.round = 0
        self.metrics = RoundMetrics(run_label=f"{n}-nodes")
        self._senders_of = [[int(j) for j in np.flatnonzero(self.follow[:, i])] for i in range(n)]
        self._compliant: Dict[int, QuorumConsensusNode] = {
            i: node for i, node in enumerate(self.nodes) if isinstance(node, QuorumConsensusNode)
        }

        for i, node in enumerate(self.nodes):
            node.set_followees(followees_of(self.follow, i))
        for i, node in enumerate(self.nodes):
            node.seed_pending_transactions(initial_sets[i] if initial_sets is not None else set())

    @classmethod
    def from_settings(cls, settings: SimulationSettings) -> "Simulation":
        """Build the standard scenario: adversaries first, then compliant nodes."""
        n = settings.num_nodes
        malicious_count = int(floor(settings.p_malicious * n))
        nodes: List[Node] = []
        for i in range(n):
            if i < malicious_count:
                nodes.append(SimpleMaliciousNode(seed=settings.adversary_seed + i))
            else:
                nodes.append(
                    QuorumConsensusNode(
                        settings.p_graph,
                        settings.p_malicious,
                        settings.p_tx_distribution,
                        settings.num_rounds,
                        name=f"node{i}",
                    )
                )

        rng = np.random.default_rng(settings.graph_seed)
        follow = build_follow_graph(n, settings.p_graph, rng)
        seeds = generate_seed_transactions(settings.p_tx_distribution)
        initial = assign_initial_sets(n, seeds, rng, coverage=settings.seed_coverage)
        return cls(
            nodes,
            follow,
            num_rounds=settings.num_rounds,
            initial_sets=initial,
            seed_ids=[tx.id for tx in seeds],
            agreement_ratio=settings.agreement_ratio,
            workers=settings.workers,
        )

    @property
    def compliant_indices(self) -> List[int]:
        return list(self._compliant)

    @property
    def compliant_nodes(self) -> Dict[int, QuorumConsensusNode]:
        """Compliant nodes keyed by graph index."""
        return dict(self._compliant)

    def inbox_for(self, node: int, proposals: Sequence[Set[Transaction]]) -> Set[Candidate]:
        """Return the candidates ``node`` receives given every node's proposals."""
        return {Candidate(tx, j) for j in self._senders_of[node] for tx in proposals[j]}

    def step(self, executor: Optional[ThreadPoolExecutor] = None) -> None:
        """Run one emit/deliver/receive round."""
        proposals = [node.send_to_followers() for node in self.nodes]
        inboxes = [self.inbox_for(i, proposals) for i in range(len(self.nodes))]

        def deliver(i: int) -> None:
            self.nodes[i].receive_from_followees(inboxes[i])

        indices = range(len(self.nodes))
        if executor is None:
            for i in indices:
                deliver(i)
        else:
            # list() waits for every node, which is the round barrier.
            list(executor.map(deliver, indices))

        for node in self._compliant.values():
            self.metrics.record(node.last_round)
        LOGGER.debug("Round %s delivered %s candidates", self.round, sum(len(b) for b in inboxes))
        self.round += 1

    def run(self) -> SimulationResult:
        """Run all remaining rounds and score the compliant nodes."""
        LOGGER.info("Starting simulation: %s nodes, %s rounds", len(self.nodes), self.num_rounds)
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                while self.round < self.num_rounds:
                    self.step(executor)
        else:
            while self.round < self.num_rounds:
                self.step()

        final_sets = [node.send_to_followers() for node in self.nodes]
        compliant = self.compliant_indices
        report = evaluate_agreement(
            [final_sets[i] for i in compliant],
            self.seed_ids,
            agreement_ratio=self.agreement_ratio,
        )
        LOGGER.info(
            "Simulation finished: cluster %s/%s, %s agreed transactions",
            report.largest_cluster,
            report.compliant_nodes,
            len(report.agreed_ids),
        )
        return SimulationResult(
            final_sets=final_sets,
            compliant_indices=compliant,
            report=report,
            metrics=self.metrics,
        )


__all__ = ["Simulation", "SimulationResult"]
