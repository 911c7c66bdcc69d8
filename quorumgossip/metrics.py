"""Per-round metrics for quorumgossip simulations.

This module provides a lightweight, thread-safe aggregator that records the
outcome of each compliant node's round transition and summarises, per round,
belief-set sizes, active followee counts, thresholds and how often the
silence fallback fired. It can be fed from a thread pool that processes
inboxes in parallel within a round.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from quorumgossip.types import RoundOutcome


@dataclass
class RoundSummary:
    """Aggregate statistics over the compliant nodes for one round."""

    round: int
    nodes: int
    mean_beliefs: float
    min_beliefs: int
    max_beliefs: int
    mean_active_followees: float
    mean_threshold: float
    excluded_this_round: int
    fallbacks: int


class RoundMetrics:
    """Thread-safe collector of :class:`RoundOutcome` records.

    Typical usage:
    - Call :meth:`record` with each node's ``last_round`` after it processes
      its inbox.
    - Call :meth:`snapshot` at any time to fetch a dictionary ready for JSON
      serialization, or :meth:`to_csv_rows` for one row per round.
    """

    def __init__(self, *, run_label: str = "") -> None:
        self._lock = threading.Lock()
        self._run_label = run_label
        self._outcomes: Dict[int, List[RoundOutcome]] = {}

    def record(self, outcome: Optional[RoundOutcome]) -> None:
        """Store one node's outcome; ``None`` is ignored."""
        if outcome is None:
            return
        with self._lock:
            self._outcomes.setdefault(outcome.round, []).append(outcome)

    @property
    def rounds(self) -> List[int]:
        with self._lock:
            return sorted(self._outcomes)

    def summary(self, round_index: int) -> RoundSummary:
        """Summarise one round.

        Raises:
            KeyError: If nothing was recorded for ``round_index``.
        """
        with self._lock:
            outcomes = list(self._outcomes[round_index])
        beliefs = np.array([len(o.beliefs) for o in outcomes], dtype=int)
        active = np.array([o.active_followees for o in outcomes], dtype=float)
        thresholds = np.array([o.threshold for o in outcomes], dtype=float)
        return RoundSummary(
            round=round_index,
            nodes=len(outcomes),
            mean_beliefs=float(beliefs.mean()),
            min_beliefs=int(beliefs.min()),
            max_beliefs=int(beliefs.max()),
            mean_active_followees=float(active.mean()),
            mean_threshold=float(thresholds.mean()),
            excluded_this_round=sum(len(o.newly_excluded) for o in outcomes),
            fallbacks=sum(1 for o in outcomes if o.retained_fallback),
        )

    def summaries(self) -> List[RoundSummary]:
        return [self.summary(r) for r in self.rounds]

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-serialisable view of every recorded round."""
        summaries = self.summaries()
        return {
            "run_label": self._run_label,
            "rounds_recorded": len(summaries),
            "total_excluded": sum(s.excluded_this_round for s in summaries),
            "total_fallbacks": sum(s.fallbacks for s in summaries),
            "rounds": [self._summary_row(s) for s in summaries],
        }

    def to_json(self) -> str:
        return json.dumps(self.snapshot(), indent=2)

    @staticmethod
    def csv_header() -> List[str]:
        return [
            "round",
            "nodes",
            "mean_beliefs",
            "min_beliefs",
            "max_beliefs",
            "mean_active_followees",
            "mean_threshold",
            "excluded_this_round",
            "fallbacks",
        ]

    def to_csv_rows(self) -> List[List[Any]]:
        header = self.csv_header()
        return [[self._summary_row(s)[key] for key in header] for s in self.summaries()]

    @staticmethod
    def _summary_row(summary: RoundSummary) -> Dict[str, Any]:
        return {
            "round": summary.round,
            "nodes": summary.nodes,
            "mean_beliefs": round(summary.mean_beliefs, 3),
            "min_beliefs": summary.min_beliefs,
            "max_beliefs": summary.max_beliefs,
            "mean_active_followees": round(summary.mean_active_followees, 3),
            "mean_threshold": round(summary.mean_threshold, 3),
            "excluded_this_round": summary.excluded_this_round,
            "fallbacks": summary.fallbacks,
        }


__all__ = ["RoundSummary", "RoundMetrics"]
