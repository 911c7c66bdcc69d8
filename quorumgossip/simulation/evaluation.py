from __future__ import annotations

"""Agreement scoring for finished simulations."""

from collections import Counter
from dataclasses import asdict, dataclass
from math import ceil
from typing import Any, Dict, FrozenSet, Iterable, Sequence

from quorumgossip.types import Transaction


@dataclass(frozen=True)
class AgreementReport:
    """Outcome of comparing the compliant nodes' final belief sets."""

    compliant_nodes: int
    largest_cluster: int
    agreed_ids: FrozenSet[int]
    majority_agree: bool
    non_empty: bool
    all_valid: bool

    @property
    def passed(self) -> bool:
        return self.majority_agree and self.non_empty and self.all_valid

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["agreed_ids"] = sorted(self.agreed_ids)
        data["passed"] = self.passed
        return data


def evaluate_agreement(
    final_sets: Sequence[Iterable[Transaction]],
    seed_ids: Iterable[int],
    *,
    agreement_ratio: float = 0.75,
) -> AgreementReport:
    """Cluster identical final sets and check agreement, liveness and validity.

    Args:
        final_sets: Final belief sets of the compliant nodes only.
        seed_ids: Identifiers of every valid seed transaction.
        agreement_ratio: Share of compliant nodes the largest cluster must reach.

    Returns:
        An :class:`AgreementReport`. Ties between equally large clusters go to
        the cluster seen first.
    """
    keys = [frozenset(tx.id for tx in s) for s in final_sets]
    clusters = Counter(keys)
    if clusters:
        agreed, largest = clusters.most_common(1)[0]
    else:
        agreed, largest = frozenset(), 0
    valid = frozenset(seed_ids)
    return AgreementReport(
        compliant_nodes=len(keys),
        largest_cluster=largest,
        agreed_ids=agreed,
        majority_agree=largest >= ceil(agreement_ratio * len(keys)),
        non_empty=bool(agreed),
        all_valid=agreed <= valid,
    )


__all__ = ["AgreementReport", "evaluate_agreement"]
