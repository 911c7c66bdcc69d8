from __future__ import annotations

"""Initial transaction distribution.

Seeds are the only valid transactions in a run: ids ``1..k`` where ``k`` scales
with the transaction-distribution probability.
"""

from typing import List, Set

import numpy as np

from quorumgossip.types import Transaction

SEED_POOL_SCALE = 1000


def generate_seed_transactions(p_tx_distribution: float) -> List[Transaction]:
    """Return ``max(1, round(p_tx_distribution * 1000))`` sequential transactions."""
    count = max(1, int(round(p_tx_distribution * SEED_POOL_SCALE)))
    return [Transaction(k + 1) for k in range(count)]


def assign_initial_sets(
    num_nodes: int,
    seeds: List[Transaction],
    rng: np.random.Generator,
    *,
    coverage: float = 0.8,
) -> List[Set[Transaction]]:
    """Hand each node a random subset of the seeds.

    With probability ``coverage`` a node draws ``1 + randint(len(seeds) // 10 + 1)``
    seeds with replacement; otherwise it starts empty.

    Raises:
        ValueError: If ``seeds`` is empty.
    """
    if not seeds:
        raise ValueError("seeds must not be empty")
    max_take = max(1, len(seeds) // 10 + 1)
    initial: List[Set[Transaction]] = []
    for _ in range(num_nodes):
        chosen: Set[Transaction] = set()
        if rng.random() < coverage:
            take = 1 + int(rng.integers(max_take))
            for idx in rng.integers(len(seeds), size=take):
                chosen.add(seeds[int(idx)])
        initial.append(chosen)
    return initial


__all__ = ["generate_seed_transactions", "assign_initial_sets"]
