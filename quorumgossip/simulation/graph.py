from __future__ import annotations

"""Random follow graphs.

``follow[j, i]`` is True when node ``i`` follows node ``j``, i.e. proposals
flow along the edge ``j -> i``. Self edges are never created.
"""

from typing import List

import numpy as np


def build_follow_graph(num_nodes: int, p_graph: float, rng: np.random.Generator) -> np.ndarray:
    """Draw a directed Bernoulli graph.

    Args:
        num_nodes: Number of participants.
        p_graph: Independent probability of each directed edge.
        rng: Source of randomness.

    Returns:
        A ``(num_nodes, num_nodes)`` boolean matrix with an all-False diagonal.
    """
    if num_nodes < 0:
        raise ValueError("num_nodes must be non-negative")
    follow = rng.random((num_nodes, num_nodes)) < p_graph
    np.fill_diagonal(follow, False)
    return follow


def followees_of(follow: np.ndarray, node: int) -> List[bool]:
    """Return the membership vector of peers that ``node`` follows."""
    return [bool(flag) for flag in follow[:, node]]


__all__ = ["build_follow_graph", "followees_of"]
