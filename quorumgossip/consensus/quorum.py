from __future__ import annotations

"""Adaptive quorum helpers.

This module contains small, pure functions that turn the node's configuration
and round counter into an integer acceptance threshold. They are kept apart
from :class:`~quorumgossip.consensus.node.QuorumConsensusNode` so that the
schedule can be unit-tested in isolation.
"""

from math import ceil
from typing import Hashable, Mapping, Set, Tuple, TypeVar

T = TypeVar("T", bound=Hashable)

ALPHA_START_FLOOR = 0.40
ALPHA_END_FLOOR = 0.55
ALPHA_START_MARGIN = 0.05
ALPHA_END_MARGIN = 0.10


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def quorum_bounds(p_malicious: float) -> Tuple[float, float]:
    """Return the ``(alpha_start, alpha_end)`` fractions for a malicious rate.

    Args:
        p_malicious: Estimated fraction of malicious peers.

    Returns:
        The lenient starting fraction and the strict final fraction, both
        clamped into [0, 1]. The end bound never falls below the start bound.
    """
    alpha_start = _clamp(max(ALPHA_START_FLOOR, p_malicious + ALPHA_START_MARGIN))
    alpha_end = _clamp(max(ALPHA_END_FLOOR, p_malicious + ALPHA_END_MARGIN))
    return alpha_start, max(alpha_start, alpha_end)


def round_progress(round_index: int, num_rounds: int) -> float:
    """Return how far through the simulation ``round_index`` is, in [0, 1].

    Args:
        round_index: Zero-based round counter.
        num_rounds: Total configured rounds; values below 1 count as 1.

    Returns:
        1.0 for single-round runs, else ``round_index / (num_rounds - 1)``
        capped at 1.0.
    """
    if num_rounds <= 1:
        return 1.0
    return _clamp(round_index / float(num_rounds - 1))


def interpolate_alpha(alpha_start: float, alpha_end: float, progress: float) -> float:
    """Linearly interpolate the acceptance fraction for the given progress."""
    return alpha_start + (alpha_end - alpha_start) * _clamp(progress)


def required_quorum_count(alpha: float, active_followees: int) -> int:
    """Return the minimum number of distinct supporters for acceptance.

    Args:
        alpha: Fraction of active followees that must corroborate.
        active_followees: Followees not yet excluded; zero is treated as one.

    Returns:
        ``max(1, ceil(alpha * max(1, active_followees)))``.
    """
    denominator = max(1, active_followees)
    return max(1, int(ceil(alpha * denominator)))


def supported_transactions(support: Mapping[T, Set[int]], threshold: int) -> Set[T]:
    """Return every key whose distinct supporter set reaches ``threshold``."""
    return {tx for tx, supporters in support.items() if len(supporters) >= threshold}


__all__ = [
    "quorum_bounds",
    "round_progress",
    "interpolate_alpha",
    "required_quorum_count",
    "supported_transactions",
]
