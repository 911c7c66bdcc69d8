"""Consensus package for quorumgossip.

Provides the node capability protocol, the followee reliability tracker, the
adaptive quorum helpers and the compliant quorum node built on them.
"""

from __future__ import annotations

from .base import Node
from .node import QuorumConsensusNode
from .quorum import (
    interpolate_alpha,
    quorum_bounds,
    required_quorum_count,
    round_progress,
    supported_transactions,
)
from .reliability import PeerReliabilityTracker

__all__ = [
    "Node",
    "QuorumConsensusNode",
    "PeerReliabilityTracker",
    "interpolate_alpha",
    "quorum_bounds",
    "required_quorum_count",
    "round_progress",
    "supported_transactions",
]
