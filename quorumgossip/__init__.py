"""quorumgossip package.

Models a single participant in a gossip network that converges on a shared set
of transactions while some peers are silent, flooding or dishonest:

  - quorumgossip.types: transactions, candidates and round outcomes
  - quorumgossip.consensus: reliability tracking and the quorum node
  - quorumgossip.simulation: follow graphs, adversaries, round driver, scoring
  - quorumgossip.metrics / quorumgossip.plotting: per-round reporting

"""

from __future__ import annotations

# Domain types
from .types import (  # noqa: F401
    Candidate,
    NodeState,
    RoundOutcome,
    Transaction,
)

# Consensus core
from .consensus import (  # noqa: F401
    Node,
    PeerReliabilityTracker,
    QuorumConsensusNode,
)

__version__ = "0.1.0"

__all__ = [
    "Candidate",
    "NodeState",
    "RoundOutcome",
    "Transaction",
    "Node",
    "PeerReliabilityTracker",
    "QuorumConsensusNode",
]
