"""Simulation harness used to exercise the compliant node.

Builds follow graphs, seeds transactions, runs rounds with adversarial peers
and scores the compliant nodes' final agreement.
"""

from __future__ import annotations

from .adversary import SilentNode, SimpleMaliciousNode
from .driver import Simulation, SimulationResult
from .evaluation import AgreementReport, evaluate_agreement
from .graph import build_follow_graph, followees_of
from .seeding import assign_initial_sets, generate_seed_transactions

__all__ = [
    "SilentNode",
    "SimpleMaliciousNode",
    "Simulation",
    "SimulationResult",
    "AgreementReport",
    "evaluate_agreement",
    "build_follow_graph",
    "followees_of",
    "assign_initial_sets",
    "generate_seed_transactions",
]
