"""Tests for the simulation harness: graphs, seeding, adversaries, driver and scoring."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import numpy as np
import pytest

from quorumgossip.config import SimulationSettings
from quorumgossip.consensus.node import QuorumConsensusNode
from quorumgossip.simulation import (
    SilentNode,
    SimpleMaliciousNode,
    Simulation,
    assign_initial_sets,
    build_follow_graph,
    evaluate_agreement,
    followees_of,
    generate_seed_transactions,
)
from quorumgossip.types import Candidate, Transaction

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from _pytest.capture import CaptureFixture
    from _pytest.fixtures import FixtureRequest
    from _pytest.logging import LogCaptureFixture
    from _pytest.monkeypatch import MonkeyPatch
    from pytest_mock.plugin import MockerFixture


def _complete_graph(n: int) -> np.ndarray:
    follow = np.ones((n, n), dtype=bool)
    np.fill_diagonal(follow, False)
    return follow


def _settings(**overrides: object) -> SimulationSettings:
    base = dict(num_nodes=20, p_graph=0.3, p_malicious=0.2, p_tx_distribution=0.05, num_rounds=6)
    base.update(overrides)
    return SimulationSettings(**base)


def test_follow_graph_has_no_self_edges() -> None:
    follow = build_follow_graph(15, 0.5, np.random.default_rng(1))
    assert follow.shape == (15, 15)
    assert follow.dtype == bool
    assert not follow.diagonal().any()


def test_follow_graph_extremes() -> None:
    rng = np.random.default_rng(0)
    assert not build_follow_graph(6, 0.0, rng).any()
    assert (build_follow_graph(6, 1.0, rng) == _complete_graph(6)).all()


def test_followees_of_reads_column() -> None:
    follow = np.zeros((3, 3), dtype=bool)
    follow[0, 2] = True  # node 2 follows node 0
    follow[1, 2] = True
    assert followees_of(follow, 2) == [True, True, False]
    assert followees_of(follow, 0) == [False, False, False]


def test_generate_seed_transactions() -> None:
    seeds = generate_seed_transactions(0.05)
    assert [tx.id for tx in seeds] == list(range(1, 51))
    assert generate_seed_transactions(0.0) == [Transaction(1)]


def test_assign_initial_sets_coverage() -> None:
    seeds = generate_seed_transactions(0.05)
    rng = np.random.default_rng(3)

    full = assign_initial_sets(10, seeds, rng, coverage=1.0)
    assert all(s and s <= set(seeds) for s in full)
    assert all(len(s) <= len(seeds) // 10 + 1 for s in full)

    none = assign_initial_sets(10, seeds, rng, coverage=0.0)
    assert none == [set()] * 10

    with pytest.raises(ValueError):
        assign_initial_sets(3, [], rng)


def test_simple_malicious_node_alternates() -> None:
    node = SimpleMaliciousNode(seed=42)
    node.set_followees([True, False])
    node.seed_pending_transactions({Transaction(1)})

    spam = node.send_to_followers()
    assert 1 <= len(spam) <= 3
    assert all(1_000_000 <= tx.id < 2_000_000 for tx in spam)

    node.receive_from_followees({Candidate(Transaction(1), 0)})
    assert node.send_to_followers() == set()
    node.receive_from_followees(set())
    assert node.send_to_followers()


def test_silent_node_never_speaks() -> None:
    node = SilentNode()
    node.seed_pending_transactions({Transaction(1)})
    node.receive_from_followees(None)
    assert node.send_to_followers() == set()


def test_evaluate_agreement_clusters_identical_sets() -> None:
    a = {Transaction(1), Transaction(2)}
    b = {Transaction(1)}
    report = evaluate_agreement([a, set(a), set(a), b], seed_ids=[1, 2, 3])

    assert report.compliant_nodes == 4
    assert report.largest_cluster == 3
    assert report.agreed_ids == frozenset({1, 2})
    assert report.majority_agree and report.non_empty and report.all_valid
    assert report.passed
    assert report.to_dict()["agreed_ids"] == [1, 2]


def test_evaluate_agreement_flags_invalid_and_empty() -> None:
    spam = {Transaction(1_500_000)}
    report = evaluate_agreement([spam, spam], seed_ids=[1])
    assert report.majority_agree and not report.all_valid and not report.passed

    empty = evaluate_agreement([set(), set(), {Transaction(1)}], seed_ids=[1])
    assert not empty.non_empty
    assert not empty.majority_agree  # 2 < ceil(0.75 * 3)

    assert not evaluate_agreement([], seed_ids=[1]).passed


def test_simulation_rejects_mismatched_graph() -> None:
    nodes = [QuorumConsensusNode(0.2, 0.3, 0.05, 3) for _ in range(3)]
    with pytest.raises(ValueError):
        Simulation(nodes, _complete_graph(4), num_rounds=3)
    with pytest.raises(ValueError):
        Simulation(nodes, _complete_graph(3), num_rounds=3, initial_sets=[set()])
    with pytest.raises(ValueError):
        Simulation(nodes, _complete_graph(3), num_rounds=0)


def test_honest_network_converges_despite_silent_peer() -> None:
    """Compliant nodes on a complete graph exclude the silent peer and keep the seeds."""
    seeds = {Transaction(1), Transaction(2)}
    nodes: List[object] = [SilentNode()] + [QuorumConsensusNode(1.0, 0.2, 0.05, 3) for _ in range(4)]
    sim = Simulation(
        nodes,  # type: ignore[arg-type]
        _complete_graph(5),
        num_rounds=3,
        initial_sets=[set()] + [set(seeds) for _ in range(4)],
        seed_ids=[1, 2],
    )
    result = sim.run()

    assert result.compliant_indices == [1, 2, 3, 4]
    assert all(s == seeds for s in result.compliant_sets)
    assert result.report.passed
    for node in nodes[1:]:
        assert node.tracker.excluded == frozenset({0})  # type: ignore[attr-defined]
    assert result.metrics.rounds == [0, 1, 2]
    assert result.metrics.summary(0).excluded_this_round == 4


def test_inbox_follows_graph_edges() -> None:
    follow = np.zeros((3, 3), dtype=bool)
    follow[0, 2] = True
    nodes = [SilentNode(), SilentNode(), SilentNode()]
    sim = Simulation(nodes, follow, num_rounds=1)  # type: ignore[arg-type]
    proposals = [{Transaction(5)}, {Transaction(6)}, {Transaction(7)}]

    assert sim.inbox_for(2, proposals) == {Candidate(Transaction(5), 0)}
    assert sim.inbox_for(0, proposals) == set()


def test_simulation_is_deterministic() -> None:
    first = Simulation.from_settings(_settings()).run()
    second = Simulation.from_settings(_settings()).run()
    assert first.final_sets == second.final_sets
    assert first.report == second.report


def test_thread_pool_matches_inline_execution() -> None:
    """Fanning inbox processing out over threads keeps the round barrier."""
    inline = Simulation.from_settings(_settings(workers=1)).run()
    pooled = Simulation.from_settings(_settings(workers=4)).run()
    assert inline.final_sets == pooled.final_sets
    assert inline.metrics.snapshot() == pooled.metrics.snapshot()


def test_from_settings_places_adversaries_first() -> None:
    sim = Simulation.from_settings(_settings(num_nodes=10, p_malicious=0.3))
    assert all(isinstance(n, SimpleMaliciousNode) for n in sim.nodes[:3])
    assert sim.compliant_indices == list(range(3, 10))


def test_compliant_beliefs_never_contain_unseen_transactions(mocker: "MockerFixture") -> None:
    """Every final belief is a seed or something an adversary actually emitted."""
    sim = Simulation.from_settings(_settings())
    spies = [
        mocker.spy(node, "send_to_followers")
        for i, node in enumerate(sim.nodes)
        if i not in sim.compliant_indices
    ]

    result = sim.run()

    emitted = {tx for spy in spies for sent in spy.spy_return_list for tx in sent}
    assert all(spy.call_count == sim.num_rounds + 1 for spy in spies)
    seeds = set(generate_seed_transactions(0.05))
    for final in result.compliant_sets:
        assert final <= seeds | emitted


def test_compliant_nodes_are_resolved_once(mocker: "MockerFixture") -> None:
    """Per-round metrics come from the compliant nodes fixed at construction."""
    sim = Simulation.from_settings(_settings(num_nodes=10, p_malicious=0.3, num_rounds=3))
    compliant = sim.compliant_nodes
    assert sorted(compliant) == sim.compliant_indices
    assert all(isinstance(node, QuorumConsensusNode) for node in compliant.values())

    record = mocker.spy(sim.metrics, "record")
    sim.run()

    assert record.call_count == 3 * len(compliant)
    recorded = [call.args[0] for call in record.call_args_list]
    assert all(outcome is not None for outcome in recorded)
    assert sim.metrics.summary(2).nodes == len(compliant)
