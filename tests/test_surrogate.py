"""Tests for compiling circuits into surrogate graphs."""

from __future__ import annotations

import math

import numpy as np
import pytest

from conftest import dense_expectation, random_circuit, random_observable
from pauli_surrogate.coefficients import tonumber
from pauli_surrogate.errors import ConfigurationError, ContractError, ShapeError
from pauli_surrogate.gates import CliffordGate, PauliRotation, TGate, TransferMapGate
from pauli_surrogate.noise import DepolarizingNoise
from pauli_surrogate.pauli_sum import PauliSum, overlap_with_zero
from pauli_surrogate.propagation import propagate
from pauli_surrogate.surrogate import (
    TRIG_COS,
    TRIG_IDENTITY,
    TRIG_SIN,
    InternalNode,
    LeafNode,
    NodePathProperties,
    SurrogateGraph,
    compile_surrogate,
)
from pauli_surrogate.truncation import NO_TRUNCATION


def test_two_gate_circuit_bit_identical_at_zero():
    """Deferred evaluation at (0, 0) reproduces direct propagation exactly."""
    obs = PauliSum.from_dict(1, {"Z": 1.0})
    circuit = [PauliRotation("X", [0]), PauliRotation("Y", [0])]
    thetas = [0.0, 0.0]

    compiled = compile_surrogate(circuit, obs)
    numeric = propagate(circuit, obs, thetas, truncation=NO_TRUNCATION)

    values = compiled.evaluate_psum(thetas)
    # graph nodes are kept at exact zero, numeric coefficients are not
    assert set(numeric.terms) <= set(values.terms)
    for term, value in values.items():
        assert value == numeric.get(term, 0.0)
    assert compiled.evaluate(thetas) == sum(numeric.terms.values())
    assert compiled.expectation(thetas) == overlap_with_zero(numeric)


@pytest.mark.parametrize("n_qubits", [2, 3, 5])
def test_matches_numeric_propagation(rng, n_qubits):
    for _ in range(3):
        circuit = random_circuit(rng, n_qubits, 14)
        obs = random_observable(rng, n_qubits)
        compiled = compile_surrogate(circuit, obs)
        for _ in range(3):
            thetas = rng.uniform(-np.pi, np.pi, size=compiled.n_params)
            numeric = propagate(circuit, obs, thetas, truncation=NO_TRUNCATION)
            values = compiled.evaluate_psum(thetas)
            for term, value in values.items():
                assert value == pytest.approx(numeric.get(term, 0.0), abs=1e-10)
            assert compiled.expectation(thetas) == pytest.approx(
                dense_expectation(circuit, obs, thetas), abs=1e-10
            )


def test_t_gates_are_rejected():
    obs = PauliSum.from_dict(1, {"Z": 1.0})
    with pytest.raises(ConfigurationError):
        compile_surrogate([TGate(0)], obs)


@pytest.mark.parametrize(
    "gate",
    [
        DepolarizingNoise(0, 0.1),
        TransferMapGate([0], [[(0, 1.0)], [(1, 1.0)], [(2, 1.0)], [(3, 1.0)]]),
    ],
)
def test_unsupported_gates_are_rejected(gate):
    obs = PauliSum.from_dict(1, {"Z": 1.0})
    with pytest.raises(ConfigurationError):
        compile_surrogate([PauliRotation("X", [0]), gate], obs)


def test_graph_coefficients_rejected_by_numeric_handlers():
    """Graph-node coefficients cannot pass through noise, even through propagate."""
    graph = SurrogateGraph(0)
    psum = PauliSum(1, {3: NodePathProperties(graph, graph.add_leaf(3, 1.0))})
    with pytest.raises(ConfigurationError):
        propagate([DepolarizingNoise(0, 0.1)], psum)


class TestTruncation:
    def test_max_weight_applies(self):
        obs = PauliSum.from_dict(3, {"ZII": 1.0})
        circuit = [PauliRotation("XX", [0, 1]), PauliRotation("YY", [1, 2])]
        compiled = compile_surrogate(circuit, obs, max_weight=1)
        assert set(compiled.psum.topaulistrings()) == {"ZII"}

    def test_min_abs_coeff_is_ignored(self):
        obs = PauliSum.from_dict(1, {"Z": 1e-12})
        compiled = compile_surrogate([PauliRotation("X", [0])], obs, min_abs_coeff=1e-3)
        assert len(compiled.psum) == 2

    def test_max_freq_applies(self):
        obs = PauliSum.from_dict(1, {"Z": 1.0})
        circuit = [PauliRotation("X", [0]), PauliRotation("Y", [0])]
        compiled = compile_surrogate(circuit, obs, max_freq=1)
        assert set(compiled.psum.topaulistrings()) == {"X"}


class TestGraph:
    def test_leaf_per_observable_term(self):
        obs = PauliSum.from_dict(2, {"ZI": 0.5, "IZ": -1.0})
        compiled = compile_surrogate([CliffordGate("H", [0])], obs)
        leaves = [n for n in compiled.graph.nodes if isinstance(n, LeafNode)]
        assert sorted(leaf.coefficient for leaf in leaves) == [-1.0, 0.5]
        assert compiled.psum.topaulistrings().keys() == {"XI", "IZ"}

    def test_clifford_sign_goes_into_the_node(self):
        obs = PauliSum.from_dict(1, {"Y": 1.0})
        compiled = compile_surrogate([CliffordGate("H", [0])], obs)
        assert compiled.evaluate_psum([]).topaulistrings() == {"Y": -1.0}

    def test_rotation_merge_compacts_nodes(self):
        """Two input terms reaching the same output term share one node."""
        obs = PauliSum.from_dict(1, {"Z": 1.0, "Y": 1.0})
        compiled = compile_surrogate([PauliRotation("X", [0])], obs)
        internals = [n for n in compiled.graph.nodes if isinstance(n, InternalNode)]
        # cos Z and sin Y merge into one node, as do cos Y and sin Z
        assert len(compiled.psum) == 2
        roots = [compiled.graph.nodes[i] for i in compiled.top_level_nodes()]
        assert all(len(node.parents) == 2 for node in roots)
        assert len(internals) == 4

        theta = 0.3
        values = compiled.evaluate_psum([theta]).topaulistrings()
        assert values["Z"] == pytest.approx(math.cos(theta) - math.sin(theta))
        assert values["Y"] == pytest.approx(math.cos(theta) + math.sin(theta))

    def test_merge_nodes(self):
        graph = SurrogateGraph(2)
        a = graph.add_leaf(1, 1.0)
        b = graph.add_leaf(1, 2.0)
        assert graph.merge_nodes(a, b) == a
        assert graph.nodes[a].coefficient == 3.0

        c = graph.add_internal([a], [TRIG_COS], [1], 0)
        d = graph.add_leaf(2, 1.0)
        assert graph.merge_nodes(d, c) == c
        assert graph.nodes[c].trig_inds == [TRIG_COS, TRIG_IDENTITY]

        e = graph.add_internal([d], [TRIG_SIN], [-1], 0)
        assert graph.merge_nodes(c, e) == c
        assert graph.nodes[c].parents == [a, d, d]

        f = graph.add_internal([a], [TRIG_SIN], [1], 1)
        g = graph.merge_nodes(c, f)
        assert g not in (c, f)
        assert graph.nodes[g].parents == [c, f]
        assert graph.nodes[g].trig_inds == [TRIG_IDENTITY, TRIG_IDENTITY]

    def test_parents_must_exist(self):
        graph = SurrogateGraph(1)
        with pytest.raises(ValueError):
            graph.add_internal([0], [TRIG_COS], [1], 0)
        leaf = graph.add_leaf(0, 1.0)
        with pytest.raises(ValueError):
            graph.add_internal([leaf], [TRIG_COS, TRIG_SIN], [1], 0)


class TestNodeCoefficient:
    def test_scale_only_by_sign(self):
        graph = SurrogateGraph(0)
        coeff = NodePathProperties(graph, graph.add_leaf(0, 2.0))
        assert coeff.scale(-1) is coeff
        assert graph.nodes[coeff.node].coefficient == -2.0
        with pytest.raises(ContractError):
            coeff.scale(0.5)

    def test_tonumber_needs_evaluation(self):
        obs = PauliSum.from_dict(1, {"Z": 1.0})
        compiled = compile_surrogate([PauliRotation("X", [0])], obs)
        coeff = next(iter(compiled.psum.terms.values()))
        with pytest.raises(ValueError):
            tonumber(coeff)
        compiled.evaluate([0.2])
        assert isinstance(tonumber(coeff), float)

    def test_merge_across_graphs_fails(self):
        g1, g2 = SurrogateGraph(0), SurrogateGraph(0)
        a = NodePathProperties(g1, g1.add_leaf(0, 1.0))
        b = NodePathProperties(g2, g2.add_leaf(0, 1.0))
        with pytest.raises(ContractError):
            a.merge(b)

    def test_counters(self):
        obs = PauliSum.from_dict(1, {"Z": 1.0})
        compiled = compile_surrogate([PauliRotation("X", [0]), PauliRotation("Y", [0])], obs)
        counters = {
            pauli: (c.ncos, c.nsins, c.freq) for pauli, c in compiled.psum.topaulistrings().items()
        }
        assert counters == {"Z": (2, 0, 2), "Y": (1, 1, 2), "X": (0, 1, 1)}


class TestFilters:
    def test_zero_filter_and_prune(self, rng):
        circuit = random_circuit(rng, 4, 16)
        obs = random_observable(rng, 4)
        compiled = compile_surrogate(circuit, obs)
        filtered = compiled.zero_filter()
        assert filtered.graph is compiled.graph
        pruned = filtered.prune()
        assert len(pruned.graph) <= len(compiled.graph)

        thetas = rng.uniform(-1.0, 1.0, size=compiled.n_params)
        expected = compiled.expectation(thetas)
        assert filtered.evaluate(thetas) == pytest.approx(expected, abs=1e-12)
        assert pruned.evaluate(thetas) == pytest.approx(expected, abs=1e-12)

    def test_evaluate_shape_error(self):
        compiled = compile_surrogate([PauliRotation("X", [0])], PauliSum.from_dict(1, {"Z": 1.0}))
        with pytest.raises(ShapeError):
            compiled.evaluate([0.1, 0.2])
