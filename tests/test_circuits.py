"""Tests for topologies, circuit builders and the QAOA helpers."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import dense_expectation
from pauli_surrogate.circuits import (
    bricklayer_topology,
    canonical_edge,
    efficient_su2_circuit,
    get_parameter_indices,
    hardware_efficient_circuit,
    heisenberg_trotter_circuit,
    maxcut_observable,
    qaoa_circuit,
    qaoa_parameters,
    rectangle_topology,
    ring_chord_edges,
    staircase_topology,
    su4_circuit,
    tfi_trotter_circuit,
    tqa_init,
)
from pauli_surrogate.gates import CliffordGate, PauliRotation, count_parameters
from pauli_surrogate.pauli_sum import overlap_with_zero
from pauli_surrogate.propagation import propagate
from pauli_surrogate.surrogate import compile_surrogate
from pauli_surrogate.truncation import NO_TRUNCATION


class TestTopologies:
    @pytest.mark.parametrize(
        "n, periodic, expected",
        [
            (1, False, []),
            (2, True, [(0, 1)]),
            (4, False, [(0, 1), (2, 3), (1, 2)]),
            (5, False, [(0, 1), (2, 3), (1, 2), (3, 4)]),
            (4, True, [(0, 1), (2, 3), (1, 2), (3, 0)]),
            (5, True, [(0, 1), (2, 3), (4, 0), (1, 2), (3, 4)]),
        ],
    )
    def test_bricklayer(self, n, periodic, expected):
        assert bricklayer_topology(n, periodic) == expected

    def test_staircase(self):
        assert staircase_topology(4) == [(0, 1), (1, 2), (2, 3)]
        assert staircase_topology(4, periodic=True) == [(0, 1), (1, 2), (2, 3), (3, 0)]

    def test_rectangle(self):
        assert rectangle_topology(2, 2) == [(0, 2), (0, 1), (1, 3), (2, 3)]
        # wrapping a 2x2 grid adds nothing new
        assert rectangle_topology(2, 2, periodic=True) == rectangle_topology(2, 2)

        grid = rectangle_topology(3, 3, periodic=True)
        assert len(grid) == 18
        assert len(set(grid)) == 18
        assert {(0, 6), (2, 8), (0, 2), (6, 8)} <= set(grid)


class TestBuilders:
    def test_hardware_efficient(self):
        circuit = hardware_efficient_circuit(4, 2)
        assert count_parameters(circuit) == 30
        assert [g.pauli for g in circuit[:3]] == ["X", "Z", "X"]
        assert circuit[12].pauli == "YY" and circuit[12].qubits == [0, 1]

    def test_efficient_su2(self):
        circuit = efficient_su2_circuit(4, 1)
        assert count_parameters(circuit) == 8
        cnots = [g for g in circuit if isinstance(g, CliffordGate)]
        assert [g.qubits for g in cnots] == [[0, 1], [2, 3], [1, 2]]

    @pytest.mark.parametrize("start_with_zz", [True, False])
    def test_tfi_trotter(self, start_with_zz):
        circuit = tfi_trotter_circuit(4, 3, start_with_zz=start_with_zz)
        zz = [g for g in circuit if g.pauli == "ZZ"]
        x = [g for g in circuit if g.pauli == "X"]
        assert len(zz) == 9
        assert len(x) == 12
        first, last = ("ZZ", "X") if start_with_zz else ("X", "ZZ")
        assert circuit[0].pauli == first
        assert circuit[-1].pauli == last

    def test_heisenberg_trotter(self):
        circuit = heisenberg_trotter_circuit(3, 2)
        assert count_parameters(circuit) == 12
        assert [g.pauli for g in circuit[:6]] == ["XX", "XX", "YY", "YY", "ZZ", "ZZ"]

    def test_su4_block(self):
        circuit = su4_circuit(2, 1)
        assert count_parameters(circuit) == 15
        assert all(isinstance(g, PauliRotation) for g in circuit)

    def test_builders_run_through_propagation(self, rng):
        circuit = tfi_trotter_circuit(3, 2)
        obs = maxcut_observable(3, [(0, 1), (1, 2)])
        thetas = rng.uniform(-1.0, 1.0, size=count_parameters(circuit))
        out = propagate(circuit, obs, thetas, truncation=NO_TRUNCATION)
        assert overlap_with_zero(out) == pytest.approx(dense_expectation(circuit, obs, thetas), abs=1e-10)


class TestQAOA:
    def test_canonical_edge(self):
        assert canonical_edge(3, 1) == (1, 3)
        with pytest.raises(ValueError):
            canonical_edge(2, 2)

    def test_ring_chord_edges(self):
        assert len(ring_chord_edges(10)) == 20
        # chords that coincide with ring edges collapse
        assert ring_chord_edges(4) == [(0, 1), (0, 3), (1, 2), (2, 3)]
        assert len(ring_chord_edges(4, chord_shift=2)) == 6
        with pytest.raises(ValueError):
            ring_chord_edges(5, chord_shift=5)
        with pytest.raises(ValueError):
            ring_chord_edges(1)

    def test_maxcut_observable(self):
        obs = maxcut_observable(3, [(0, 1), (1, 2)])
        assert obs.topaulistrings() == {"ZZI": 1.0, "IZZ": 1.0}

    def test_qaoa_parameters(self):
        thetas = qaoa_parameters([0.1, 0.2], [0.3, 0.4], n_edges=2, n_qubits=3)
        assert thetas.tolist() == [0.1, 0.1, 0.3, 0.3, 0.3, 0.2, 0.2, 0.4, 0.4, 0.4]
        with pytest.raises(ValueError):
            qaoa_parameters([0.1], [0.3, 0.4], 2, 3)

    def test_tqa_init(self):
        gammas, betas = tqa_init(4, 0.8)
        np.testing.assert_allclose(gammas, [0.2, 0.4, 0.6, 0.8])
        np.testing.assert_allclose(betas, [0.6, 0.4, 0.2, 0.0], atol=1e-15)
        with pytest.raises(ValueError):
            tqa_init(0, 0.8)
        with pytest.raises(ValueError):
            tqa_init(2, 0.0)

    def test_initial_state_has_zero_cut_energy(self):
        edges = ring_chord_edges(4, chord_shift=2)
        out = propagate(qaoa_circuit(4, edges, 0), maxcut_observable(4, edges))
        assert overlap_with_zero(out) == pytest.approx(0.0, abs=1e-12)

    def test_qaoa_matches_dense(self):
        n = 4
        edges = ring_chord_edges(n, chord_shift=2)
        circuit = qaoa_circuit(n, edges, 2)
        obs = maxcut_observable(n, edges)
        gammas, betas = tqa_init(2, 0.75)
        thetas = qaoa_parameters(gammas, betas, len(edges), n)
        assert len(thetas) == count_parameters(circuit)

        expected = dense_expectation(circuit, obs, thetas)
        out = propagate(circuit, obs, thetas, truncation=NO_TRUNCATION)
        assert overlap_with_zero(out) == pytest.approx(expected, abs=1e-10)
        compiled = compile_surrogate(circuit, obs)
        assert compiled.expectation(thetas) == pytest.approx(expected, abs=1e-10)


class TestParameterIndices:
    def test_by_pauli_and_qubits(self):
        edges = [(0, 1), (1, 2)]
        circuit = qaoa_circuit(3, edges, 2)
        assert get_parameter_indices(circuit) == list(range(10))
        assert get_parameter_indices(circuit, pauli="zz") == [0, 1, 5, 6]
        assert get_parameter_indices(circuit, pauli="X", qubits=[2]) == [4, 9]
        assert get_parameter_indices(circuit, qubits=[1, 2]) == [1, 6]

    def test_by_gate_class(self):
        circuit = [CliffordGate("H", [0]), PauliRotation("X", [0])]
        assert get_parameter_indices(circuit, CliffordGate) == []
        assert get_parameter_indices(circuit, PauliRotation) == [0]
