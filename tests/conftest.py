"""Pytest configuration and shared fixtures for pauli_surrogate tests.

This module provides:
- A deterministic numpy RNG fixture
- A dense statevector reference (numpy) for small circuits
- Fresh global Clifford/gate registries for every test
"""

import os
from typing import Optional, Sequence

import numpy as np
import pytest

from pauli_surrogate.gates import (
    CliffordGate,
    FrozenGate,
    Gate,
    PauliRotation,
    reset_clifford_map,
)
from pauli_surrogate.pauli_sum import PauliSum
from pauli_surrogate.paulis import term_to_string
from pauli_surrogate.transfermaps import clifford_matrix, pauli_matrix, pauli_rotation_matrix


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Deterministic numpy RNG; the seed can be overridden with TEST_RNG_SEED."""
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(autouse=True)
def _fresh_clifford_map():
    yield
    reset_clifford_map()


# ============================================================================
# Dense reference
# ============================================================================

def embed(gate_matrix: np.ndarray, qubits: Sequence[int], n_qubits: int) -> np.ndarray:
    """Full 2^n x 2^n matrix of a gate acting on `qubits` (qubit q = bit q)."""
    dim = 2 ** n_qubits
    k = len(qubits)
    full = np.zeros((dim, dim), dtype=np.complex128)
    for col in range(dim):
        local_in = sum(((col >> q) & 1) << j for j, q in enumerate(qubits))
        rest = col
        for q in qubits:
            rest &= ~(1 << q)
        for local_out in range(2 ** k):
            amp = gate_matrix[local_out, local_in]
            if amp == 0:
                continue
            row = rest
            for j, q in enumerate(qubits):
                row |= ((local_out >> j) & 1) << q
            full[row, col] += amp
    return full


def gate_unitary(gate: Gate, theta: Optional[float], n_qubits: int) -> np.ndarray:
    if isinstance(gate, FrozenGate):
        return gate_unitary(gate.gate, gate.parameter, n_qubits)
    if isinstance(gate, PauliRotation):
        return embed(pauli_rotation_matrix(gate.pauli, theta), gate.qubits, n_qubits)
    if isinstance(gate, CliffordGate):
        return embed(clifford_matrix(gate.symbol), gate.qubits, n_qubits)
    raise TypeError(f"No dense matrix for {gate!r}")


def circuit_unitary(circuit: Sequence[Gate], n_qubits: int, thetas=None) -> np.ndarray:
    u = np.eye(2 ** n_qubits, dtype=np.complex128)
    param_idx = 0
    for gate in circuit:
        theta = None
        if gate.n_params:
            theta = float(thetas[param_idx])
            param_idx += 1
        u = gate_unitary(gate, theta, n_qubits) @ u
    return u


def observable_matrix(observable: PauliSum) -> np.ndarray:
    n = observable.n_qubits
    mat = np.zeros((2 ** n, 2 ** n), dtype=np.complex128)
    for term, coeff in observable.items():
        mat += float(coeff) * pauli_matrix(term_to_string(term, n))
    return mat


def dense_expectation(circuit: Sequence[Gate], observable: PauliSum, thetas=None, state=None) -> float:
    """<psi|U† O U|psi> with |psi> = |0...0> unless `state` is given."""
    n = observable.n_qubits
    if state is None:
        state = np.zeros(2 ** n, dtype=np.complex128)
        state[0] = 1.0
    psi = circuit_unitary(circuit, n, thetas) @ state
    return float(np.real(np.vdot(psi, observable_matrix(observable) @ psi)))


def dense_heisenberg(circuit: Sequence[Gate], observable: PauliSum, thetas=None) -> np.ndarray:
    """U† O U as a dense matrix."""
    u = circuit_unitary(circuit, observable.n_qubits, thetas)
    return u.conj().T @ observable_matrix(observable) @ u


# ============================================================================
# Random circuits
# ============================================================================

ONE_QUBIT_CLIFFORDS = ["H", "X", "Y", "Z", "S", "SX"]
TWO_QUBIT_CLIFFORDS = ["CNOT", "CZ", "SWAP", "ZZpihalf"]


def random_circuit(rng, n_qubits: int, n_gates: int):
    """Random mix of Pauli rotations (up to 3 qubits) and default Cliffords."""
    circuit = []
    for _ in range(n_gates):
        kind = rng.integers(3 if n_qubits > 1 else 2)
        if kind == 0:
            width = int(rng.integers(1, min(3, n_qubits) + 1))
            qubits = [int(q) for q in rng.choice(n_qubits, size=width, replace=False)]
            pauli = "".join(rng.choice(list("XYZ"), size=width))
            circuit.append(PauliRotation(pauli, qubits))
        elif kind == 1:
            symbol = str(rng.choice(ONE_QUBIT_CLIFFORDS))
            circuit.append(CliffordGate(symbol, [int(rng.integers(n_qubits))]))
        else:
            symbol = str(rng.choice(TWO_QUBIT_CLIFFORDS))
            qubits = [int(q) for q in rng.choice(n_qubits, size=2, replace=False)]
            circuit.append(CliffordGate(symbol, qubits))
    return circuit


def random_observable(rng, n_qubits: int, n_terms: int = 3) -> PauliSum:
    obs = PauliSum(n_qubits)
    for _ in range(n_terms):
        pauli = "".join(rng.choice(list("IXYZ"), size=n_qubits))
        obs.add_from_str(pauli, float(rng.normal()))
    return obs
