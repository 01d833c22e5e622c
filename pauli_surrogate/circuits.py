"""
Topologies and circuit builders.

A topology is a list of qubit pairs; a circuit is a list of gates in
Schrödinger order. Parameters are assigned to the parametrized gates in
circuit order, so `thetas[k]` belongs to the k-th parametrized gate.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .gates import (
    CliffordGate,
    Gate,
    ParametrizedGate,
    PauliRotation,
    count_parameters,
    freeze,
)
from .pauli_sum import PauliSum

Edge = Tuple[int, int]


# ============================================================================
# Topologies
# ============================================================================

def bricklayer_topology(n_qubits: int, periodic: bool = False) -> List[Edge]:
    """1D bricklayer: the (even, odd) pairs first, then the (odd, even) pairs.

    With `periodic` the closing pair (n-1, 0) joins the sublayer it fits into.
    """
    n = int(n_qubits)
    if n <= 1:
        return []
    if n == 2:
        return [(0, 1)]
    topology = [(i, i + 1) for i in range(0, n - 1, 2)]
    if periodic and n % 2 == 1:
        topology.append((n - 1, 0))
    topology.extend((i, i + 1) for i in range(1, n - 1, 2))
    if periodic and n % 2 == 0:
        topology.append((n - 1, 0))
    return topology


def staircase_topology(n_qubits: int, periodic: bool = False) -> List[Edge]:
    n = int(n_qubits)
    topology = [(i, i + 1) for i in range(n - 1)]
    if periodic and n > 2:
        topology.append((n - 1, 0))
    return topology


def rectangle_topology(nx: int, ny: int, periodic: bool = False) -> List[Edge]:
    """Nearest-neighbour pairs on an nx-by-ny grid, qubit q = row * nx + col."""
    topology: List[Edge] = []
    for row in range(ny):
        for col in range(nx):
            q = row * nx + col
            if row < ny - 1:
                topology.append((q, q + nx))
            if col < nx - 1:
                topology.append((q, q + 1))

    if periodic:
        n = nx * ny
        for col in range(nx):
            topology.append((col, n - nx + col))
        for row in range(ny):
            topology.append((row * nx, row * nx + nx - 1))
        unique: List[Edge] = []
        for pair in topology:
            if pair[0] != pair[1] and pair not in unique:
                unique.append(pair)
        topology = unique
    return topology


# ============================================================================
# Layers
# ============================================================================

def rotation_layer(circuit: List[Gate], pauli: str, qubits: Sequence[int]) -> List[Gate]:
    for q in qubits:
        circuit.append(PauliRotation(pauli, [q]))
    return circuit


def pair_rotation_layer(circuit: List[Gate], pauli: str, topology: Sequence[Edge]) -> List[Gate]:
    for pair in topology:
        circuit.append(PauliRotation(pauli, list(pair)))
    return circuit


def append_su4(circuit: List[Gate], pair: Edge) -> List[Gate]:
    """KAK decomposed SU(4): ZXZ on both qubits, XX YY ZZ, ZXZ on both qubits."""
    q1, q2 = pair
    for q in (q1, q2):
        rotation_layer(circuit, "Z", [q])
        rotation_layer(circuit, "X", [q])
        rotation_layer(circuit, "Z", [q])
    for pauli in ("XX", "YY", "ZZ"):
        circuit.append(PauliRotation(pauli, [q1, q2]))
    for q in (q1, q2):
        rotation_layer(circuit, "Z", [q])
        rotation_layer(circuit, "X", [q])
        rotation_layer(circuit, "Z", [q])
    return circuit


# ============================================================================
# Builders
# ============================================================================

def hardware_efficient_circuit(
    n_qubits: int, n_layers: int, topology: Optional[Sequence[Edge]] = None
) -> List[Gate]:
    """Layers of RX RZ RX on every qubit followed by RYY on the topology."""
    if topology is None:
        topology = bricklayer_topology(n_qubits)
    circuit: List[Gate] = []
    for _ in range(n_layers):
        for q in range(n_qubits):
            circuit.append(PauliRotation("X", [q]))
            circuit.append(PauliRotation("Z", [q]))
            circuit.append(PauliRotation("X", [q]))
        pair_rotation_layer(circuit, "YY", topology)
    return circuit


def efficient_su2_circuit(
    n_qubits: int, n_layers: int, topology: Optional[Sequence[Edge]] = None
) -> List[Gate]:
    """Layers of RY RZ on every qubit followed by CNOTs on the topology."""
    if topology is None:
        topology = bricklayer_topology(n_qubits)
    circuit: List[Gate] = []
    for _ in range(n_layers):
        for q in range(n_qubits):
            circuit.append(PauliRotation("Y", [q]))
            circuit.append(PauliRotation("Z", [q]))
        for pair in topology:
            circuit.append(CliffordGate("CNOT", list(pair)))
    return circuit


def tfi_trotter_circuit(
    n_qubits: int,
    n_layers: int,
    topology: Optional[Sequence[Edge]] = None,
    start_with_zz: bool = True,
) -> List[Gate]:
    """
    Trotterized transverse-field Ising evolution.

    With `start_with_zz` the circuit opens with an RZZ layer and closes with
    an RX layer; otherwise it opens with RX and closes with RZZ. Either way
    there are `n_layers` layers of each kind.
    """
    if topology is None:
        topology = bricklayer_topology(n_qubits)
    qubits = range(n_qubits)
    circuit: List[Gate] = []
    if start_with_zz:
        pair_rotation_layer(circuit, "ZZ", topology)
    for _ in range(n_layers - 1):
        rotation_layer(circuit, "X", qubits)
        pair_rotation_layer(circuit, "ZZ", topology)
    rotation_layer(circuit, "X", qubits)
    if not start_with_zz:
        pair_rotation_layer(circuit, "ZZ", topology)
    return circuit


def heisenberg_trotter_circuit(
    n_qubits: int, n_layers: int, topology: Optional[Sequence[Edge]] = None
) -> List[Gate]:
    """Trotterized Heisenberg evolution: RXX, RYY and RZZ layers per step."""
    if topology is None:
        topology = bricklayer_topology(n_qubits)
    circuit: List[Gate] = []
    for _ in range(n_layers):
        for pauli in ("XX", "YY", "ZZ"):
            pair_rotation_layer(circuit, pauli, topology)
    return circuit


def su4_circuit(
    n_qubits: int, n_layers: int, topology: Optional[Sequence[Edge]] = None
) -> List[Gate]:
    """Layers of 15-parameter SU(4) blocks on the topology."""
    if topology is None:
        topology = bricklayer_topology(n_qubits)
    circuit: List[Gate] = []
    for _ in range(n_layers):
        for pair in topology:
            append_su4(circuit, pair)
    return circuit


# ============================================================================
# QAOA / MaxCut
# ============================================================================

def canonical_edge(u: int, v: int) -> Edge:
    a, b = int(u), int(v)
    if a == b:
        raise ValueError("Self-loops are not allowed")
    return (a, b) if a < b else (b, a)


def ring_chord_edges(n_qubits: int, chord_shift: int = 7) -> List[Edge]:
    """Ring graph plus chords (i, i + chord_shift mod n)."""
    n = int(n_qubits)
    if n < 2:
        raise ValueError("n_qubits must be >= 2")
    shift = int(chord_shift) % n
    if shift == 0:
        raise ValueError("chord_shift must not be 0 modulo n_qubits")
    edge_set = set()
    for i in range(n):
        edge_set.add(canonical_edge(i, (i + 1) % n))
        edge_set.add(canonical_edge(i, (i + shift) % n))
    return sorted(edge_set)


def maxcut_observable(n_qubits: int, edges: Sequence[Edge]) -> PauliSum:
    """Sum of Z_u Z_v over the graph edges."""
    obs: PauliSum = PauliSum(int(n_qubits))
    for u, v in edges:
        obs.add_from_str("ZZ", 1.0, qubits=[int(u), int(v)])
    return obs


def qaoa_circuit(n_qubits: int, edges: Sequence[Edge], p_layers: int) -> List[Gate]:
    """
    QAOA ansatz: H on every qubit, then `p_layers` rounds of RZZ on every edge
    (cost) followed by RX on every qubit (mixer).

    One parameter per gate; see qaoa_parameters to expand (gammas, betas).
    """
    n = int(n_qubits)
    circuit: List[Gate] = [CliffordGate("H", [q]) for q in range(n)]
    for _ in range(int(p_layers)):
        for u, v in edges:
            circuit.append(PauliRotation("ZZ", [int(u), int(v)]))
        for q in range(n):
            circuit.append(PauliRotation("X", [q]))
    return circuit


def qaoa_parameters(gammas: Sequence[float], betas: Sequence[float], n_edges: int, n_qubits: int) -> np.ndarray:
    """Per-gate parameter vector of qaoa_circuit from per-layer angles."""
    if len(gammas) != len(betas):
        raise ValueError("gammas and betas must have the same length")
    thetas = []
    for gamma, beta in zip(gammas, betas):
        thetas.extend([float(gamma)] * int(n_edges))
        thetas.extend([float(beta)] * int(n_qubits))
    return np.asarray(thetas, dtype=np.float64)


def tqa_init(p_layers: int, delta_t: float) -> Tuple[np.ndarray, np.ndarray]:
    """Trotterized quantum annealing initialization: linear ramps of gammas and betas."""
    p = int(p_layers)
    if p < 1:
        raise ValueError("p_layers must be >= 1")
    if not float(delta_t) > 0.0:
        raise ValueError("delta_t must be > 0")
    ramp = np.arange(1, p + 1, dtype=np.float64) / p
    return ramp * delta_t, (1.0 - ramp) * delta_t


# ============================================================================
# Parameters
# ============================================================================

def get_parameter_indices(
    circuit: Sequence[Gate],
    gate_cls: type = ParametrizedGate,
    pauli: Optional[str] = None,
    qubits: Optional[Sequence[int]] = None,
) -> List[int]:
    """Positions in the parameter vector of the matching parametrized gates.

    `pauli` and `qubits` only match PauliRotation gates.
    """
    indices = []
    param_idx = 0
    for gate in circuit:
        if not gate.n_params:
            continue
        match = isinstance(gate, gate_cls)
        if match and (pauli is not None or qubits is not None):
            match = isinstance(gate, PauliRotation)
            if match and pauli is not None:
                match = gate.pauli == pauli.upper()
            if match and qubits is not None:
                match = gate.qubits == [int(q) for q in qubits]
        if match:
            indices.append(param_idx)
        param_idx += 1
    return indices


__all__ = [
    "Edge",
    "bricklayer_topology",
    "staircase_topology",
    "rectangle_topology",
    "rotation_layer",
    "pair_rotation_layer",
    "append_su4",
    "hardware_efficient_circuit",
    "efficient_su2_circuit",
    "tfi_trotter_circuit",
    "heisenberg_trotter_circuit",
    "su4_circuit",
    "canonical_edge",
    "ring_chord_edges",
    "maxcut_observable",
    "qaoa_circuit",
    "qaoa_parameters",
    "tqa_init",
    "get_parameter_indices",
    "count_parameters",
    "freeze",
]
