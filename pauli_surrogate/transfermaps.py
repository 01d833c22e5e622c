"""
Pauli transfer maps from unitaries.

Matrices follow the local index convention of gates.py: local qubit k of a
gate is bit k of the computational basis index, so the Pauli with local
index sum(p_k * 4**k) is kron(P_{n-1}, ..., P_1, P_0).

The Pauli transfer matrix is taken in the Heisenberg picture,

    U† P_j U = sum_i PTM[i, j] P_i,    PTM[i, j] = Tr(P_i U† P_j U) / 2**n,

and a transfer map lists, for every input index j, the nonzero (i, PTM[i, j]).
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

import numpy as np

from .gates import Gate, TransferMap, TransferMapGate, freeze
from .pauli_sum import PauliSum
from .propagation import propagate
from .truncation import NO_TRUNCATION

_PAULI_MATRICES = (
    np.array([[1, 0], [0, 1]], dtype=np.complex128),
    np.array([[0, 1], [1, 0]], dtype=np.complex128),
    np.array([[0, -1j], [1j, 0]], dtype=np.complex128),
    np.array([[1, 0], [0, -1]], dtype=np.complex128),
)


def _n_qubits_of(dim: int, base: int, what: str) -> int:
    n = int(round(math.log(dim, base))) if dim > 1 else 0
    if n < 1 or base ** n != dim:
        raise ValueError(f"{what} dimension {dim} is not a power of {base}")
    return n


@lru_cache(maxsize=8)
def pauli_basis(n_qubits: int) -> List[np.ndarray]:
    """All 4**n Pauli matrices, ordered by local index."""
    basis = list(_PAULI_MATRICES)
    for _ in range(1, n_qubits):
        # the new qubit is the most significant one
        basis = [np.kron(p_new, p_old) for p_new in _PAULI_MATRICES for p_old in basis]
    return basis


def pauli_matrix(pauli: str) -> np.ndarray:
    """Matrix of a Pauli string; character k acts on local qubit k."""
    mat = np.array([[1.0]], dtype=np.complex128)
    for symbol in pauli.upper():
        mat = np.kron(_PAULI_MATRICES["IXYZ".index(symbol)], mat)
    return mat


def pauli_rotation_matrix(pauli: str, theta: float) -> np.ndarray:
    """exp(-i θ/2 P)"""
    p = pauli_matrix(pauli)
    return math.cos(theta / 2) * np.eye(p.shape[0]) - 1j * math.sin(theta / 2) * p


def t_gate_matrix() -> np.ndarray:
    return np.diag([1.0, np.exp(1j * math.pi / 4)])


_CLIFFORD_MATRICES: Dict[str, np.ndarray] = {
    "H": np.array([[1, 1], [1, -1]], dtype=np.complex128) / math.sqrt(2),
    "X": _PAULI_MATRICES[1],
    "Y": _PAULI_MATRICES[2],
    "Z": _PAULI_MATRICES[3],
    "S": np.diag([1, 1j]).astype(np.complex128),
    "SX": 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]], dtype=np.complex128),
    # control is local qubit 0: flips bit 1 when bit 0 is set
    "CNOT": np.eye(4, dtype=np.complex128)[[0, 3, 2, 1]],
    "CZ": np.diag([1, 1, 1, -1]).astype(np.complex128),
    "SWAP": np.eye(4, dtype=np.complex128)[[0, 2, 1, 3]],
    "ZZpihalf": pauli_rotation_matrix("ZZ", math.pi / 2),
}


def clifford_matrix(symbol: str) -> np.ndarray:
    try:
        return _CLIFFORD_MATRICES[symbol].copy()
    except KeyError:
        raise ValueError(
            f"No matrix for Clifford gate '{symbol}'; known: {sorted(_CLIFFORD_MATRICES)}"
        ) from None


def calculate_ptm(unitary, tol: float = 1e-15) -> np.ndarray:
    """Heisenberg-picture Pauli transfer matrix of `unitary`.

    Entries with magnitude below `tol` are set to zero.
    """
    u = np.asarray(unitary, dtype=np.complex128)
    if u.ndim != 2 or u.shape[0] != u.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {u.shape}")
    n = _n_qubits_of(u.shape[0], 2, "Unitary")
    if not np.allclose(u.conj().T @ u, np.eye(u.shape[0]), atol=1e-10):
        raise ValueError("Matrix is not unitary")

    basis = pauli_basis(n)
    u_dag = u.conj().T
    # evolved[j] = U† P_j U
    evolved = [u_dag @ p @ u for p in basis]
    dim = len(basis)
    ptm = np.zeros((dim, dim), dtype=np.float64)
    for i, p_i in enumerate(basis):
        for j, e_j in enumerate(evolved):
            # Tr(P_i E_j) without the full product
            val = np.sum(p_i.T * e_j).real / u.shape[0]
            if abs(val) >= tol:
                ptm[i, j] = val
    return ptm


def to_transfer_map(ptm, tol: float = 1e-12) -> TransferMap:
    """Transfer map of a PTM: column j -> [(i, PTM[i, j]), ...] for |PTM[i, j]| > tol."""
    ptm = np.asarray(ptm)
    if ptm.ndim != 2 or ptm.shape[0] != ptm.shape[1]:
        raise ValueError(f"Expected a square PTM, got shape {ptm.shape}")
    _n_qubits_of(ptm.shape[0], 4, "PTM")
    if np.iscomplexobj(ptm):
        if np.max(np.abs(ptm.imag)) > tol:
            raise ValueError("PTM has complex entries")
        ptm = ptm.real
    tmap: TransferMap = []
    for j in range(ptm.shape[1]):
        column = ptm[:, j]
        tmap.append([(int(i), float(column[i])) for i in np.flatnonzero(np.abs(column) > tol)])
    return tmap


def unitary_transfer_map_gate(unitary, qubits: Sequence[int], tol: float = 1e-12) -> TransferMapGate:
    """TransferMapGate acting as `unitary` on `qubits` (local qubit k = qubits[k])."""
    return TransferMapGate(list(qubits), to_transfer_map(calculate_ptm(unitary), tol))


def circuit_transfer_map(
    circuit: Sequence[Gate], n_qubits: int, thetas: Optional[Sequence[float]] = None
) -> TransferMap:
    """
    Transfer map of a whole circuit on qubits 0..n_qubits-1.

    One untruncated propagation per input Pauli string, i.e. 4**n_qubits of
    them. Parametrized gates are frozen with `thetas` first.
    """
    if thetas is not None:
        circuit = freeze(circuit, thetas)
    if any(gate.n_params for gate in circuit):
        raise ValueError("All gates must be free of parameters; pass thetas to freeze parametrized gates")

    tmap: TransferMap = []
    for local in range(4 ** n_qubits):
        psum: PauliSum = PauliSum(n_qubits, {local: 1.0})
        out = propagate(circuit, psum, truncation=NO_TRUNCATION)
        tmap.append(sorted((term, float(coeff)) for term, coeff in out.items()))
    return tmap


__all__ = [
    "pauli_basis",
    "pauli_matrix",
    "pauli_rotation_matrix",
    "t_gate_matrix",
    "clifford_matrix",
    "calculate_ptm",
    "to_transfer_map",
    "unitary_transfer_map_gate",
    "circuit_transfer_map",
]
