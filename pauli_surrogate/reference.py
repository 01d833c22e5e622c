"""
Dense PennyLane reference for small circuits.

Used to cross-check propagation results; PennyLane is an optional dependency
(``pip install pauli-surrogate[reference]``).
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from .gates import CliffordGate, FrozenGate, Gate, PauliRotation, count_parameters
from .errors import ShapeError
from .pauli_sum import PauliSum
from .paulis import I, X, Y, get_pauli


def _require_pennylane():
    try:
        import pennylane as qml  # type: ignore
    except Exception as e:  # pragma: no cover - optional dependency
        raise RuntimeError("PennyLane is required for this API path.") from e
    return qml


def _validate_small_n(n_qubits: int, max_qubits: int) -> None:
    n = int(n_qubits)
    if n < 1:
        raise ValueError("n_qubits must be >= 1")
    if n > int(max_qubits):
        raise ValueError(
            f"PennyLane reference is limited to <= {int(max_qubits)} qubits; got n_qubits={n}"
        )


def _apply_gate_pennylane(gate: Gate, theta: Optional[float], qml: Any) -> None:
    if isinstance(gate, CliffordGate):
        symbol = gate.symbol
        wires = gate.qubits
        if symbol == "H":
            qml.Hadamard(wires=wires[0])
        elif symbol == "S":
            qml.S(wires=wires[0])
        elif symbol == "X":
            qml.PauliX(wires=wires[0])
        elif symbol == "Y":
            qml.PauliY(wires=wires[0])
        elif symbol == "Z":
            qml.PauliZ(wires=wires[0])
        elif symbol == "SX":
            qml.SX(wires=wires[0])
        elif symbol == "CNOT":
            qml.CNOT(wires=wires)
        elif symbol == "CZ":
            qml.CZ(wires=wires)
        elif symbol == "SWAP":
            qml.SWAP(wires=wires)
        elif symbol == "ZZpihalf":
            qml.PauliRot(np.pi / 2, "ZZ", wires=wires)
        else:
            raise ValueError(f"Unsupported CliffordGate symbol for PennyLane conversion: {symbol}")
        return

    if isinstance(gate, FrozenGate):
        _apply_gate_pennylane(gate.gate, gate.parameter, qml)
        return

    if isinstance(gate, PauliRotation):
        qml.PauliRot(float(theta), gate.pauli, wires=list(gate.qubits))
        return

    raise TypeError(f"Unsupported gate type for PennyLane conversion: {type(gate).__name__}")


def _qml_op_from_term(term: int, n_qubits: int, qml: Any):
    ops = []
    for q in range(n_qubits):
        pauli = get_pauli(term, q)
        if pauli == I:
            continue
        if pauli == X:
            ops.append(qml.X(q))
        elif pauli == Y:
            ops.append(qml.Y(q))
        else:
            ops.append(qml.Z(q))
    if not ops:
        return qml.Identity(0)
    if len(ops) == 1:
        return ops[0]
    return qml.prod(*ops)


def _qml_obs_from_paulisum(obs: PauliSum, qml: Any):
    if len(obs) == 0:
        raise ValueError("Observable has no terms")
    op_sum: Any = None
    for term, coeff in obs.items():
        op = float(coeff) * _qml_op_from_term(term, obs.n_qubits, qml)
        op_sum = op if op_sum is None else op_sum + op
    return op_sum


def pennylane_expval_small(
    circuit: Sequence[Gate],
    observable: PauliSum,
    thetas=None,
    n_qubits: Optional[int] = None,
    *,
    max_qubits: int = 20,
) -> float:
    """<0|U† O U|0> on PennyLane's default.qubit device (n_qubits <= max_qubits)."""
    qml = _require_pennylane()
    if n_qubits is None:
        n_qubits = observable.n_qubits
    _validate_small_n(n_qubits, max_qubits)

    n_params = count_parameters(circuit)
    thetas_np = np.zeros(0) if thetas is None else np.asarray(thetas, dtype=np.float64).reshape(-1)
    if thetas_np.shape[0] != n_params:
        raise ShapeError(n_params, thetas_np.shape[0])

    obs_op = _qml_obs_from_paulisum(observable, qml)
    dev = qml.device("default.qubit", wires=int(n_qubits))

    @qml.qnode(dev)
    def qnode(params):
        param_idx = 0
        for gate in circuit:
            if gate.n_params:
                _apply_gate_pennylane(gate, params[param_idx], qml)
                param_idx += 1
            else:
                _apply_gate_pennylane(gate, None, qml)
        return qml.expval(obs_op)

    return float(qnode(thetas_np))


__all__ = ["pennylane_expval_small"]
