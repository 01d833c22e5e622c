"""
Propagation engine: pushes a PauliSum backward through a circuit.

Gates are applied in reverse circuit order (Heisenberg picture). For every
gate the registered handler scans the working sum and

  - leaves commuting terms untouched,
  - rewrites terms in place where the output term equals the input term
    (cos branch of a rotation, diagonal noise),
  - writes every other output into the auxiliary sum.

The auxiliary sum is merged into the working sum and cleared after each gate,
so the working sum is never mutated while a handler iterates over it except
through in-place coefficient updates of the term under consideration.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

import numpy as np
from tqdm import tqdm

from .coefficients import PathProperties, apply_cos, apply_sin, is_zero, scale
from .errors import ConfigurationError, ShapeError
from .gates import (
    CliffordGate,
    FrozenGate,
    Gate,
    PauliRotation,
    TransferMapGate,
    count_parameters,
)
from .log import get_logger
from .pauli_sum import PauliSum
from .paulis import get_paulis, set_paulis
from .truncation import TruncationConfig, resolve_truncation

logger = get_logger(__name__)

# handler(gate, psum, aux, theta, truncation, param_idx)
GateHandler = Callable[[Gate, PauliSum, PauliSum, Optional[float], TruncationConfig, int], None]

_GATE_HANDLERS: Dict[type, GateHandler] = {}


# ============================================================================
# Gate registry
# ============================================================================

def register_gate(gate_cls: type, handler: Optional[GateHandler] = None):
    """Register how `gate_cls` acts on a PauliSum.

    The handler is called as ``handler(gate, psum, aux, theta, truncation,
    param_idx)``. It may update coefficients of `psum` in place, delete terms
    from it, and must write all other outputs into `aux` via ``aux.add``. Every
    candidate should pass ``truncation.is_truncated`` before insertion.

    Can be used as a decorator: ``@register_gate(MyGate)``.
    """
    if not (isinstance(gate_cls, type) and issubclass(gate_cls, Gate)):
        raise TypeError(f"gate_cls must be a Gate subclass, got {gate_cls!r}")

    def _register(fn: GateHandler) -> GateHandler:
        _GATE_HANDLERS[gate_cls] = fn
        return fn

    if handler is None:
        return _register
    return _register(handler)


def unregister_gate(gate_cls: type) -> None:
    _GATE_HANDLERS.pop(gate_cls, None)


def get_gate_handler(gate: Gate) -> GateHandler:
    for cls in type(gate).__mro__:
        handler = _GATE_HANDLERS.get(cls)
        if handler is not None:
            return handler
    raise ConfigurationError(
        f"No handler registered for gate type {type(gate).__name__}; use register_gate"
    )


# ============================================================================
# Built-in handlers
# ============================================================================

@register_gate(PauliRotation)
def apply_pauli_rotation(
    gate: PauliRotation,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    """Pauli rotation: retain (commute), mutate (cos), insert (sin)."""
    terms = psum.terms
    for term, coeff in list(terms.items()):
        if gate.commutes_with(term):
            continue

        cos_coeff = apply_cos(coeff, theta, 1, param_idx)
        if is_zero(cos_coeff) or truncation.is_truncated(term, cos_coeff):
            del terms[term]
        else:
            terms[term] = cos_coeff

        new_term, sign = gate.branch(term)
        sin_coeff = apply_sin(coeff, theta, sign, param_idx)
        if not truncation.is_truncated(new_term, sin_coeff):
            aux.add(new_term, sin_coeff)


@register_gate(CliffordGate)
def apply_clifford(
    gate: CliffordGate,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    """Clifford: every term moves to exactly one new term with a +-1 sign."""
    cmap = gate.map
    qubits = gate.qubits
    for term, coeff in psum.terms.items():
        sign, new_local = cmap[get_paulis(term, qubits)]
        new_term = set_paulis(term, new_local, qubits)
        new_coeff = coeff if sign == 1 else scale(coeff, sign)
        if not truncation.is_truncated(new_term, new_coeff):
            aux.add(new_term, new_coeff)
    psum.clear()


@register_gate(TransferMapGate)
def apply_transfer_map(
    gate: TransferMapGate,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    """Generic fixed fan-out: term -> sum_k coeff_k * term_k."""
    tmap = gate.transfer_map
    qubits = gate.qubits
    for term, coeff in psum.terms.items():
        for new_local, factor in tmap[get_paulis(term, qubits)]:
            new_term = set_paulis(term, new_local, qubits)
            new_coeff = scale(coeff, factor)
            if not truncation.is_truncated(new_term, new_coeff):
                aux.add(new_term, new_coeff)
    psum.clear()


@register_gate(FrozenGate)
def apply_frozen(
    gate: FrozenGate,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    inner = get_gate_handler(gate.gate)
    inner(gate.gate, psum, aux, gate.parameter, truncation, -1)


# ============================================================================
# Engine
# ============================================================================

def merge_and_empty(psum: PauliSum, aux: PauliSum) -> None:
    """Merge `aux` into `psum` and clear `aux`.

    The smaller dict is merged into the larger one; the term dicts are
    swapped when needed so both objects keep their identity.
    """
    if len(psum.terms) < len(aux.terms):
        psum.terms, aux.terms = aux.terms, psum.terms
    for term, coeff in aux.terms.items():
        psum.add(term, coeff)
    aux.clear()


def apply_gate_to_all(
    gate: Gate,
    theta: Optional[float],
    psum: PauliSum,
    aux: PauliSum,
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    """Dispatch `gate` to its registered handler for every term of `psum`."""
    handler = get_gate_handler(gate)
    handler(gate, psum, aux, theta, truncation, param_idx)


def apply_merge_truncate(
    gate: Gate,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    """Apply one gate to all terms of `psum`, then merge the outputs back."""
    apply_gate_to_all(gate, theta, psum, aux, truncation, param_idx)
    merge_and_empty(psum, aux)


def check_circuit(circuit: Sequence[Gate], psum: PauliSum) -> None:
    """Fail before propagation if a gate cannot act on `psum`."""
    kinds = {type(c) for c in psum.terms.values()}
    restricted = [
        k for k in kinds
        if issubclass(k, PathProperties) and k.supported_gates is not None
    ]
    for gate in circuit:
        get_gate_handler(gate)
        qubits = getattr(gate, "qubits", ())
        if qubits and max(qubits) >= psum.n_qubits:
            raise ValueError(f"{gate!r} acts outside of {psum.n_qubits} qubits")
        for kind in restricted:
            if not isinstance(gate, kind.supported_gates):
                raise ConfigurationError(
                    f"{type(gate).__name__} is not supported with {kind.__name__} coefficients; "
                    f"supported: {[g.__name__ for g in kind.supported_gates]}"
                )


def check_thetas(circuit: Sequence[Gate], thetas) -> np.ndarray:
    n_params = count_parameters(circuit)
    if thetas is None:
        if n_params:
            raise ShapeError(n_params, 0)
        return np.zeros(0, dtype=np.float64)
    thetas = np.asarray(thetas, dtype=np.float64).reshape(-1)
    if thetas.shape[0] != n_params:
        raise ShapeError(n_params, thetas.shape[0])
    return thetas


def _propagate_checked(
    circuit: Sequence[Gate],
    psum: PauliSum,
    thetas: np.ndarray,
    truncation: TruncationConfig,
    progress: bool = False,
) -> PauliSum:
    aux: PauliSum = PauliSum(psum.n_qubits)
    # parameters are consumed from the back as the circuit is reversed
    param_idx = len(thetas) - 1

    gates = reversed(circuit)
    if progress:
        gates = tqdm(gates, total=len(circuit), desc="propagate", dynamic_ncols=True)
    for gate in gates:
        if gate.n_params:
            theta, idx = float(thetas[param_idx]), param_idx
            param_idx -= 1
        else:
            theta, idx = None, -1
        apply_merge_truncate(gate, psum, aux, theta, truncation, idx)
        logger.debug("After %r: %d terms", gate, len(psum))
    return psum


def propagate_inplace(
    circuit: Sequence[Gate],
    psum: PauliSum,
    thetas=None,
    *,
    truncation=None,
    progress: bool = False,
    **overrides,
) -> PauliSum:
    """Like propagate, but `psum` itself is mutated and returned."""
    config = resolve_truncation(truncation, overrides)
    thetas = check_thetas(circuit, thetas)
    check_circuit(circuit, psum)
    return _propagate_checked(circuit, psum, thetas, config, progress)


def propagate(
    circuit: Sequence[Gate],
    observable: PauliSum,
    thetas=None,
    *,
    truncation=None,
    coeff_kind: Optional[type] = None,
    progress: bool = False,
    **overrides,
) -> PauliSum:
    """
    Propagate `observable` through `circuit` in the Heisenberg picture.

    Args:
        circuit: gates in Schrödinger order; applied in reverse
        observable: PauliSum to propagate (not modified)
        thetas: one value per parametrized gate, in circuit order
        truncation: TruncationConfig, preset name or None for "default"
        coeff_kind: optional coefficient record (e.g. PauliFreqTracker) the
            observable's coefficients are wrapped into
        progress: show a tqdm progress bar
        **overrides: truncation options, e.g. max_weight=4, min_abs_coeff=0

    Returns:
        The propagated PauliSum.
    """
    psum = observable.copy()
    if coeff_kind is not None:
        psum = psum.wrap_coefficients(coeff_kind)
    return propagate_inplace(circuit, psum, thetas, truncation=truncation, progress=progress, **overrides)


__all__ = [
    "GateHandler",
    "register_gate",
    "unregister_gate",
    "get_gate_handler",
    "apply_pauli_rotation",
    "apply_clifford",
    "apply_transfer_map",
    "apply_frozen",
    "apply_gate_to_all",
    "merge_and_empty",
    "apply_merge_truncate",
    "check_circuit",
    "check_thetas",
    "propagate",
    "propagate_inplace",
]
