"""
Gate family for Heisenberg-picture propagation.

    Gate
    ├── StaticGate          (no run-time parameter)
    │   ├── CliffordGate    (1 -> 1 with a +-1 sign, table lookup)
    │   ├── TransferMapGate (fixed fan-out table)
    │   └── FrozenGate      (parametrized gate with a fixed parameter)
    └── ParametrizedGate    (consumes one parameter per application)
        └── PauliRotation   (exp(-i theta/2 P), branches 1 -> 2)

Noise channels live in noise.py. How a gate acts on a whole PauliSum is
decided by the handler registered for its class (see propagation.py).
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from .errors import ConfigurationError, ShapeError
from .paulis import commutes, pauli_product, term_from_string

# A Clifford map is indexed by the local index of the Paulis on the gate's
# qubits (see paulis.get_paulis) and yields (sign, new local index).
CliffordMap = List[Tuple[int, int]]
# A transfer map yields, per local index, the list of (new local index, coeff).
TransferMap = List[List[Tuple[int, float]]]


# ============================================================================
# Base classes
# ============================================================================

@dataclass
class Gate:
    """Base gate class"""

    @property
    def n_params(self) -> int:
        return 0


@dataclass
class StaticGate(Gate):
    pass


@dataclass
class ParametrizedGate(Gate):

    @property
    def n_params(self) -> int:
        return 1


def _as_qubits(qubits: Union[int, Sequence[int]]) -> List[int]:
    if isinstance(qubits, int):
        return [qubits]
    out = [int(q) for q in qubits]
    if any(q < 0 for q in out):
        raise ValueError(f"Qubit indices must be >= 0, got {out}")
    if len(set(out)) != len(out):
        raise ValueError(f"Qubit indices must be unique, got {out}")
    return out


# ============================================================================
# Pauli rotations
# ============================================================================

@dataclass
class PauliRotation(ParametrizedGate):
    """
    Pauli rotation gate: exp(-i θ/2 P)
    - pauli: Pauli string generator, one letter per qubit, e.g. 'X', 'ZZ', 'XY'
    - qubits: qubit indices
    """
    pauli: str
    qubits: List[int]
    generator: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.qubits = _as_qubits(self.qubits)
        self.pauli = self.pauli.upper()
        self.generator = term_from_string(self.pauli, self.qubits)

    def __repr__(self):
        return f"R{self.pauli}{self.qubits}"

    def commutes_with(self, term: int) -> bool:
        return commutes(self.generator, term)

    def branch(self, term: int) -> Tuple[int, int]:
        """Label-toggled term and sign of the sin branch for an anticommuting `term`.

        For U = exp(-i θ/2 G) and {G, O} = 0:
            U† O U = cos θ O + sin θ Re(i * phase) P'   with   G O = phase P'
        """
        new_term, phase = pauli_product(self.generator, term)
        return new_term, int((1j * phase).real)


# ============================================================================
# Clifford gates
# ============================================================================

def create_clifford_map(relations: Mapping[str, Tuple[int, str]]) -> CliffordMap:
    """Create a Clifford map from symbol relations.

    `relations` maps every Pauli string on the gate's qubits to (sign, image),
    e.g. {"XI": (1, "XX"), "ZZ": (1, "IZ"), ...}, where the image is U† P U.
    All 4**n strings must be given.
    """
    if not relations:
        raise ValueError("relations must not be empty")
    n = len(next(iter(relations)))
    if len(relations) != 4 ** n:
        raise ValueError(f"Expected {4 ** n} relations for {n} qubits, got {len(relations)}")
    cmap: List = [None] * (4 ** n)
    for pauli, (sign, image) in relations.items():
        if len(pauli) != n or len(image) != n:
            raise ValueError(f"Relation {pauli} -> {image} does not act on {n} qubits")
        if sign not in (1, -1):
            raise ValueError(f"Clifford sign must be +1 or -1, got {sign}")
        cmap[term_from_string(pauli)] = (int(sign), term_from_string(image))
    if sorted(local for _, local in cmap) != list(range(4 ** n)):
        raise ValueError("Clifford relations must map Pauli strings one-to-one")
    return cmap


def compose_clifford_maps(first: CliffordMap, second: CliffordMap) -> CliffordMap:
    """Map of the circuit [first, second] (Schrödinger order) on the same qubits."""
    if len(first) != len(second):
        raise ValueError("Clifford maps act on different numbers of qubits")
    out = []
    for local in range(len(second)):
        s2, mid = second[local]
        s1, new = first[mid]
        out.append((s1 * s2, new))
    return out


def _rotation_clifford_map(pauli: str, theta: float) -> CliffordMap:
    """Map of PauliRotation(pauli, range(n)) at a multiple of π/2."""
    gate = PauliRotation(pauli, list(range(len(pauli))))
    cos_t, sin_t = round(math.cos(theta)), round(math.sin(theta))
    cmap = []
    for local in range(4 ** len(pauli)):
        if gate.commutes_with(local):
            cmap.append((1, local))
        elif cos_t != 0:
            cmap.append((cos_t, local))
        else:
            new_local, sign = gate.branch(local)
            cmap.append((sin_t * sign, new_local))
    return cmap


_DEFAULT_CLIFFORD_MAP: Dict[str, CliffordMap] = {
    "H": [(1, 0x00), (1, 0x03), (-1, 0x02), (1, 0x01)],
    "X": [(1, 0x00), (1, 0x01), (-1, 0x02), (-1, 0x03)],
    "Y": [(1, 0x00), (-1, 0x01), (1, 0x02), (-1, 0x03)],
    "Z": [(1, 0x00), (-1, 0x01), (-1, 0x02), (1, 0x03)],
    "S": [(1, 0x00), (-1, 0x02), (1, 0x01), (1, 0x03)],
    # control on the first qubit
    "CNOT": [
        (1, 0x00), (1, 0x05), (1, 0x06), (1, 0x03),
        (1, 0x04), (1, 0x01), (1, 0x02), (1, 0x07),
        (1, 0x0b), (1, 0x0e), (-1, 0x0d), (1, 0x08),
        (1, 0x0f), (-1, 0x0a), (1, 0x09), (1, 0x0c),
    ],
    "SWAP": [
        (1, 0x00), (1, 0x04), (1, 0x08), (1, 0x0c),
        (1, 0x01), (1, 0x05), (1, 0x09), (1, 0x0d),
        (1, 0x02), (1, 0x06), (1, 0x0a), (1, 0x0e),
        (1, 0x03), (1, 0x07), (1, 0x0b), (1, 0x0f),
    ],
    # SX = e^{iπ/4} RX(π/2)
    "SX": _rotation_clifford_map("X", math.pi / 2),
    # ZZpihalf = RZZ(π/2)
    "ZZpihalf": _rotation_clifford_map("ZZ", math.pi / 2),
    # CZ = e^{iπ/4} RZI(π/2) RIZ(π/2) RZZ(-π/2)
    "CZ": compose_clifford_maps(
        compose_clifford_maps(
            _rotation_clifford_map("ZI", math.pi / 2),
            _rotation_clifford_map("IZ", math.pi / 2),
        ),
        _rotation_clifford_map("ZZ", -math.pi / 2),
    ),
}

# Global table of known Clifford gates, extended with register_clifford.
clifford_map: Dict[str, CliffordMap] = copy.deepcopy(_DEFAULT_CLIFFORD_MAP)


def register_clifford(symbol: str, cmap: CliffordMap, overwrite: bool = False) -> None:
    n = len(cmap).bit_length() // 2
    if n < 1 or len(cmap) != 4 ** n:
        raise ValueError(f"Clifford map length must be a power of 4, got {len(cmap)}")
    if symbol in clifford_map and not overwrite:
        raise ValueError(f"Clifford gate '{symbol}' is already registered")
    clifford_map[symbol] = [(int(s), int(local)) for s, local in cmap]


def reset_clifford_map() -> None:
    """Reset the global clifford_map to the default Clifford gates."""
    clifford_map.clear()
    clifford_map.update(copy.deepcopy(_DEFAULT_CLIFFORD_MAP))


@dataclass
class CliffordGate(StaticGate):
    """
    Clifford gate (CNOT, H, S, etc.)
    - symbol: key into the global clifford_map
    - qubits: list of qubit indices; for CNOT the control comes first
    """
    symbol: str
    qubits: List[int]

    def __post_init__(self):
        self.qubits = _as_qubits(self.qubits)
        if self.symbol not in clifford_map:
            raise ConfigurationError(
                f"Unknown Clifford gate '{self.symbol}'; known: {sorted(clifford_map)}"
            )
        if len(clifford_map[self.symbol]) != 4 ** len(self.qubits):
            raise ValueError(
                f"Clifford gate '{self.symbol}' does not act on {len(self.qubits)} qubits"
            )

    def __repr__(self):
        return f"{self.symbol}{self.qubits}"

    @property
    def map(self) -> CliffordMap:
        return clifford_map[self.symbol]


# ============================================================================
# Transfer maps and frozen gates
# ============================================================================

@dataclass
class TransferMapGate(StaticGate):
    """
    Gate defined by a fixed fan-out table.
    - qubits: qubit indices
    - transfer_map: transfer_map[local] = [(new_local, coeff), ...]
    """
    qubits: List[int]
    transfer_map: TransferMap

    def __post_init__(self):
        self.qubits = _as_qubits(self.qubits)
        if len(self.transfer_map) != 4 ** len(self.qubits):
            raise ValueError(
                f"Transfer map has {len(self.transfer_map)} rows, "
                f"expected {4 ** len(self.qubits)} for {len(self.qubits)} qubits"
            )

    def __repr__(self):
        return f"TransferMapGate{self.qubits}"


@dataclass
class FrozenGate(StaticGate):
    """A ParametrizedGate with its parameter fixed at circuit construction."""
    gate: ParametrizedGate
    parameter: float

    def __post_init__(self):
        if not isinstance(self.gate, ParametrizedGate):
            raise TypeError(f"Only parametrized gates can be frozen, got {self.gate!r}")

    def __repr__(self):
        return f"FrozenGate({self.gate!r}, θ = {self.parameter:.3g})"

    @property
    def qubits(self) -> List[int]:
        return self.gate.qubits


def TGate(qubit: int) -> FrozenGate:
    """T = e^{iπ/8} RZ(π/4)"""
    return FrozenGate(PauliRotation("Z", [qubit]), math.pi / 4)


# ============================================================================
# Circuit helpers
# ============================================================================

def count_parameters(circuit: Sequence[Gate]) -> int:
    return sum(gate.n_params for gate in circuit)


def freeze(circuit: Sequence[Gate], thetas: Sequence[float]) -> List[Gate]:
    """Freeze every parametrized gate of `circuit` with its parameter."""
    n = count_parameters(circuit)
    if len(thetas) != n:
        raise ShapeError(n, len(thetas))
    frozen: List[Gate] = []
    param_idx = 0
    for gate in circuit:
        if gate.n_params:
            frozen.append(FrozenGate(gate, float(thetas[param_idx])))
            param_idx += 1
        else:
            frozen.append(gate)
    return frozen


__all__ = [
    "Gate",
    "StaticGate",
    "ParametrizedGate",
    "PauliRotation",
    "CliffordGate",
    "TransferMapGate",
    "FrozenGate",
    "TGate",
    "CliffordMap",
    "TransferMap",
    "clifford_map",
    "create_clifford_map",
    "compose_clifford_maps",
    "register_clifford",
    "reset_clifford_map",
    "count_parameters",
    "freeze",
]
