"""
Single-qubit noise channels in the Heisenberg picture.

Pauli noise damps the coefficients of the affected Paulis by (1 - p) in
place. Amplitude damping additionally splits Z into (1 - γ) Z + γ I.

A channel built without a strength is parametrized and consumes one entry
of the parameter vector; built with a strength it is static.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, FrozenSet, List, Optional

from .coefficients import is_zero, scale
from .gates import ParametrizedGate
from .pauli_sum import PauliSum
from .paulis import I, X, Y, Z, get_pauli, set_pauli
from .propagation import register_gate
from .truncation import TruncationConfig


def check_noise_strength(gate_cls: type, p: float) -> float:
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"{gate_cls.__name__} parameter must be between 0 and 1. Got {p}.")
    return float(p)


@dataclass
class NoiseChannel(ParametrizedGate):
    qubit: int
    p: Optional[float] = None

    def __post_init__(self):
        if self.qubit < 0:
            raise ValueError(f"Qubit index must be >= 0, got {self.qubit}")
        if self.p is not None:
            self.p = check_noise_strength(type(self), self.p)

    def __repr__(self):
        strength = "" if self.p is None else f", p={self.p:.3g}"
        return f"{type(self).__name__}({self.qubit}{strength})"

    @property
    def qubits(self) -> List[int]:
        return [self.qubit]

    @property
    def n_params(self) -> int:
        return 0 if self.p is not None else 1

    def strength(self, theta: Optional[float]) -> float:
        if self.p is not None:
            return self.p
        if theta is None:
            raise ValueError(f"{self!r} needs a noise strength")
        return check_noise_strength(type(self), theta)


@dataclass(repr=False)
class PauliNoise(NoiseChannel):
    damped: ClassVar[FrozenSet[int]] = frozenset()


@dataclass(repr=False)
class DepolarizingNoise(PauliNoise):
    """Damps X, Y and Z by 1 - p."""
    damped: ClassVar[FrozenSet[int]] = frozenset((X, Y, Z))


@dataclass(repr=False)
class PauliXNoise(PauliNoise):
    """Pauli-X noise: damps Y and Z by 1 - p."""
    damped: ClassVar[FrozenSet[int]] = frozenset((Y, Z))


@dataclass(repr=False)
class PauliYNoise(PauliNoise):
    """Pauli-Y noise: damps X and Z by 1 - p."""
    damped: ClassVar[FrozenSet[int]] = frozenset((X, Z))


@dataclass(repr=False)
class PauliZNoise(PauliNoise):
    """Pauli-Z (dephasing) noise: damps X and Y by 1 - p."""
    damped: ClassVar[FrozenSet[int]] = frozenset((X, Y))


DephasingNoise = PauliZNoise


@dataclass(repr=False)
class AmplitudeDampingNoise(NoiseChannel):
    """X, Y -> sqrt(1 - γ) X, Y;  Z -> (1 - γ) Z + γ I"""


def _set_or_drop(psum: PauliSum, term: int, coeff, truncation: TruncationConfig) -> None:
    if is_zero(coeff) or truncation.is_truncated(term, coeff):
        del psum.terms[term]
    else:
        psum.terms[term] = coeff


@register_gate(PauliNoise)
def apply_pauli_noise(
    gate: PauliNoise,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    factor = 1.0 - gate.strength(theta)
    for term, coeff in list(psum.terms.items()):
        if get_pauli(term, gate.qubit) in gate.damped:
            _set_or_drop(psum, term, scale(coeff, factor), truncation)


@register_gate(AmplitudeDampingNoise)
def apply_amplitude_damping(
    gate: AmplitudeDampingNoise,
    psum: PauliSum,
    aux: PauliSum,
    theta: Optional[float],
    truncation: TruncationConfig,
    param_idx: int = -1,
) -> None:
    gamma = gate.strength(theta)
    xy_factor = math.sqrt(1.0 - gamma)
    for term, coeff in list(psum.terms.items()):
        pauli = get_pauli(term, gate.qubit)
        if pauli == I:
            continue
        if pauli != Z:
            _set_or_drop(psum, term, scale(coeff, xy_factor), truncation)
            continue
        new_term = set_pauli(term, I, gate.qubit)
        new_coeff = scale(coeff, gamma)
        _set_or_drop(psum, term, scale(coeff, 1.0 - gamma), truncation)
        if not is_zero(new_coeff) and not truncation.is_truncated(new_term, new_coeff):
            aux.add(new_term, new_coeff)


__all__ = [
    "check_noise_strength",
    "NoiseChannel",
    "PauliNoise",
    "DepolarizingNoise",
    "PauliXNoise",
    "PauliYNoise",
    "PauliZNoise",
    "DephasingNoise",
    "AmplitudeDampingNoise",
    "apply_pauli_noise",
    "apply_amplitude_damping",
]
