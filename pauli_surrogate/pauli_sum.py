"""
PauliSum: sparse mapping from integer-encoded Pauli strings to coefficients,
plus the state overlaps used to read expectation values off a propagated sum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, TypeVar

from .coefficients import check_coefficient_kind, is_numeric, is_zero, merge, tonumber
from .log import get_logger
from .paulis import (
    contains_x_or_y,
    contains_y_or_z,
    get_pauli,
    term_from_string,
    term_qubit_count,
    term_to_string,
    Z,
)

logger = get_logger(__name__)

CoeffT = TypeVar("CoeffT")


@dataclass
class PauliSum(Generic[CoeffT]):
    """
    Collection of Pauli strings with coefficients.
    n_qubits: fixed for the lifetime of the sum
    terms: Dict[term, coefficient]; coefficients are numbers, PauliFreqTracker
           records or surrogate NodePathProperties
    """
    n_qubits: int
    terms: Dict[int, CoeffT] = field(default_factory=dict)

    def __post_init__(self):
        if self.n_qubits < 1:
            raise ValueError("n_qubits must be >= 1")
        for term in self.terms:
            self._check_width(term)

    def _check_width(self, term: int) -> None:
        if term < 0 or term_qubit_count(term) > self.n_qubits:
            raise ValueError(
                f"Term {term:#x} does not fit into {self.n_qubits} qubits"
            )

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------
    def add(self, term: int, coeff: CoeffT) -> None:
        """Add or merge a term.

        On collision the coefficients are merged; an entry whose merged
        coefficient is exactly zero is removed. An exactly-zero numeric
        coefficient is never inserted.
        """
        existing = self.terms.get(term)
        if existing is None:
            self._check_width(term)
            if is_numeric(coeff) and is_zero(coeff):
                return
            self.terms[term] = coeff
            return
        merged = merge(existing, coeff)
        if is_zero(merged):
            del self.terms[term]
        else:
            self.terms[term] = merged

    def add_from_str(self, pauli: str, coeff: CoeffT, qubits: Optional[Sequence[int]] = None) -> None:
        """Add a term using a Pauli string like 'XYIZ'."""
        self.add(term_from_string(pauli, qubits=qubits), coeff)

    def set(self, term: int, coeff: CoeffT) -> None:
        self._check_width(term)
        self.terms[term] = coeff

    def remove(self, term: int) -> None:
        self.terms.pop(term, None)

    def clear(self) -> None:
        self.terms.clear()

    def merge_from(self, other: "PauliSum") -> None:
        for term, coeff in other.terms.items():
            self.add(term, coeff)

    # ------------------------------------------------------------------
    # access
    # ------------------------------------------------------------------
    def get(self, term: int, default=0.0):
        return self.terms.get(term, default)

    def get_from_str(self, pauli: str, qubits: Optional[Sequence[int]] = None, default=0.0):
        return self.get(term_from_string(pauli, qubits=qubits), default)

    def items(self) -> Iterable[Tuple[int, CoeffT]]:
        return self.terms.items()

    def copy(self) -> "PauliSum[CoeffT]":
        return PauliSum(self.n_qubits, dict(self.terms))

    def topaulistrings(self) -> Dict[str, CoeffT]:
        return {term_to_string(t, self.n_qubits): c for t, c in self.terms.items()}

    def numeric(self) -> "PauliSum[float]":
        """Same terms with every coefficient read out as a number."""
        return PauliSum(self.n_qubits, {t: tonumber(c) for t, c in self.terms.items()})

    def wrap_coefficients(self, kind: type) -> "PauliSum":
        """Return a copy with every coefficient wrapped as ``kind(coeff)``."""
        check_coefficient_kind(kind)
        return PauliSum(self.n_qubits, {t: kind(c) for t, c in self.terms.items()})

    @classmethod
    def from_dict(cls, n_qubits: int, terms: Mapping[str, CoeffT]) -> "PauliSum[CoeffT]":
        """Build from {"XYZ": coeff} with strings of length n_qubits."""
        psum: PauliSum = cls(n_qubits)
        for pauli, coeff in terms.items():
            if len(pauli) != n_qubits:
                raise ValueError(f"Pauli string '{pauli}' must have length {n_qubits}")
            psum.add_from_str(pauli, coeff)
        return psum

    def __len__(self):
        return len(self.terms)

    def __iter__(self) -> Iterator[Tuple[int, CoeffT]]:
        return iter(self.terms.items())

    def __contains__(self, term: int) -> bool:
        return term in self.terms

    def __repr__(self):
        return f"PauliSum({self.n_qubits} qubits, {len(self.terms)} terms)"


# ============================================================================
# Filters
# ============================================================================

def filter_terms(psum: PauliSum, keep: Callable[[int, object], bool]) -> PauliSum:
    filtered = PauliSum(psum.n_qubits)
    for term, coeff in psum.terms.items():
        if keep(term, coeff):
            filtered.terms[term] = coeff
    return filtered


def zero_filter(psum: PauliSum) -> PauliSum:
    """
    Keep only terms contributing to <0|...|0>, i.e. terms without X or Y.
    On a surrogate this also drops every graph path that cannot contribute.
    """
    filtered = filter_terms(psum, lambda term, _: not contains_x_or_y(term))
    logger.debug("Zero filtering: %d -> %d terms", len(psum), len(filtered))
    return filtered


# ============================================================================
# State overlaps
# ============================================================================

def overlap_by_orthogonality(psum: PauliSum, orthogonal: Callable[[int], bool]) -> float:
    """Sum the coefficients of all terms with unit overlap.

    `orthogonal(term)` must return True for terms whose overlap with the state
    is zero; every remaining term is assumed to have overlap one.
    """
    total = 0.0
    for term, coeff in psum.terms.items():
        if not orthogonal(term):
            total += tonumber(coeff)
    return total


def overlap_with_zero(psum: PauliSum) -> float:
    """<0...0| O |0...0>"""
    return overlap_by_orthogonality(psum, contains_x_or_y)


def overlap_with_plus(psum: PauliSum) -> float:
    """<+...+| O |+...+>"""
    return overlap_by_orthogonality(psum, contains_y_or_z)


def overlap_with_computational(psum: PauliSum, one_bits: Iterable[int]) -> float:
    """<b| O |b> for the computational basis state with qubits `one_bits` set to 1."""
    ones = list(one_bits)
    total = 0.0
    for term, coeff in psum.terms.items():
        if contains_x_or_y(term):
            continue
        n_flips = sum(1 for q in ones if get_pauli(term, q) == Z)
        total += tonumber(coeff) * (-1) ** n_flips
    return total


def overlap_with_max_mixed(psum: PauliSum) -> float:
    """Tr(O rho) for rho = I / 2^n: only the identity term survives."""
    return tonumber(psum.get(0, 0.0))


__all__ = [
    "PauliSum",
    "filter_terms",
    "zero_filter",
    "overlap_by_orthogonality",
    "overlap_with_zero",
    "overlap_with_plus",
    "overlap_with_computational",
    "overlap_with_max_mixed",
]
