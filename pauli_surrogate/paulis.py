"""
Pauli algebra on integer-encoded Pauli strings.

A term is a plain Python int with 2 bits per qubit; qubit q (0-based) lives in
bits 2q and 2q+1 with I=0, X=1, Y=2, Z=3. Ints are immutable and hashable, so
terms are used directly as dictionary keys in PauliSum.

With this encoding the product of two single-qubit Paulis is the XOR of their
codes (up to a phase), and a site is
  - non-identity  iff  lo | hi
  - X or Y        iff  lo ^ hi
  - Y or Z        iff  hi
where lo/hi are the low/high bit of the site.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

I, X, Y, Z = 0, 1, 2, 3

_SYMBOLS = "IXYZ"
_TO_INT = {"I": I, "X": X, "Y": Y, "Z": Z}

# Single-site product table: (p1, p2) -> (p1 * p2, phase)
# X*Y = iZ, Y*Z = iX, Z*X = iY and the reversed orders carry -i.
PAULI_PRODUCT_TABLE: Dict[Tuple[int, int], Tuple[int, complex]] = {
    (I, I): (I, 1), (I, X): (X, 1), (I, Y): (Y, 1), (I, Z): (Z, 1),
    (X, I): (X, 1), (Y, I): (Y, 1), (Z, I): (Z, 1),
    (X, X): (I, 1), (Y, Y): (I, 1), (Z, Z): (I, 1),
    (X, Y): (Z, 1j), (Y, X): (Z, -1j),
    (Y, Z): (X, 1j), (Z, Y): (X, -1j),
    (Z, X): (Y, 1j), (X, Z): (Y, -1j),
}


# ============================================================================
# Symbols and element access
# ============================================================================

def symbol_to_int(symbol: str) -> int:
    """'I', 'X', 'Y', 'Z' -> 0, 1, 2, 3"""
    try:
        return _TO_INT[symbol.upper()]
    except KeyError:
        raise ValueError(f"Unsupported Pauli char: {symbol}") from None


def int_to_symbol(pauli: int) -> str:
    if not 0 <= pauli <= 3:
        raise ValueError(f"Pauli code must be in 0..3, got {pauli}")
    return _SYMBOLS[pauli]


def get_pauli(term: int, qubit: int) -> int:
    """Single-qubit Pauli code of `term` on `qubit`."""
    return (term >> (2 * qubit)) & 3


def set_pauli(term: int, pauli: int, qubit: int) -> int:
    """Return `term` with the Pauli on `qubit` replaced by `pauli`."""
    shift = 2 * qubit
    return (term & ~(3 << shift)) | ((pauli & 3) << shift)


def get_paulis(term: int, qubits: Sequence[int]) -> int:
    """Pack the Paulis of `term` on `qubits` into a local index.

    The Pauli on qubits[k] lands at local position k, i.e. the local index is
    sum(p_k * 4**k). This is the index used by Clifford and transfer maps.
    """
    local = 0
    for k, q in enumerate(qubits):
        local |= get_pauli(term, q) << (2 * k)
    return local


def set_paulis(term: int, local: int, qubits: Sequence[int]) -> int:
    """Inverse of get_paulis: write a local index back onto `qubits`."""
    for k, q in enumerate(qubits):
        term = set_pauli(term, (local >> (2 * k)) & 3, q)
    return term


def term_from_string(pauli: str, qubits: Optional[Sequence[int]] = None) -> int:
    """Create a term from a string like 'XYIZ'.

    If qubits is provided, pauli length must match len(qubits) and letters map
    to those qubits. If qubits is None, indices are 0..len(pauli)-1.
    """
    if qubits is None:
        qubits = range(len(pauli))
    if len(pauli) != len(qubits):
        raise ValueError("Length of pauli string must match qubits length")
    term = 0
    for p, q in zip(pauli, qubits):
        term = set_pauli(term, symbol_to_int(p), q)
    return term


def term_to_string(term: int, n_qubits: int) -> str:
    return "".join(_SYMBOLS[get_pauli(term, q)] for q in range(n_qubits))


def term_qubit_count(term: int) -> int:
    """Smallest qubit count that can hold `term`."""
    return (term.bit_length() + 1) // 2


# ============================================================================
# Counting
# ============================================================================

@lru_cache(maxsize=None)
def _lo_mask(n_qubits: int) -> int:
    return int("01" * n_qubits, 2) if n_qubits > 0 else 0


def _lo_hi(term: int) -> Tuple[int, int]:
    mask = _lo_mask(term_qubit_count(term))
    return term & mask, (term >> 1) & mask


def _popcount(x: int) -> int:
    return bin(x).count("1")


def count_weight(term: int) -> int:
    """Number of non-identity Paulis."""
    lo, hi = _lo_hi(term)
    return _popcount(lo | hi)


def count_xy(term: int) -> int:
    """Number of X or Y Paulis."""
    lo, hi = _lo_hi(term)
    return _popcount(lo ^ hi)


def count_yz(term: int) -> int:
    """Number of Y or Z Paulis."""
    _, hi = _lo_hi(term)
    return _popcount(hi)


def count_z(term: int) -> int:
    lo, hi = _lo_hi(term)
    return _popcount(lo & hi)


def contains_x_or_y(term: int) -> bool:
    lo, hi = _lo_hi(term)
    return (lo ^ hi) != 0


def contains_y_or_z(term: int) -> bool:
    return (term >> 1) & _lo_mask(term_qubit_count(term)) != 0


def support(term: int) -> List[int]:
    """Qubits on which `term` is not the identity."""
    lo, hi = _lo_hi(term)
    nz = lo | hi
    return [q for q in range(term_qubit_count(term)) if (nz >> (2 * q)) & 1]


# ============================================================================
# Commutation and products
# ============================================================================

def commutes(term1: int, term2: int) -> bool:
    """Check if two Pauli strings commute.

    Two single-site Paulis anticommute iff (lo1 & hi2) ^ (hi1 & lo2) is set;
    the strings commute iff the number of anticommuting sites is even.
    """
    mask = _lo_mask(max(term_qubit_count(term1), term_qubit_count(term2)))
    lo1, hi1 = term1 & mask, (term1 >> 1) & mask
    lo2, hi2 = term2 & mask, (term2 >> 1) & mask
    return _popcount((lo1 & hi2) ^ (hi1 & lo2)) % 2 == 0


def pauli_product(term1: int, term2: int) -> Tuple[int, complex]:
    """
    Multiply two Pauli strings: P1 * P2
    Returns (new_term, phase) where phase is one of 1, 1j, -1, -1j.
    """
    n = max(term_qubit_count(term1), term_qubit_count(term2))
    overlap = (term1 | term1 >> 1) & (term2 | term2 >> 1) & _lo_mask(n)
    phase: complex = 1
    for q in range(n):
        if not (overlap >> (2 * q)) & 1:
            continue
        _, site_phase = PAULI_PRODUCT_TABLE[(get_pauli(term1, q), get_pauli(term2, q))]
        phase *= site_phase
    return term1 ^ term2, phase


__all__ = [
    "I",
    "X",
    "Y",
    "Z",
    "PAULI_PRODUCT_TABLE",
    "symbol_to_int",
    "int_to_symbol",
    "get_pauli",
    "set_pauli",
    "get_paulis",
    "set_paulis",
    "term_from_string",
    "term_to_string",
    "term_qubit_count",
    "count_weight",
    "count_xy",
    "count_yz",
    "count_z",
    "contains_x_or_y",
    "contains_y_or_z",
    "support",
    "commutes",
    "pauli_product",
]
