"""Tests for the integer Pauli encoding and Pauli algebra."""

from __future__ import annotations

import numpy as np
import pytest

from pauli_surrogate.paulis import (
    I,
    X,
    Y,
    Z,
    commutes,
    contains_x_or_y,
    contains_y_or_z,
    count_weight,
    count_xy,
    count_yz,
    count_z,
    get_pauli,
    get_paulis,
    pauli_product,
    set_pauli,
    set_paulis,
    support,
    symbol_to_int,
    term_from_string,
    term_to_string,
)
from pauli_surrogate.transfermaps import pauli_matrix


def test_encoding_two_bits_per_qubit():
    """Qubit q lives in bits 2q and 2q+1."""
    term = term_from_string("XYIZ")
    assert get_pauli(term, 0) == X
    assert get_pauli(term, 1) == Y
    assert get_pauli(term, 2) == I
    assert get_pauli(term, 3) == Z
    assert term == X | (Y << 2) | (Z << 6)


def test_string_roundtrip_and_qubits():
    term = term_from_string("ZX", qubits=[3, 1])
    assert term_to_string(term, 4) == "IXIZ"
    with pytest.raises(ValueError):
        term_from_string("XX", qubits=[0])


def test_bad_symbol():
    with pytest.raises(ValueError):
        symbol_to_int("Q")


def test_set_pauli_and_local_indices():
    term = term_from_string("XYZI")
    assert term_to_string(set_pauli(term, I, 1), 4) == "XIZI"

    local = get_paulis(term, [2, 0])
    # qubits[0] -> local position 0
    assert local == Z | (X << 2)
    assert set_paulis(0, local, [2, 0]) == term_from_string("XIZ")


def test_counting():
    term = term_from_string("IXYZZ")
    assert count_weight(term) == 4
    assert count_xy(term) == 2
    assert count_yz(term) == 3
    assert count_z(term) == 2
    assert support(term) == [1, 2, 3, 4]
    assert contains_x_or_y(term)
    assert contains_y_or_z(term)
    assert not contains_x_or_y(term_from_string("ZIZ"))
    assert not contains_y_or_z(term_from_string("XIX"))
    assert count_weight(0) == 0


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("X", "Z", False),
        ("X", "Y", False),
        ("Z", "Z", True),
        ("XX", "ZZ", True),
        ("XZ", "ZZ", False),
        ("XYZ", "IIX", False),
        ("XIZ", "IYI", True),
    ],
)
def test_commutes(a, b, expected):
    assert commutes(term_from_string(a), term_from_string(b)) is expected


def test_single_site_products():
    """X*Y = iZ, Y*Z = iX, Z*X = iY and reversed orders give -i."""
    assert pauli_product(X, Y) == (Z, 1j)
    assert pauli_product(Y, X) == (Z, -1j)
    assert pauli_product(Y, Z) == (X, 1j)
    assert pauli_product(Z, X) == (Y, 1j)
    assert pauli_product(X, Z) == (Y, -1j)
    assert pauli_product(X, X) == (I, 1)


def test_products_match_matrices(rng):
    """pauli_product agrees with the dense matrix product on random 3-qubit strings."""
    for _ in range(30):
        a = "".join(rng.choice(list("IXYZ"), size=3))
        b = "".join(rng.choice(list("IXYZ"), size=3))
        term, phase = pauli_product(term_from_string(a), term_from_string(b))
        expected = pauli_matrix(a) @ pauli_matrix(b)
        np.testing.assert_allclose(phase * pauli_matrix(term_to_string(term, 3)), expected, atol=1e-12)
