"""Exception types raised by the propagation engine and the surrogate."""

from __future__ import annotations


class PauliPropagationError(Exception):
    """Base class for all errors raised by pauli_surrogate."""


class ConfigurationError(PauliPropagationError, ValueError):
    """A gate kind is incompatible with the active coefficient kind, or a
    configuration name / option is unknown."""


class ShapeError(PauliPropagationError, ValueError):
    """Parameter vector length does not match the circuit's parameter count."""

    def __init__(self, expected: int, got: int, what: str = "thetas"):
        self.expected = int(expected)
        self.got = int(got)
        super().__init__(f"{what} has length {self.got}, expected {self.expected}")


class ContractError(PauliPropagationError, TypeError):
    """A coefficient kind lacks one of the required operations
    (scale, merge, tonumber)."""


__all__ = [
    "PauliPropagationError",
    "ConfigurationError",
    "ShapeError",
    "ContractError",
]
