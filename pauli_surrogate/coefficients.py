"""
Coefficient kinds carried by a PauliSum.

Every coefficient kind implements the same explicit interface:

    scale(coeff, factor)      -> coeff   (numeric value scaled, counters untouched)
    merge(c1, c2)             -> coeff   (values added, counters take the minimum)
    tonumber(coeff)           -> float
    apply_cos / apply_sin     -> coeff   (multiply by cos/sin(theta) * sign)

Plain numbers are handled directly. Records derive from PathProperties and
implement the operations as methods; the module-level functions dispatch on
the coefficient type with functools.singledispatch.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, replace
from functools import singledispatch
from typing import Any, ClassVar, Dict, Optional, Tuple

from .errors import ContractError

REQUIRED_OPERATIONS = ("scale", "merge", "tonumber")


# ============================================================================
# Record base classes
# ============================================================================

class PathProperties:
    """Base class for coefficient records.

    Subclasses must override scale, merge and tonumber. apply_cos/apply_sin
    are needed as soon as the record passes through a Pauli rotation.
    """

    # Names of integer counters the truncation policy may inspect.
    counters: ClassVar[Tuple[str, ...]] = ()
    # False for coefficients without a value before evaluation (graph nodes).
    numeric: ClassVar[bool] = True
    # Gate classes this kind can pass through; None means any registered gate.
    supported_gates: ClassVar[Optional[Tuple[type, ...]]] = None

    def scale(self, factor: float) -> "PathProperties":
        raise ContractError(f"{type(self).__name__} does not implement scale")

    def merge(self, other: "PathProperties") -> "PathProperties":
        raise ContractError(f"{type(self).__name__} does not implement merge")

    def tonumber(self) -> float:
        raise ContractError(f"{type(self).__name__} does not implement tonumber")

    def apply_cos(self, theta: float, sign: int = 1, param_idx: int = -1) -> "PathProperties":
        raise ContractError(f"{type(self).__name__} does not implement apply_cos")

    def apply_sin(self, theta: float, sign: int = 1, param_idx: int = -1) -> "PathProperties":
        raise ContractError(f"{type(self).__name__} does not implement apply_sin")

    def is_zero(self) -> bool:
        return self.tonumber() == 0

    def counter(self, name: str) -> Optional[int]:
        if name not in type(self).counters:
            return None
        return getattr(self, name)


class CounterPathProperties(PathProperties):
    """Numeric record with integer counters.

    Concrete subclasses are dataclasses with a ``coeff`` field plus one field
    per name in ``counters``. The arithmetic below is written once against
    that declaration:

      - scale multiplies ``coeff`` only
      - merge adds ``coeff`` and keeps the minimum of every counter
      - apply_cos/apply_sin bump ``ncos``/``nsins`` and ``freq`` when declared
    """

    coeff: Any

    def scale(self, factor: float) -> "CounterPathProperties":
        return replace(self, coeff=self.coeff * factor)

    def merge(self, other: "CounterPathProperties") -> "CounterPathProperties":
        if type(other) is not type(self):
            raise ContractError(
                f"Cannot merge {type(self).__name__} with {type(other).__name__}"
            )
        mins = {name: min(getattr(self, name), getattr(other, name)) for name in self.counters}
        return replace(self, coeff=self.coeff + other.coeff, **mins)

    def tonumber(self) -> float:
        return self.coeff

    def _bumped(self, *names: str) -> Dict[str, int]:
        return {name: getattr(self, name) + 1 for name in names if name in self.counters}

    def apply_cos(self, theta: float, sign: int = 1, param_idx: int = -1) -> "CounterPathProperties":
        return replace(self, coeff=self.coeff * math.cos(theta) * sign, **self._bumped("ncos", "freq"))

    def apply_sin(self, theta: float, sign: int = 1, param_idx: int = -1) -> "CounterPathProperties":
        return replace(self, coeff=self.coeff * math.sin(theta) * sign, **self._bumped("nsins", "freq"))


@dataclass
class PauliFreqTracker(CounterPathProperties):
    """
    Numeric coefficient that tracks how often it passed through rotations.
    - nsins: number of sin factors picked up
    - ncos: number of cos factors picked up
    - freq: nsins + ncos along the least constrained path
    """
    coeff: float = 0.0
    nsins: int = 0
    ncos: int = 0
    freq: int = 0

    counters: ClassVar[Tuple[str, ...]] = ("nsins", "ncos", "freq")

    def __repr__(self):
        return f"PauliFreqTracker({self.coeff}, nsins={self.nsins}, ncos={self.ncos}, freq={self.freq})"


# ============================================================================
# Dispatching interface
# ============================================================================

def _unsupported(op: str, coeff: Any) -> ContractError:
    return ContractError(
        f"Coefficient of type {type(coeff).__name__} does not support '{op}'; "
        "use a number or a PathProperties subclass"
    )


@singledispatch
def scale(coeff, factor):
    raise _unsupported("scale", coeff)


@scale.register(numbers.Number)
def _(coeff, factor):
    return coeff * factor


@scale.register(PathProperties)
def _(coeff, factor):
    return coeff.scale(factor)


@singledispatch
def merge(coeff, other):
    raise _unsupported("merge", coeff)


@merge.register(numbers.Number)
def _(coeff, other):
    if not isinstance(other, numbers.Number):
        raise ContractError(f"Cannot merge a number with {type(other).__name__}")
    return coeff + other


@merge.register(PathProperties)
def _(coeff, other):
    return coeff.merge(other)


@singledispatch
def tonumber(coeff) -> float:
    raise _unsupported("tonumber", coeff)


@tonumber.register(numbers.Number)
def _(coeff) -> float:
    return coeff


@tonumber.register(PathProperties)
def _(coeff) -> float:
    return coeff.tonumber()


@singledispatch
def apply_cos(coeff, theta, sign=1, param_idx=-1):
    raise _unsupported("apply_cos", coeff)


@apply_cos.register(numbers.Number)
def _(coeff, theta, sign=1, param_idx=-1):
    return coeff * math.cos(theta) * sign


@apply_cos.register(PathProperties)
def _(coeff, theta, sign=1, param_idx=-1):
    return coeff.apply_cos(theta, sign, param_idx)


@singledispatch
def apply_sin(coeff, theta, sign=1, param_idx=-1):
    raise _unsupported("apply_sin", coeff)


@apply_sin.register(numbers.Number)
def _(coeff, theta, sign=1, param_idx=-1):
    return coeff * math.sin(theta) * sign


@apply_sin.register(PathProperties)
def _(coeff, theta, sign=1, param_idx=-1):
    return coeff.apply_sin(theta, sign, param_idx)


def is_zero(coeff) -> bool:
    """Exactly-zero test used when merging into a PauliSum."""
    if isinstance(coeff, PathProperties):
        return coeff.is_zero()
    return coeff == 0


def is_numeric(coeff) -> bool:
    """True if the coefficient has a value without evaluating anything."""
    if isinstance(coeff, PathProperties):
        return type(coeff).numeric
    return isinstance(coeff, numbers.Number)


def get_counter(coeff, name: str) -> Optional[int]:
    """Value of counter `name`, or None if the coefficient does not carry it."""
    if isinstance(coeff, PathProperties):
        return coeff.counter(name)
    return None


def check_coefficient_kind(kind: type) -> type:
    """Raise ContractError unless `kind` implements the coefficient interface."""
    if not isinstance(kind, type):
        raise ContractError(f"Coefficient kind must be a class, got {kind!r}")
    if issubclass(kind, numbers.Number):
        return kind
    if not issubclass(kind, PathProperties):
        raise ContractError(
            f"{kind.__name__} is neither a number type nor a PathProperties subclass"
        )
    missing = [
        name for name in REQUIRED_OPERATIONS
        if getattr(kind, name) is getattr(PathProperties, name)
    ]
    if missing:
        raise ContractError(f"{kind.__name__} does not implement: {', '.join(missing)}")
    return kind


__all__ = [
    "PathProperties",
    "CounterPathProperties",
    "PauliFreqTracker",
    "scale",
    "merge",
    "tonumber",
    "apply_cos",
    "apply_sin",
    "is_zero",
    "is_numeric",
    "get_counter",
    "check_coefficient_kind",
]
