"""Truncation policy: which candidate terms are dropped during propagation."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional

from .coefficients import get_counter, is_numeric, tonumber
from .errors import ConfigurationError
from .paulis import count_weight

CustomTruncateFn = Callable[[int, Any], bool]


@dataclass(frozen=True)
class TruncationConfig:
    """
    Truncation options, checked in this order for every candidate term:
    - max_weight: drop terms with more non-identity Paulis
    - min_abs_coeff: drop numeric coefficients with a smaller magnitude
      (never applied to surrogate graph nodes)
    - max_freq / max_sins / max_cos: drop coefficients whose counters exceed these
    - custom_truncate_fn(term, coeff) -> bool: drop if it returns True
    """
    max_weight: float = math.inf
    min_abs_coeff: float = 1e-10
    max_freq: float = math.inf
    max_sins: float = math.inf
    max_cos: float = math.inf
    custom_truncate_fn: Optional[CustomTruncateFn] = None

    def __post_init__(self):
        if self.max_weight < 0:
            raise ConfigurationError("max_weight must be >= 0")
        if self.min_abs_coeff < 0:
            raise ConfigurationError("min_abs_coeff must be >= 0")
        if self.max_freq < 0 or self.max_sins < 0 or self.max_cos < 0:
            raise ConfigurationError("max_freq, max_sins and max_cos must be >= 0")

    def is_truncated(self, term: int, coeff) -> bool:
        if self.max_weight != math.inf and count_weight(term) > self.max_weight:
            return True
        if self.min_abs_coeff > 0 and is_numeric(coeff) and abs(tonumber(coeff)) < self.min_abs_coeff:
            return True
        if self.max_freq != math.inf:
            freq = get_counter(coeff, "freq")
            if freq is not None and freq > self.max_freq:
                return True
        if self.max_sins != math.inf:
            nsins = get_counter(coeff, "nsins")
            if nsins is not None and nsins > self.max_sins:
                return True
        if self.max_cos != math.inf:
            ncos = get_counter(coeff, "ncos")
            if ncos is not None and ncos > self.max_cos:
                return True
        if self.custom_truncate_fn is not None and self.custom_truncate_fn(term, coeff):
            return True
        return False


NO_TRUNCATION = TruncationConfig(min_abs_coeff=0.0)

DEFAULT_TRUNCATIONS: Dict[str, TruncationConfig] = {
    "exact": NO_TRUNCATION,
    "default": TruncationConfig(),
    "aggressive": TruncationConfig(max_weight=6, min_abs_coeff=1e-4),
}

_OPTION_NAMES = tuple(asdict(NO_TRUNCATION))


def resolve_truncation(
    config: Optional[Any] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> TruncationConfig:
    """Return a TruncationConfig from a preset name, a config or None, with overrides applied."""
    if config is None:
        base = DEFAULT_TRUNCATIONS["default"]
    elif isinstance(config, TruncationConfig):
        base = config
    elif isinstance(config, str):
        if config not in DEFAULT_TRUNCATIONS:
            raise ConfigurationError(
                f"Unknown truncation preset: {config}. Available: {sorted(DEFAULT_TRUNCATIONS)}"
            )
        base = DEFAULT_TRUNCATIONS[config]
    else:
        raise ConfigurationError(f"Invalid truncation config: {config!r}")

    if not overrides:
        return base

    unknown = sorted(set(overrides) - set(_OPTION_NAMES))
    if unknown:
        raise ConfigurationError(f"Unknown truncation options: {unknown}")
    values = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **values)


def truncate_damping_coeff(gamma: float, min_abs_coeff: float) -> CustomTruncateFn:
    """Custom truncation that anticipates noise damping.

    A term is dropped if |coeff| * exp(-gamma * weight) < min_abs_coeff.
    """
    def _truncate(term: int, coeff) -> bool:
        if not is_numeric(coeff):
            return False
        return abs(tonumber(coeff)) * math.exp(-gamma * count_weight(term)) < min_abs_coeff

    return _truncate


__all__ = [
    "TruncationConfig",
    "CustomTruncateFn",
    "NO_TRUNCATION",
    "DEFAULT_TRUNCATIONS",
    "resolve_truncation",
    "truncate_damping_coeff",
]
