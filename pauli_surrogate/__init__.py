"""Pauli propagation with a compile-once, evaluate-many surrogate."""

from .errors import ConfigurationError, ContractError, PauliPropagationError, ShapeError
from .log import get_logger, set_log_level
from .paulis import (
    I,
    X,
    Y,
    Z,
    commutes,
    count_weight,
    get_pauli,
    pauli_product,
    term_from_string,
    term_to_string,
)
from .coefficients import (
    PathProperties,
    CounterPathProperties,
    PauliFreqTracker,
    apply_cos,
    apply_sin,
    merge,
    scale,
    tonumber,
)
from .pauli_sum import (
    PauliSum,
    overlap_with_computational,
    overlap_with_max_mixed,
    overlap_with_plus,
    overlap_with_zero,
    zero_filter,
)
from .gates import (
    CliffordGate,
    FrozenGate,
    Gate,
    ParametrizedGate,
    PauliRotation,
    StaticGate,
    TGate,
    TransferMapGate,
    clifford_map,
    compose_clifford_maps,
    count_parameters,
    create_clifford_map,
    freeze,
    register_clifford,
    reset_clifford_map,
)
from .truncation import DEFAULT_TRUNCATIONS, NO_TRUNCATION, TruncationConfig, resolve_truncation
from .propagation import propagate, propagate_inplace, register_gate, unregister_gate
# registers the noise handlers
from .noise import (
    AmplitudeDampingNoise,
    DephasingNoise,
    DepolarizingNoise,
    PauliXNoise,
    PauliYNoise,
    PauliZNoise,
)
from .surrogate import CompiledSurrogate, NodePathProperties, SurrogateGraph, compile_surrogate
from .evaluate import evaluate, evaluate_psum, reset

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ContractError",
    "PauliPropagationError",
    "ShapeError",
    "get_logger",
    "set_log_level",
    "I",
    "X",
    "Y",
    "Z",
    "commutes",
    "count_weight",
    "get_pauli",
    "pauli_product",
    "term_from_string",
    "term_to_string",
    "PathProperties",
    "CounterPathProperties",
    "PauliFreqTracker",
    "apply_cos",
    "apply_sin",
    "merge",
    "scale",
    "tonumber",
    "PauliSum",
    "overlap_with_computational",
    "overlap_with_max_mixed",
    "overlap_with_plus",
    "overlap_with_zero",
    "zero_filter",
    "CliffordGate",
    "FrozenGate",
    "Gate",
    "ParametrizedGate",
    "PauliRotation",
    "StaticGate",
    "TGate",
    "TransferMapGate",
    "clifford_map",
    "compose_clifford_maps",
    "count_parameters",
    "create_clifford_map",
    "freeze",
    "register_clifford",
    "reset_clifford_map",
    "DEFAULT_TRUNCATIONS",
    "NO_TRUNCATION",
    "TruncationConfig",
    "resolve_truncation",
    "propagate",
    "propagate_inplace",
    "register_gate",
    "unregister_gate",
    "AmplitudeDampingNoise",
    "DephasingNoise",
    "DepolarizingNoise",
    "PauliXNoise",
    "PauliYNoise",
    "PauliZNoise",
    "CompiledSurrogate",
    "NodePathProperties",
    "SurrogateGraph",
    "compile_surrogate",
    "evaluate",
    "evaluate_psum",
    "reset",
    "__version__",
]
