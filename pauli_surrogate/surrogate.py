"""
Pauli Propagation Surrogate

Build once, evaluate many: the propagation engine is run with graph-node
coefficients, so instead of numbers it records how every surviving term
depends on the circuit parameters.

Phase 1: compile_surrogate builds the computation graph
Phase 2: zero_filter / prune drop paths that cannot contribute
Phase 3: evaluate.py evaluates the graph for a parameter vector
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .coefficients import PathProperties, tonumber
from .errors import ConfigurationError, ContractError
from .gates import CliffordGate, Gate, PauliRotation, count_parameters
from .log import get_logger
from .pauli_sum import PauliSum, zero_filter
from .paulis import contains_x_or_y
from .propagation import _propagate_checked, check_circuit
from .truncation import resolve_truncation

logger = get_logger(__name__)

TRIG_COS = 1
TRIG_SIN = -1
TRIG_IDENTITY = 0


# ============================================================================
# 1. Graph nodes and arena
# ============================================================================

@dataclass
class LeafNode:
    """
    Terminal node for a term of the observable.
    Backward evaluation bottoms out here.
    """
    term: int
    coefficient: float = 1.0

    def __repr__(self):
        return f"Leaf({self.term:#x}, coeff={self.coefficient})"


@dataclass
class InternalNode:
    """
    Node created by a Pauli rotation.
    - parents: arena indices of parent nodes
    - trig_inds: per parent, TRIG_COS (+1), TRIG_SIN (-1) or TRIG_IDENTITY (0)
    - signs: ±1 per parent
    - param_idx: parameter index in the theta array
    """
    parents: List[int] = field(default_factory=list)
    trig_inds: List[int] = field(default_factory=list)
    signs: List[int] = field(default_factory=list)
    param_idx: int = -1

    def __repr__(self):
        return f"Internal(θ[{self.param_idx}], {len(self.parents)} parents)"


Node = Union[LeafNode, InternalNode]


class SurrogateGraph:
    """
    Arena holding every node of one compiled surrogate.

    Nodes refer to their parents by index. The per-node cache (values,
    evaluated) is valid for the parameter vector stored in `thetas`.
    """

    def __init__(self, n_params: int = 0):
        self.n_params = int(n_params)
        self.nodes: List[Node] = []
        self.values: List[float] = []
        self.evaluated: List[bool] = []
        # parameter vector the cache was computed for, None if nothing is cached
        self.thetas: Optional[np.ndarray] = None
        # roots evaluated since the last reset
        self.evaluated_roots: set = set()
        # number of node values computed, for profiling and tests
        self.n_evaluations = 0

    def __len__(self):
        return len(self.nodes)

    def __repr__(self):
        n_leaves = sum(isinstance(n, LeafNode) for n in self.nodes)
        return f"SurrogateGraph({len(self.nodes)} nodes, {n_leaves} leaves, {self.n_params} params)"

    def _append(self, node: Node) -> int:
        self.nodes.append(node)
        self.values.append(0.0)
        self.evaluated.append(False)
        return len(self.nodes) - 1

    def add_leaf(self, term: int, coefficient: float) -> int:
        return self._append(LeafNode(term, float(coefficient)))

    def add_internal(self, parents: List[int], trig_inds: List[int], signs: List[int], param_idx: int = -1) -> int:
        if not (len(parents) == len(trig_inds) == len(signs)):
            raise ValueError("parents, trig_inds and signs must have equal length")
        if any(p >= len(self.nodes) for p in parents):
            raise ValueError("parents must exist before their children")
        return self._append(InternalNode(list(parents), list(trig_inds), list(signs), param_idx))

    def multiply_sign(self, idx: int, sign: int) -> None:
        """Multiply a sign into a live node (one not yet used as a parent)."""
        node = self.nodes[idx]
        if isinstance(node, LeafNode):
            node.coefficient *= sign
        else:
            node.signs = [s * sign for s in node.signs]

    def merge_nodes(self, idx1: int, idx2: int) -> int:
        """Merge node idx2 into node idx1 and return the surviving node.

        Two rotation nodes of the same parameter are compacted by appending
        the parent list of idx2 to idx1. Leaves are attached as identity
        parents. Any other pair gets a fresh identity node on top.
        """
        n1, n2 = self.nodes[idx1], self.nodes[idx2]
        if isinstance(n1, LeafNode) and isinstance(n2, LeafNode):
            n1.coefficient += n2.coefficient
            return idx1
        if isinstance(n1, InternalNode) and isinstance(n2, LeafNode):
            n1.parents.append(idx2)
            n1.trig_inds.append(TRIG_IDENTITY)
            n1.signs.append(1)
            return idx1
        if isinstance(n1, LeafNode) and isinstance(n2, InternalNode):
            return self.merge_nodes(idx2, idx1)
        if n1.param_idx == n2.param_idx:
            n1.parents.extend(n2.parents)
            n1.trig_inds.extend(n2.trig_inds)
            n1.signs.extend(n2.signs)
            return idx1
        return self.add_internal([idx1, idx2], [TRIG_IDENTITY, TRIG_IDENTITY], [1, 1])

    def reachable(self, roots: Sequence[int]) -> List[int]:
        """Indices of all nodes reachable from `roots`, in ascending order."""
        seen = set()
        stack = list(roots)
        while stack:
            idx = stack.pop()
            if idx in seen:
                continue
            seen.add(idx)
            node = self.nodes[idx]
            if isinstance(node, InternalNode):
                stack.extend(p for p in node.parents if p not in seen)
        return sorted(seen)

    def subgraph(self, roots: Sequence[int]) -> Tuple["SurrogateGraph", Dict[int, int]]:
        """Copy of the graph restricted to nodes reachable from `roots`.

        Returns the new graph and the old -> new index mapping.
        """
        keep = self.reachable(roots)
        remap = {old: new for new, old in enumerate(keep)}
        sub = SurrogateGraph(self.n_params)
        for old in keep:
            node = self.nodes[old]
            if isinstance(node, LeafNode):
                sub._append(LeafNode(node.term, node.coefficient))
            else:
                sub._append(InternalNode(
                    [remap[p] for p in node.parents],
                    list(node.trig_inds),
                    list(node.signs),
                    node.param_idx,
                ))
        return sub, remap


# ============================================================================
# 2. Graph-node coefficient
# ============================================================================

@dataclass(eq=False)
class NodePathProperties(PathProperties):
    """
    Wrapper carrying a graph node instead of a numerical coefficient.
    This is the "surrogate" coefficient type.
    """
    graph: SurrogateGraph = field(repr=False)
    node: int
    nsins: int = 0
    ncos: int = 0
    freq: int = 0

    counters: ClassVar[Tuple[str, ...]] = ("nsins", "ncos", "freq")
    numeric: ClassVar[bool] = False
    supported_gates: ClassVar[Tuple[type, ...]] = (PauliRotation, CliffordGate)

    def __repr__(self):
        return f"Path({type(self.graph.nodes[self.node]).__name__}, freq={self.freq})"

    def scale(self, factor) -> "NodePathProperties":
        if factor not in (1, -1):
            raise ContractError(f"Graph nodes can only be scaled by ±1, got {factor}")
        self.graph.multiply_sign(self.node, int(factor))
        return self

    def merge(self, other: "NodePathProperties") -> "NodePathProperties":
        if not isinstance(other, NodePathProperties) or other.graph is not self.graph:
            raise ContractError("Can only merge nodes of the same surrogate graph")
        return NodePathProperties(
            self.graph,
            self.graph.merge_nodes(self.node, other.node),
            min(self.nsins, other.nsins),
            min(self.ncos, other.ncos),
            min(self.freq, other.freq),
        )

    def tonumber(self) -> float:
        if not self.graph.evaluated[self.node]:
            raise ValueError("Surrogate node has not been evaluated yet")
        return self.graph.values[self.node]

    def is_zero(self) -> bool:
        return False

    def apply_cos(self, theta, sign=1, param_idx=-1) -> "NodePathProperties":
        node = self.graph.add_internal([self.node], [TRIG_COS], [sign], param_idx)
        return NodePathProperties(self.graph, node, self.nsins, self.ncos + 1, self.freq + 1)

    def apply_sin(self, theta, sign=1, param_idx=-1) -> "NodePathProperties":
        node = self.graph.add_internal([self.node], [TRIG_SIN], [sign], param_idx)
        return NodePathProperties(self.graph, node, self.nsins + 1, self.ncos, self.freq + 1)


# ============================================================================
# 3. Compilation
# ============================================================================

@dataclass
class CompiledSurrogate:
    """Surrogate graph plus the propagated PauliSum whose coefficients point into it."""
    graph: SurrogateGraph
    psum: PauliSum

    def __repr__(self):
        return f"CompiledSurrogate({len(self.psum)} terms, {len(self.graph)} nodes)"

    @property
    def n_params(self) -> int:
        return self.graph.n_params

    def top_level_nodes(self) -> List[int]:
        return [coeff.node for coeff in self.psum.terms.values()]

    def zero_filter(self) -> "CompiledSurrogate":
        """Keep only terms contributing to <0|...|0>; the graph is shared."""
        return CompiledSurrogate(self.graph, zero_filter(self.psum))

    def prune(self) -> "CompiledSurrogate":
        """Rebuild the arena with only the nodes the surviving terms depend on."""
        sub, remap = self.graph.subgraph(self.top_level_nodes())
        psum = PauliSum(self.psum.n_qubits)
        for term, coeff in self.psum.terms.items():
            psum.terms[term] = NodePathProperties(sub, remap[coeff.node], coeff.nsins, coeff.ncos, coeff.freq)
        logger.debug("Pruned surrogate graph: %d -> %d nodes", len(self.graph), len(sub))
        return CompiledSurrogate(sub, psum)

    def evaluate(self, thetas, *, max_workers: Optional[int] = None) -> float:
        """Sum of the values of all top-level nodes."""
        from .evaluate import evaluate

        return evaluate(self.graph, self.top_level_nodes(), thetas, max_workers=max_workers)

    def evaluate_psum(self, thetas, *, max_workers: Optional[int] = None) -> PauliSum:
        """Numeric PauliSum at `thetas`."""
        from .evaluate import evaluate_psum

        return evaluate_psum(self, thetas, max_workers=max_workers)

    def expectation(self, thetas, *, max_workers: Optional[int] = None) -> float:
        """<0|U† O U|0>: sum over the terms without X or Y."""
        from .evaluate import evaluate

        roots = [c.node for t, c in self.psum.terms.items() if not contains_x_or_y(t)]
        return evaluate(self.graph, roots, thetas, max_workers=max_workers)


def check_surrogate_circuit(circuit: Sequence[Gate]) -> None:
    for gate in circuit:
        if not isinstance(gate, NodePathProperties.supported_gates):
            raise ConfigurationError(
                "The surrogate only accepts CliffordGate and PauliRotation gates, "
                f"got {type(gate).__name__}"
            )


def compile_surrogate(
    circuit: Sequence[Gate],
    observable: PauliSum,
    *,
    truncation=None,
    progress: bool = False,
    **overrides,
) -> CompiledSurrogate:
    """
    Phase 1: Build the propagation graph (without parameter values)

    Args:
        circuit: PauliRotation and CliffordGate gates in Schrödinger order
        observable: PauliSum with numeric coefficients
        truncation: TruncationConfig, preset name or None; min_abs_coeff does
            not apply to graph nodes
        progress: show a tqdm progress bar
        **overrides: truncation options (max_weight, max_freq, max_sins, max_cos, ...)

    Returns:
        CompiledSurrogate with NodePathProperties coefficients
    """
    check_surrogate_circuit(circuit)
    config = resolve_truncation(truncation, overrides)

    n_params = count_parameters(circuit)
    graph = SurrogateGraph(n_params)
    psum: PauliSum = PauliSum(observable.n_qubits)
    for term, coeff in observable.terms.items():
        psum.terms[term] = NodePathProperties(graph, graph.add_leaf(term, tonumber(coeff)))
    check_circuit(circuit, psum)

    # rotation nodes only record param_idx, the values are never read
    placeholder = np.full(n_params, np.nan)
    _propagate_checked(circuit, psum, placeholder, config, progress)
    logger.debug("Compiled surrogate: %d terms, %d nodes", len(psum), len(graph))
    return CompiledSurrogate(graph, psum)


__all__ = [
    "TRIG_COS",
    "TRIG_SIN",
    "TRIG_IDENTITY",
    "LeafNode",
    "InternalNode",
    "SurrogateGraph",
    "NodePathProperties",
    "CompiledSurrogate",
    "check_surrogate_circuit",
    "compile_surrogate",
]
