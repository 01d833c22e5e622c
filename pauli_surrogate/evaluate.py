"""
Phase 3: Evaluation of a compiled surrogate for parameter values.

Every node is evaluated at most once per parameter vector: its value and
evaluated flag are cached in the graph. Top-level nodes are independent
entry points and are evaluated concurrently on a thread pool; shared interior
nodes are guarded only by their evaluated flag. Two workers racing on the
same node compute the same value, so no locks are taken.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .errors import ShapeError
from .log import get_logger
from .pauli_sum import PauliSum
from .surrogate import (
    TRIG_COS,
    TRIG_SIN,
    CompiledSurrogate,
    InternalNode,
    LeafNode,
    SurrogateGraph,
)

logger = get_logger(__name__)


def _check_thetas(graph: SurrogateGraph, thetas) -> np.ndarray:
    thetas = np.asarray(thetas, dtype=np.float64).reshape(-1)
    if thetas.shape[0] != graph.n_params:
        raise ShapeError(graph.n_params, thetas.shape[0])
    return thetas


def reset(graph: SurrogateGraph, roots: Optional[Iterable[int]] = None) -> None:
    """Reset evaluation flags for a new evaluation.

    Descends from `roots` (default: every root evaluated since the last reset)
    into evaluated nodes only; an unevaluated node has no evaluated ancestors.
    A partial reset keeps the cached parameter vector, so the next evaluate
    with different thetas still resets the remaining roots.
    """
    full = roots is None
    roots = list(graph.evaluated_roots if full else roots)
    evaluated = graph.evaluated
    values = graph.values
    nodes = graph.nodes

    stack = [r for r in roots if evaluated[r]]
    while stack:
        idx = stack.pop()
        if not evaluated[idx]:
            continue
        evaluated[idx] = False
        values[idx] = 0.0
        node = nodes[idx]
        if isinstance(node, InternalNode):
            stack.extend(p for p in node.parents if evaluated[p])

    if full:
        graph.evaluated_roots = set()
        graph.thetas = None
    else:
        graph.evaluated_roots.difference_update(roots)


def evaluate_node(graph: SurrogateGraph, idx: int, cos_t: Sequence[float], sin_t: Sequence[float]) -> float:
    """Evaluate one node, parents first, with an explicit stack."""
    nodes = graph.nodes
    values = graph.values
    evaluated = graph.evaluated
    if evaluated[idx]:
        return values[idx]

    stack = [idx]
    while stack:
        top = stack[-1]
        if evaluated[top]:
            stack.pop()
            continue
        node = nodes[top]

        if isinstance(node, LeafNode):
            values[top] = node.coefficient
        else:
            pending = [p for p in node.parents if not evaluated[p]]
            if pending:
                stack.extend(pending)
                continue
            value = 0.0
            for parent, trig_ind, sign in zip(node.parents, node.trig_inds, node.signs):
                if trig_ind == TRIG_COS:
                    trig_val = cos_t[node.param_idx]
                elif trig_ind == TRIG_SIN:
                    trig_val = sin_t[node.param_idx]
                else:
                    trig_val = 1.0
                value += values[parent] * trig_val * sign
            values[top] = value

        # value before flag: readers that see the flag see the value
        evaluated[top] = True
        graph.n_evaluations += 1
        stack.pop()

    return values[idx]


def evaluate(
    graph: SurrogateGraph,
    top_level_nodes: Sequence[int],
    thetas,
    *,
    max_workers: Optional[int] = None,
) -> float:
    """
    Evaluate the surrogate for `thetas` and sum the values of `top_level_nodes`.

    If the graph still caches values of a different parameter vector it is
    reset first. Calling again with the same vector reuses the cache.

    Args:
        graph: compiled SurrogateGraph
        top_level_nodes: arena indices of the surviving terms
        thetas: parameter values, len == graph.n_params
        max_workers: thread pool size; 1 evaluates sequentially

    Returns:
        Sum of the top-level node values
    """
    thetas = _check_thetas(graph, thetas)
    if graph.thetas is not None and not np.array_equal(graph.thetas, thetas):
        reset(graph)
    graph.thetas = thetas.copy()

    roots: List[int] = list(top_level_nodes)
    graph.evaluated_roots.update(roots)

    cos_t = [math.cos(t) for t in thetas]
    sin_t = [math.sin(t) for t in thetas]

    if max_workers == 1 or len(roots) <= 1:
        results = [evaluate_node(graph, r, cos_t, sin_t) for r in roots]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(evaluate_node, graph, r, cos_t, sin_t) for r in roots]
            # barrier: every root is finished before any value is read
            results = [f.result() for f in futures]

    total = 0.0
    for value in results:
        total += value
    logger.debug("Evaluated %d top-level nodes, %d node evaluations so far", len(roots), graph.n_evaluations)
    return total


def evaluate_psum(compiled: CompiledSurrogate, thetas, *, max_workers: Optional[int] = None) -> PauliSum:
    """Numeric PauliSum of a compiled surrogate at `thetas`."""
    evaluate(compiled.graph, compiled.top_level_nodes(), thetas, max_workers=max_workers)
    return compiled.psum.numeric()


__all__ = ["reset", "evaluate_node", "evaluate", "evaluate_psum"]
