"""Export of a SurrogateGraph into the layered tensor form."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..paulis import contains_x_or_y
from ..surrogate import CompiledSurrogate, LeafNode, SurrogateGraph
from .tensor_types import LayerEdgesTensor, TensorDAGGraph, _TORCH_AVAILABLE, torch


def _node_levels(graph: SurrogateGraph, keep: Sequence[int]) -> Dict[int, int]:
    """Topological level per node: 0 for leaves, 1 + max(parent levels) otherwise."""
    level: Dict[int, int] = {}
    for idx in keep:
        stack = [idx]
        while stack:
            top = stack[-1]
            if top in level:
                stack.pop()
                continue
            node = graph.nodes[top]
            if isinstance(node, LeafNode):
                level[top] = 0
                stack.pop()
                continue
            pending = [p for p in node.parents if p not in level]
            if pending:
                stack.extend(pending)
                continue
            level[top] = 1 + max(level[p] for p in node.parents)
            stack.pop()
    return level


def to_tensor_graph(
    graph: SurrogateGraph,
    roots: Sequence[int],
    weights: Optional[Sequence[float]] = None,
    *,
    dtype: Any = None,
    device: str = "cpu",
) -> TensorDAGGraph:
    """Layered tensor form of the part of `graph` reachable from `roots`.

    The evaluated value is sum_k weights[k] * value(roots[k]); weights
    default to one.
    """
    if not _TORCH_AVAILABLE:
        raise RuntimeError("PyTorch is required for tensor backend.")
    if dtype is None:
        dtype = torch.float64
    if weights is not None and len(weights) != len(roots):
        raise ValueError("weights must have the same length as roots")

    keep = graph.reachable(roots)
    remap = {old: new for new, old in enumerate(keep)}
    level = _node_levels(graph, keep)

    init = [0.0] * len(keep)
    by_level: Dict[int, List[List[int]]] = {}
    for old in keep:
        node = graph.nodes[old]
        if isinstance(node, LeafNode):
            init[remap[old]] = node.coefficient
            continue
        edges = by_level.setdefault(level[old], [[], [], [], [], []])
        param = max(node.param_idx, 0)
        for parent, trig_ind, sign in zip(node.parents, node.trig_inds, node.signs):
            edges[0].append(remap[parent])
            edges[1].append(remap[old])
            edges[2].append(sign)
            edges[3].append(trig_ind)
            edges[4].append(param)

    layers = []
    for lvl in sorted(by_level):
        parent_idx, child_idx, sign, trig, param = by_level[lvl]
        layers.append(LayerEdgesTensor(
            level=lvl,
            parent_idx=torch.tensor(parent_idx, dtype=torch.long, device=device),
            child_idx=torch.tensor(child_idx, dtype=torch.long, device=device),
            edge_sign=torch.tensor(sign, dtype=dtype, device=device),
            edge_trig=torch.tensor(trig, dtype=torch.int8, device=device),
            edge_param=torch.tensor(param, dtype=torch.long, device=device),
        ))

    if weights is None:
        weights = [1.0] * len(roots)
    return TensorDAGGraph(
        num_nodes=len(keep),
        n_params=graph.n_params,
        node_value_init=torch.tensor(init, dtype=dtype, device=device),
        final_nodes=torch.tensor([remap[r] for r in roots], dtype=torch.long, device=device),
        final_coeff=torch.tensor(list(weights), dtype=dtype, device=device),
        layers=layers,
    )


def compiled_to_tensor(
    compiled: CompiledSurrogate,
    *,
    zero_state: bool = True,
    dtype: Any = None,
    device: str = "cpu",
) -> TensorDAGGraph:
    """Tensor form of a compiled surrogate.

    With zero_state=True only the terms contributing to <0|...|0> are kept,
    so evaluating the tensor graph gives the expectation value.
    """
    roots = [
        coeff.node for term, coeff in compiled.psum.terms.items()
        if not (zero_state and contains_x_or_y(term))
    ]
    return to_tensor_graph(compiled.graph, roots, dtype=dtype, device=device)


__all__ = ["to_tensor_graph", "compiled_to_tensor"]
