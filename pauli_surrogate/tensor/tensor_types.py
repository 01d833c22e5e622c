"""Tensor graph data structures (GPU-ready)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

try:
    import torch
    _TORCH_AVAILABLE = True
except Exception:  # pragma: no cover - optional dependency
    torch = None
    _TORCH_AVAILABLE = False


@dataclass
class LayerEdgesTensor:
    """Edges whose child node sits on topological level `level`."""
    level: int
    parent_idx: Any
    child_idx: Any
    edge_sign: Any
    edge_trig: Any
    edge_param: Any


@dataclass
class TensorDAGGraph:
    """Surrogate graph in layered tensor form.

    Leaves are on level 0; every internal node is one level above its
    deepest parent, so evaluating the layers in order visits parents first.
    """
    num_nodes: int
    n_params: int
    node_value_init: Any
    final_nodes: Any
    final_coeff: Any
    layers: List[LayerEdgesTensor]

    def to(self, device) -> "TensorDAGGraph":
        layers = [
            LayerEdgesTensor(
                level=layer.level,
                parent_idx=layer.parent_idx.to(device),
                child_idx=layer.child_idx.to(device),
                edge_sign=layer.edge_sign.to(device),
                edge_trig=layer.edge_trig.to(device),
                edge_param=layer.edge_param.to(device),
            )
            for layer in self.layers
        ]
        return TensorDAGGraph(
            num_nodes=self.num_nodes,
            n_params=self.n_params,
            node_value_init=self.node_value_init.to(device),
            final_nodes=self.final_nodes.to(device),
            final_coeff=self.final_coeff.to(device),
            layers=layers,
        )


__all__ = ["LayerEdgesTensor", "TensorDAGGraph"]
