"""Tensor DAG evaluator (GPU-first, differentiable)."""

from __future__ import annotations

from typing import Any

from ..errors import ShapeError
from .tensor_types import TensorDAGGraph, _TORCH_AVAILABLE, torch


class TensorDAGEvaluator:
    """Evaluates a TensorDAGGraph layer by layer with torch ops."""

    def __init__(self, graph: TensorDAGGraph):
        if not _TORCH_AVAILABLE:
            raise RuntimeError("PyTorch is required for tensor backend.")
        self.graph = graph

    def evaluate_tensor(self, thetas) -> Any:
        """Evaluate DAG and return a torch scalar (autograd-friendly)."""
        g = self.graph
        thetas_t = torch.as_tensor(thetas, dtype=g.node_value_init.dtype, device=g.node_value_init.device)
        thetas_t = thetas_t.reshape(-1)
        if thetas_t.numel() != g.n_params:
            raise ShapeError(g.n_params, thetas_t.numel())
        if thetas_t.numel() == 0:
            # identity edges still index a parameter
            thetas_t = torch.zeros(1, dtype=g.node_value_init.dtype, device=g.node_value_init.device)

        x = g.node_value_init.clone().unsqueeze(1)  # (N, 1)
        for layer in g.layers:
            theta_vals = thetas_t[layer.edge_param]
            trig_vals = torch.where(
                layer.edge_trig > 0,
                torch.cos(theta_vals),
                torch.where(layer.edge_trig < 0, torch.sin(theta_vals), torch.ones_like(theta_vals)),
            )
            values = layer.edge_sign * trig_vals
            contrib = values.unsqueeze(1) * x[layer.parent_idx]
            x = x.index_add(0, layer.child_idx, contrib)

        return torch.sum(x[g.final_nodes].squeeze(1) * g.final_coeff)

    def evaluate(self, thetas) -> float:
        """Evaluate DAG and return a Python float (non-differentiable)."""
        result = self.evaluate_tensor(thetas)
        return float(result.detach().cpu().item())


__all__ = ["TensorDAGEvaluator"]
