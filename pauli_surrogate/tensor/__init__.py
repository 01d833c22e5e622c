"""Torch backend for compiled surrogates (optional, needs PyTorch)."""

from .tensor_types import LayerEdgesTensor, TensorDAGGraph
from .tensor_build import compiled_to_tensor, to_tensor_graph
from .tensor_eval import TensorDAGEvaluator

__all__ = [
    "LayerEdgesTensor",
    "TensorDAGGraph",
    "to_tensor_graph",
    "compiled_to_tensor",
    "TensorDAGEvaluator",
]
