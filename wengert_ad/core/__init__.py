# wengert_ad/core/__init__.py

"""
Core of the engine: the tape, its nodes, the tensor handle and the
backward pass.

Exports:
    Tape          : The Wengert list that records operations in order.
    use_tape      : Context manager yielding a scratch tape, reset on exit.
    Node, OpKind  : Tape entries and the operation kinds they record.
    Tensor        : Value + tape + node index; the only way to touch a tape.
    Gradient      : Result of one backward pass.
    backward      : Run a backward pass from a tensor (same as Tensor.grad()).
    graph_summary : Node/edge statistics for a tape.
"""

from .node import (
    Node, OpKind, NON_ELEMENTWISE,
    ConvolutionNode, PoolingNode, VertCatNode, FlatteningNode,
)
from .tape import Tape, use_tape
from .tensor import Tensor
from .engine import Gradient, backward
from .graph_utils import graph_summary

__all__ = [
    "Node", "OpKind", "NON_ELEMENTWISE",
    "ConvolutionNode", "PoolingNode", "VertCatNode", "FlatteningNode",
    "Tape", "use_tape",
    "Tensor",
    "Gradient", "backward",
    "graph_summary",
]
