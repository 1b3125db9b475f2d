# wengert_ad/core/node.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .. import arrays


class OpKind(Enum):
    LEAF = "leaf"
    ELEMENTWISE = "elementwise"
    MATRIX_PRODUCT = "matrix_product"
    NORM = "norm"
    CONVOLUTION = "convolution"
    POOLING = "pooling"
    VERTICAL_CONCAT = "vertical_concat"
    FLATTENING = "flattening"


# Kinds whose derivative is not a pointwise map of the output shape.
NON_ELEMENTWISE = frozenset({
    OpKind.MATRIX_PRODUCT, OpKind.NORM, OpKind.CONVOLUTION,
    OpKind.POOLING, OpKind.VERTICAL_CONCAT, OpKind.FLATTENING,
})


@dataclass(frozen=True, eq=False)
class Node:
    """
    One entry on the tape, produced by a leaf or by a catalog operation.

    Attributes
    ----------
    kind : OpKind
        Operation that produced the node; selects the folding rule.
    shape : (int, int)
        Shape of the value this node stands for.
    values : tuple of np.ndarray
        Stored local derivatives, one per dependency slot. Variants that
        rebuild their derivative from metadata (concatenation, flattening)
        store none.
    dependencies : tuple of int
        Tape indices of the operands, always lower than this node's index.
    """
    kind: OpKind
    shape: Tuple[int, int]
    values: Tuple[np.ndarray, ...] = ()
    dependencies: Tuple[int, ...] = ()

    def __post_init__(self):
        # stored locals are shared with the backward pass; keep them read-only
        for v in self.values:
            v.setflags(write=False)

    @classmethod
    def leaf(cls, shape) -> "Node":
        return cls(OpKind.LEAF, tuple(shape))

    def increment_gradient(self, d: np.ndarray, j: int) -> np.ndarray:
        """
        Fold `d`, the derivative of the final output w.r.t. this node's
        value, into the contribution for dependency slot `j`.
        """
        if not 0 <= j < len(self.dependencies):
            raise IndexError(f"{self.kind.value} node has no dependency slot {j}")

        kind = self.kind
        if kind in (OpKind.ELEMENTWISE, OpKind.NORM):
            return d * self.values[j]
        if kind is OpKind.MATRIX_PRODUCT:
            # slot 0 stores y^T (d . y^T), slot 1 stores x^T (x^T . d)
            if j == 0:
                return d @ self.values[0]
            return self.values[1] @ d
        return self._increment_special(d, j)

    def _increment_special(self, d: np.ndarray, j: int) -> np.ndarray:
        raise NotImplementedError(f"no folding rule for {self.kind.value} on a generic node")


@dataclass(frozen=True, eq=False)
class ConvolutionNode(Node):
    """
    Slot 0 (input) stores the flipped kernel and pads `d` by kernel-1 on
    each side; slot 1 (kernel) stores the raw input and leaves `d` as is.
    Either way the fold is one valid correlation, larger operand as field.
    """
    padding: Tuple[Tuple[int, int], ...] = ()
    method: Optional[str] = None

    def _increment_special(self, d, j):
        field = arrays.pad2d(d, *self.padding[j])
        local = self.values[j]
        if field.shape[0] >= local.shape[0] and field.shape[1] >= local.shape[1]:
            return arrays.correlate2d(field, local, self.method)
        return arrays.correlate2d(local, field, self.method)


@dataclass(frozen=True, eq=False)
class PoolingNode(Node):
    pool: Tuple[int, int] = (1, 1)

    def _increment_special(self, d, j):
        # values[0] is the 0/1 mask of window maxima
        return arrays.upsample2d(d, self.pool) * self.values[j]


@dataclass(frozen=True, eq=False)
class VertCatNode(Node):
    # cumulative starting rows; operand j spans heights[j]:heights[j+1]
    heights: Tuple[int, ...] = (0,)

    def _increment_special(self, d, j):
        start, stop = self.heights[j], self.heights[j + 1]
        return arrays.block(d, start, 0, stop - start, d.shape[1])


@dataclass(frozen=True, eq=False)
class FlatteningNode(Node):
    original_shape: Tuple[int, int] = (0, 0)

    def _increment_special(self, d, j):
        return arrays.unflatten_rows(d, self.original_shape)
