# wengert_ad/core/engine.py
from __future__ import annotations
import logging
from typing import List, Optional

import numpy as np

from .. import arrays
from .tape import Tape
from .tensor import Tensor

logger = logging.getLogger(__name__)


class Gradient:
    """
    Derivatives of one backward pass, indexed by tape position.

    Built by `backward` only and immutable afterwards. An empty Gradient
    (no graph to differentiate) answers every lookup with a 0x0 array.
    """

    def __init__(self, derivatives: Optional[List[np.ndarray]] = None,
                 tape: Optional[Tape] = None, generation: int = -1):
        self._derivatives = tuple(derivatives or ())
        for d in self._derivatives:
            d.setflags(write=False)
        self._tape = tape
        self._generation = generation

    def __len__(self) -> int:
        return len(self._derivatives)

    def __contains__(self, tensor) -> bool:
        return self._lookup(tensor) is not None

    def __repr__(self):
        return f"Gradient(size={len(self._derivatives)})"

    def is_empty(self) -> bool:
        return not self._derivatives

    def _lookup(self, tensor) -> Optional[np.ndarray]:
        if not isinstance(tensor, Tensor) or tensor.tape is None:
            return None
        if tensor.tape is not self._tape or tensor._generation != self._generation:
            return None
        if not 0 <= tensor.index < len(self._derivatives):
            return None
        return self._derivatives[tensor.index]

    def get_value(self, tensor: Tensor) -> np.ndarray:
        """
        d(root)/d(tensor), shaped like `tensor`. A 0x0 array when `tensor`
        was recorded after the root, on another tape, or the gradient is empty.
        """
        d = self._lookup(tensor)
        if d is None:
            dtype = self._tape.dtype if self._tape is not None else None
            return arrays.empty_array(dtype)
        return d


def backward(root: Tensor) -> Gradient:
    """
    Reverse sweep over the tape from `root` down to index 0.

    The accumulator of `root` is seeded with ones of its shape. For each
    node k (highest first) and each dependency slot, the node folds its
    accumulator through its local derivative and the result is summed into
    the accumulator of that dependency.

    The seed only means d(root)/d(input) when `root` is 1x1, or when every
    recorded operation is elementwise. Calling this on a non-scalar root
    after a matrix product, norm, convolution, pooling, concatenation or
    flattening is a caller error: the result is returned as computed and a
    warning is logged.
    """
    tape = root.tape
    if not root.is_valid() or len(tape) == 0:
        return Gradient()

    top = root.index
    if not tape.elementwise_only and root.shape != (1, 1):
        logger.warning("grad() on a non-scalar tensor %s after a non-elementwise operation; "
                       "the result is not a gradient", root.shape)

    acc: List[Optional[np.ndarray]] = [None] * (top + 1)
    acc[top] = np.ones(root.shape, dtype=tape.dtype)

    for k in range(top, -1, -1):
        d = acc[k]
        if d is None:
            continue  # no path from root to this node
        node = tape[k]
        for slot, dep in enumerate(node.dependencies):
            increment = node.increment_gradient(d, slot)
            acc[dep] = increment if acc[dep] is None else acc[dep] + increment

    derivatives = [
        np.zeros(tape[k].shape, dtype=tape.dtype) if a is None else np.asarray(a, dtype=tape.dtype)
        for k, a in enumerate(acc)
    ]
    logger.debug("backward from node %d over %d nodes", top, len(derivatives))
    return Gradient(derivatives, tape, tape.generation)
