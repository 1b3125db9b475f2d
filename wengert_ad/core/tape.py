# wengert_ad/core/tape.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import List, Optional, Tuple

import numpy as np

from ..config import get_config
from .node import Node, NON_ELEMENTWISE

logger = logging.getLogger(__name__)


class Tape:
    """
    Wengert list: records Nodes in forward order.

    Nodes are addressed by their 0-based position and are never removed or
    reordered, so the insertion order is a topological order of the graph.
    `elementwise_only` starts True and turns False for good the first time
    a shape-mixing operation (matrix product, norm, convolution, pooling,
    concatenation, flattening) is recorded; only `reset()` restores it.
    """

    def __init__(self, dtype=None):
        self.dtype = np.dtype(get_config().dtype if dtype is None else dtype)
        self._nodes: List[Node] = []
        self._elementwise_only = True
        # bumped on reset so tensors recorded before it can be told apart
        self.generation = 0

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __repr__(self):
        return (f"Tape(size={len(self._nodes)}, dtype={self.dtype.name}, "
                f"elementwise_only={self._elementwise_only}, generation={self.generation})")

    def size(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def elementwise_only(self) -> bool:
        return self._elementwise_only

    def append(self, node: Node) -> int:
        """Append `node` and return its index. Flips `elementwise_only` for shape-mixing kinds."""
        index = len(self._nodes)
        for dep in node.dependencies:
            if not 0 <= dep < index:
                raise IndexError(f"dependency {dep} is not on the tape (size {index})")
        self._nodes.append(node)
        if node.kind in NON_ELEMENTWISE:
            self.mark_non_elementwise()
        logger.debug("node %d: %s %s deps=%s", index, node.kind.value, node.shape, node.dependencies)
        return index

    def mark_non_elementwise(self):
        if self._elementwise_only:
            logger.debug("tape no longer elementwise-only at size %d", len(self._nodes))
        self._elementwise_only = False

    def reset(self):
        """Drop every node. Tensors recorded so far must not be used afterwards."""
        self._nodes.clear()
        self._elementwise_only = True
        self.generation += 1
        logger.debug("tape reset (generation %d)", self.generation)


@contextmanager
def use_tape(tape: Optional[Tape] = None):
    """
    Context manager giving a scratch tape that is reset on exit:
        with use_tape() as tape:
            x = Tensor([[2.0]], tape)
            ... build computation, call grad() ...
    """
    if tape is None:
        tape = Tape()
    try:
        yield tape
    finally:
        tape.reset()
