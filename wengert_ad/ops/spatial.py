# wengert_ad/ops/spatial.py
"""
Convolution-related primitives, as used by a small CNN: valid 2-D
correlation of an input with a kernel, and non-overlapping max pooling.
"""

from collections.abc import Sequence
from typing import Optional

import numpy as np

from .. import arrays
from ..core.node import ConvolutionNode, OpKind, PoolingNode
from ..core.tensor import Tensor
from ..errors import ShapeMismatchError, StructuralInvalidError
from .arithmetic import _check_operands, _invalid


def convolution(mat, ker, method: Optional[str] = None):
    """
    Valid correlation of `mat` with `ker` (stride 1, no padding), the
    operation CNN libraries call convolution.

    Output shape: (mat.rows - ker.rows + 1, mat.cols - ker.cols + 1),
    requires ker.rows <= mat.rows and ker.cols <= mat.cols.

    Backward, for an incoming derivative d:
      d/dmat = correlate(pad(d, ker - 1), flip(ker))   (full convolution)
      d/dker = correlate(mat, d)

    method : "direct" or "im2col", see `arrays.correlate2d`.
    """
    err = _check_operands("convolution", (mat, ker))
    if err is None and method is not None and method not in arrays.CONV_METHODS:
        err = StructuralInvalidError("convolution", f"unknown correlation method {method!r}")
    if err is None and (not arrays.kernel_fits(mat.value, ker.value) or ker.value.size == 0):
        err = ShapeMismatchError("convolution", mat.shape, ker.shape,
                                 message=f"kernel {ker.shape} does not fit in input {mat.shape}")
    if err is not None:
        return _invalid(err)

    res = arrays.correlate2d(mat.value, ker.value, method)
    kr, kc = ker.shape
    node = ConvolutionNode(
        OpKind.CONVOLUTION, res.shape,
        values=(arrays.flip2d(ker.value), mat.value),
        dependencies=(mat.index, ker.index),
        padding=((kr - 1, kc - 1), (0, 0)),
        method=method,
    )
    return Tensor._record(res, mat.tape, node)


def _check_pool(pool) -> bool:
    # a list, tuple or 1-D integer array of two entries
    if isinstance(pool, np.ndarray):
        if pool.ndim != 1 or pool.dtype.kind not in "iu":
            return False
    elif isinstance(pool, (str, bytes)) or not isinstance(pool, Sequence):
        return False
    if len(pool) != 2:
        return False
    return all(isinstance(p, (int, np.integer)) and not isinstance(p, bool) and p > 0 for p in pool)


def max_pooling(x, pool):
    """
    Max pooling over non-overlapping (pool[0], pool[1]) windows.

    Both dimensions of `x` must be divisible by the window. The local
    derivative is a 0/1 mask marking the first maximum (row-major scan) of
    every window.
    """
    err = _check_operands("max_pooling", (x,))
    if err is None and not _check_pool(pool):
        err = StructuralInvalidError("max_pooling", f"pool must be two positive integers, got {pool!r}")
    if err is None and (x.shape[0] % pool[0] or x.shape[1] % pool[1]):
        err = StructuralInvalidError("max_pooling",
                                     f"pool {tuple(pool)} does not divide input shape {x.shape}")
    if err is not None:
        return _invalid(err)

    pool = (int(pool[0]), int(pool[1]))
    pooled, mask = arrays.max_pool2d(x.value, pool)
    node = PoolingNode(OpKind.POOLING, pooled.shape, values=(mask,),
                       dependencies=(x.index,), pool=pool)
    return Tensor._record(pooled, x.tape, node)
