# wengert_ad/ops/linalg.py
import numpy as np

from ..core.node import Node, OpKind
from ..core.tensor import Tensor
from ..errors import ShapeMismatchError
from .arithmetic import _check_operands, _invalid


def mat_prod(x, y):
    """
    Matrix product out = x . y, x of shape (m, n) and y of shape (n, p).

    Local partials are stored already transposed (y^T for x, x^T for y);
    the backward pass multiplies them with the incoming derivative.
    """
    err = _check_operands("mat_prod", (x, y))
    if err is None and x.shape[1] != y.shape[0]:
        err = ShapeMismatchError("mat_prod", x.shape, y.shape,
                                 message=f"inner dimensions differ: {x.shape} . {y.shape}")
    if err is not None:
        return _invalid(err)

    node = Node(OpKind.MATRIX_PRODUCT, (x.shape[0], y.shape[1]),
                values=(np.ascontiguousarray(y.value.T), np.ascontiguousarray(x.value.T)),
                dependencies=(x.index, y.index))
    return Tensor._record(x.value @ y.value, x.tape, node)


def squared_norm(x):
    """
    Squared euclidean norm of all entries, as a 1x1 tensor:
      out = sum(x^2),  d out / dx = 2x
    """
    err = _check_operands("squared_norm", (x,))
    if err is not None:
        return _invalid(err)

    xv = x.value
    node = Node(OpKind.NORM, (1, 1), values=(2.0 * xv,), dependencies=(x.index,))
    return Tensor._record(np.array([[np.sum(xv * xv)]]), x.tape, node)
