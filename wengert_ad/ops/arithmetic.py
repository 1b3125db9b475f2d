# wengert_ad/ops/arithmetic.py
import logging
from typing import Optional, Sequence

import numpy as np

from ..core.node import Node, OpKind
from ..core.tensor import Tensor
from ..errors import AutodiffError, ShapeMismatchError, TapeMismatchError

logger = logging.getLogger(__name__)


def _check_operands(op: str, tensors: Sequence[Tensor]) -> Optional[AutodiffError]:
    """
    Return the error that makes `tensors` unusable together, or None.
    Non-Tensor operands are a programming error and raise TypeError.
    """
    tape = None
    for t in tensors:
        if not isinstance(t, Tensor):
            raise TypeError(f"{op} expects Tensor operands, got {type(t).__name__}")
        if t.tape is None:
            reason = f"operand is invalid ({t.error})" if t.error is not None \
                else "operand is not attached to a tape"
            return TapeMismatchError(op, reason)
        if t.is_stale():
            return TapeMismatchError(op, "operand was recorded before its tape was reset")
        if tape is None:
            tape = t.tape
        elif t.tape is not tape:
            return TapeMismatchError(op, "operands belong to different tapes")
    return None


def _invalid(err: AutodiffError, dtype=None) -> Tensor:
    logger.debug("%s", err)
    return Tensor.invalid(err, dtype)


def _binary(x, y, f, dfdx, dfdy, op):
    """
    Generic same-shape elementwise primitive:
      - out = f(x, y)
      - records an ELEMENTWISE node with local partials (dfdx, dfdy)
    """
    err = _check_operands(op, (x, y))
    if err is None and x.shape != y.shape:
        err = ShapeMismatchError(op, x.shape, y.shape)
    if err is not None:
        return _invalid(err)

    xv, yv = x.value, y.value
    # zero divisors are not special-cased: inf/nan flow through
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        out = f(xv, yv)
        node = Node(OpKind.ELEMENTWISE, xv.shape,
                    values=(dfdx(xv, yv), dfdy(xv, yv)),
                    dependencies=(x.index, y.index))
    return Tensor._record(out, x.tape, node)


def add(x, y): return _binary(x, y, lambda a,b:a+b, lambda a,b:np.ones_like(a),  lambda a,b:np.ones_like(b),   "add")
def sub(x, y): return _binary(x, y, lambda a,b:a-b, lambda a,b:np.ones_like(a),  lambda a,b:-np.ones_like(b),  "sub")
def mul(x, y): return _binary(x, y, lambda a,b:a*b, lambda a,b:b.copy(),         lambda a,b:a.copy(),          "mul")
def div(x, y): return _binary(x, y, lambda a,b:a/b, lambda a,b:1.0/b,            lambda a,b:-a/np.square(b),   "div")


def sigmoid(x):
    """
    Elementwise logistic function:
      out = 1 / (1 + e^-x)
      d out / dx = e^x / (1 + e^x)^2 = out * (1 - out)
    """
    err = _check_operands("sigmoid", (x,))
    if err is not None:
        return _invalid(err)

    with np.errstate(over="ignore"):
        s = 1.0 / (1.0 + np.exp(-x.value))
    node = Node(OpKind.ELEMENTWISE, x.shape, values=(s * (1.0 - s),), dependencies=(x.index,))
    return Tensor._record(s, x.tape, node)
