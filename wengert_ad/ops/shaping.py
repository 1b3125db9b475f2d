# wengert_ad/ops/shaping.py
import numpy as np

from .. import arrays
from ..core.node import FlatteningNode, OpKind, VertCatNode
from ..core.tensor import Tensor
from ..errors import ShapeMismatchError, StructuralInvalidError
from .arithmetic import _check_operands, _invalid


def vert_cat(tensors):
    """
    Stack `tensors` vertically, in argument order (tensors[i] goes under
    tensors[i-1]). All operands need the same column count and tape.
    """
    tensors = list(tensors)
    if not tensors:
        return _invalid(StructuralInvalidError("vert_cat", "nothing to concatenate"))

    err = _check_operands("vert_cat", tensors)
    if err is None:
        width = tensors[0].shape[1]
        bad = [t.shape for t in tensors if t.shape[1] != width]
        if bad:
            err = ShapeMismatchError("vert_cat", tensors[0].shape, *bad,
                                     message=f"column counts differ: "
                                             f"{[t.shape[1] for t in tensors]}")
    if err is not None:
        return _invalid(err)

    tape = tensors[0].tape

    # cumulative starting rows
    heights = [0]
    for t in tensors:
        heights.append(heights[-1] + t.shape[0])

    res = np.vstack([t.value for t in tensors])
    node = VertCatNode(OpKind.VERTICAL_CONCAT, res.shape,
                       dependencies=tuple(t.index for t in tensors),
                       heights=tuple(heights))
    return Tensor._record(res, tape, node)


def flattening(x):
    """
    Flatten a (m, n) tensor into a (m*n, 1) column, row-major:
    x(0,0), ..., x(0,n-1), x(1,0), ..., x(m-1,n-1)
    """
    err = _check_operands("flattening", (x,))
    if err is not None:
        return _invalid(err)

    res = arrays.flatten_rows(x.value)
    # the local derivative is the identity reshape, rebuilt from the shape
    node = FlatteningNode(OpKind.FLATTENING, res.shape,
                          dependencies=(x.index,), original_shape=x.shape)
    return Tensor._record(res, x.tape, node)
