# wengert_ad/core/tensor.py
from __future__ import annotations
from typing import Any, Optional, Tuple

import numpy as np

from .. import arrays
from ..errors import AutodiffError, TapeMismatchError
from .node import Node
from .tape import Tape


class Tensor:
    """
    Handle on one value recorded on a Tape.

    Attributes
    ----------
    tape : Tape | None
        Tape the value was recorded on (not owned). None for tape-less
        tensors, which every catalog operation rejects.
    index : int
        Position of the producing Node on the tape, -1 when tape-less.
    error : AutodiffError | None
        Why this tensor is invalid, when it was returned by a failed
        catalog operation.

    `Tensor(value, tape)` records a leaf. Catalog operations build their
    results through `Tensor._record`. A failed operation returns
    `Tensor.invalid(err)`: tape-less, holding a 0x0 value.
    """

    # numpy must not broadcast over Tensors: `array + tensor` is a TypeError
    __array_ufunc__ = None

    def __init__(self, value: Any, tape: Optional[Tape] = None):
        dtype = tape.dtype if tape is not None else None
        self._set(arrays.as_array(value, dtype), tape)
        if tape is not None:
            self.index = tape.append(Node.leaf(self._value.shape))

    def _set(self, value: np.ndarray, tape: Optional[Tape], error: Optional[AutodiffError] = None):
        value.setflags(write=False)
        self._value = value
        self.tape = tape
        self.index = -1
        self.error = error
        self._generation = tape.generation if tape is not None else -1

    @classmethod
    def _record(cls, value: np.ndarray, tape: Tape, node: Node) -> "Tensor":
        """Append `node` to `tape` and return the Tensor for it."""
        out = cls.__new__(cls)
        out._set(np.asarray(value, dtype=tape.dtype), tape)
        out.index = tape.append(node)
        return out

    @classmethod
    def invalid(cls, error: Optional[AutodiffError] = None, dtype=None) -> "Tensor":
        out = cls.__new__(cls)
        out._set(arrays.empty_array(dtype), None, error)
        return out

    def __repr__(self):
        if self.tape is None:
            state = f"invalid: {self.error}" if self.error is not None else "tape-less"
            return f"Tensor({self._value.tolist()!r}, {state})"
        return f"Tensor({self._value.tolist()!r}, index={self.index})"

    # ------------------------------------------------------------------ #
    def get_value(self) -> np.ndarray:
        """The stored value, as a read-only array."""
        return self._value

    @property
    def value(self) -> np.ndarray:
        return self._value

    @property
    def shape(self) -> Tuple[int, int]:
        return self._value.shape

    def is_stale(self) -> bool:
        """True once the tape this tensor was recorded on has been reset."""
        return self.tape is not None and self._generation != self.tape.generation

    def is_valid(self) -> bool:
        return self.tape is not None and not self.is_stale()

    def unwrap(self) -> "Tensor":
        """Return self if usable, otherwise raise the error that produced it."""
        if self.error is not None:
            raise self.error
        if not self.is_valid():
            reason = "tape was reset" if self.is_stale() else "tensor is not attached to a tape"
            raise TapeMismatchError("unwrap", reason)
        return self

    def grad(self):
        """Run a backward pass rooted here. See `engine.backward`."""
        from .engine import backward
        return backward(self)

    # Operator overloading for the catalog; operands must be Tensors
    def __add__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        from ..ops.arithmetic import add
        return add(self, other)

    def __sub__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __mul__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __truediv__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        from ..ops.arithmetic import div
        return div(self, other)

    def __matmul__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        from ..ops.linalg import mat_prod
        return mat_prod(self, other)
