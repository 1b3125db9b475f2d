# wengert_ad/errors.py
"""
Error taxonomy for the operation catalog.

Catalog operations do not raise these errors. They return an invalid,
tape-less Tensor whose `error` attribute holds one of them, so callers can
either inspect `tensor.error` or call `tensor.unwrap()` to raise it.
"""

from typing import Optional


class AutodiffError(ValueError):
    """
    Base class for failures of a catalog operation.

    Attributes
    ----------
    op : str
        Name of the operation that failed (e.g. "add", "mat_prod").
    """

    def __init__(self, op: str, message: str) -> None:
        super().__init__(f"{op}: {message}")
        self.op = op


class ShapeMismatchError(AutodiffError):
    """Operand shapes are incompatible for the requested operation."""

    def __init__(self, op: str, *shapes, message: Optional[str] = None) -> None:
        if message is None:
            shown = " vs ".join(str(tuple(s)) for s in shapes)
            message = f"incompatible shapes {shown}"
        super().__init__(op, message)
        self.shapes = tuple(tuple(s) for s in shapes)


class TapeMismatchError(AutodiffError):
    """Operands reference different tapes, no tape, or a reset tape."""


class StructuralInvalidError(AutodiffError):
    """Malformed configuration, e.g. an empty concatenation or a bad pool window."""
