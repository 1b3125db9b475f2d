# wengert_ad/arrays.py
"""
Dense 2-D array kernels used by the operation catalog and by the backward
pass. Nothing here knows about tapes or tensors: every function takes and
returns plain numpy arrays.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy.signal import correlate2d as _scipy_correlate2d

from .config import get_config, CONV_METHODS
from .errors import ShapeMismatchError


def as_array(value, dtype=None) -> np.ndarray:
    """
    Convert `value` to a 2-D array of `dtype`.

    Scalars become 1x1 arrays and 1-D sequences become columns. Rank > 2
    raises ShapeMismatchError.
    """
    dtype = get_config().dtype if dtype is None else dtype
    arr = np.array(value, dtype=dtype)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    if arr.ndim > 2:
        raise ShapeMismatchError("as_array", arr.shape,
                                 message=f"rank {arr.ndim} arrays are not supported")
    return arr


def empty_array(dtype=None) -> np.ndarray:
    """The 0x0 array used for invalid results and missing derivatives."""
    dtype = get_config().dtype if dtype is None else dtype
    return np.zeros((0, 0), dtype=dtype)


def kernel_fits(mat: np.ndarray, ker: np.ndarray) -> bool:
    return ker.shape[0] <= mat.shape[0] and ker.shape[1] <= mat.shape[1]


def correlate2d(mat: np.ndarray, ker: np.ndarray, method: Optional[str] = None) -> np.ndarray:
    """
    Valid 2-D correlation (stride 1, no padding):

        out[i, j] = sum(mat[i:i+kr, j:j+kc] * ker)

    Output shape is (mat.rows - ker.rows + 1, mat.cols - ker.cols + 1).
    Returns an empty array if `ker` does not fit inside `mat`.

    method : "direct" uses scipy.signal.correlate2d, "im2col" unrolls every
             patch into a row and does a single matrix-vector product (more
             memory, fewer Python-level passes). Defaults to the config value.
    """
    method = method or get_config().conv_method
    if method not in CONV_METHODS:
        raise ValueError(f"unknown correlation method {method!r}")
    if not kernel_fits(mat, ker) or ker.size == 0:
        return empty_array(mat.dtype)

    if method == "direct":
        out = _scipy_correlate2d(mat, ker, mode="valid")
    else:
        out = im2col(mat, ker.shape) @ ker.reshape(-1)
        out = out.reshape(mat.shape[0] - ker.shape[0] + 1, mat.shape[1] - ker.shape[1] + 1)
    return np.asarray(out, dtype=mat.dtype)


def im2col(mat: np.ndarray, window: Tuple[int, int]) -> np.ndarray:
    """Every `window`-sized patch of `mat`, row-major, as one row each."""
    patches = sliding_window_view(mat, window)
    return patches.reshape(-1, window[0] * window[1])


def pad2d(arr: np.ndarray, rows: int, cols: int) -> np.ndarray:
    """Zero-pad `rows` above and below, `cols` left and right."""
    if rows == 0 and cols == 0:
        return arr
    return np.pad(arr, ((rows, rows), (cols, cols)), mode="constant")


def flip2d(arr: np.ndarray) -> np.ndarray:
    return arr[::-1, ::-1].copy()


def _pool_view(arr: np.ndarray, pool: Tuple[int, int]) -> np.ndarray:
    # (rows, cols) -> (out_rows, out_cols, pr * pc), windows in row-major order
    pr, pc = pool
    out_rows, out_cols = arr.shape[0] // pr, arr.shape[1] // pc
    windows = arr.reshape(out_rows, pr, out_cols, pc).transpose(0, 2, 1, 3)
    return windows.reshape(out_rows, out_cols, pr * pc)


def max_pool2d(arr: np.ndarray, pool: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Non-overlapping max pooling.

    Returns (pooled, mask): `pooled[i, j]` is the maximum of window (i, j)
    and `mask` has the shape of `arr`, with a single 1 per window at the
    first maximum met in a row-major scan of that window.
    """
    pr, pc = pool
    if arr.shape[0] % pr or arr.shape[1] % pc:
        raise ShapeMismatchError("max_pool2d", arr.shape, pool)
    out_rows, out_cols = arr.shape[0] // pr, arr.shape[1] // pc

    windows = _pool_view(arr, pool)
    # argmax returns the first occurrence, i.e. row-major tie breaking
    winners = np.argmax(windows, axis=2)[..., None]
    pooled = np.take_along_axis(windows, winners, axis=2)[..., 0]

    mask = np.zeros((out_rows, out_cols, pr * pc), dtype=arr.dtype)
    np.put_along_axis(mask, winners, 1.0, axis=2)
    mask = mask.reshape(out_rows, out_cols, pr, pc).transpose(0, 2, 1, 3).reshape(arr.shape)
    return pooled, mask


def upsample2d(arr: np.ndarray, pool: Tuple[int, int]) -> np.ndarray:
    """Expand every entry of `arr` into a full pr x pc block."""
    pr, pc = pool
    return np.repeat(np.repeat(arr, pr, axis=0), pc, axis=1)


def block(arr: np.ndarray, row: int, col: int, rows: int, cols: int) -> np.ndarray:
    """Copy of the rows x cols block starting at (row, col)."""
    if row < 0 or col < 0 or row + rows > arr.shape[0] or col + cols > arr.shape[1]:
        raise ShapeMismatchError("block", arr.shape, (row + rows, col + cols),
                                 message=f"block ({row}, {col}, {rows}, {cols}) "
                                         f"outside array of shape {arr.shape}")
    return arr[row:row + rows, col:col + cols].copy()


def flatten_rows(arr: np.ndarray) -> np.ndarray:
    """Row-major flatten: x(0,0), ..., x(0,n-1), x(1,0), ... as an (m*n, 1) column."""
    return np.ascontiguousarray(arr).reshape(-1, 1)


def unflatten_rows(column: np.ndarray, shape: Sequence[int]) -> np.ndarray:
    """Inverse of `flatten_rows`."""
    rows, cols = shape
    if column.size != rows * cols:
        raise ShapeMismatchError("unflatten_rows", column.shape, (rows, cols))
    return np.ascontiguousarray(column).reshape(rows, cols)
