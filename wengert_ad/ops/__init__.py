# wengert_ad/ops/__init__.py

# Convenience re-exports so users can do: from wengert_ad.ops import mul, convolution, ...
from .arithmetic import add, sub, mul, div, sigmoid
from .linalg import mat_prod, squared_norm
from .spatial import convolution, max_pooling
from .shaping import vert_cat, flattening

__all__ = [
    "add", "sub", "mul", "div", "sigmoid",
    "mat_prod", "squared_norm",
    "convolution", "max_pooling",
    "vert_cat", "flattening",
]
