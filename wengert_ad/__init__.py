# wengert_ad/__init__.py
# Reverse-mode automatic differentiation on a Wengert list

from .core.tape import Tape, use_tape
from .core.node import OpKind
from .core.tensor import Tensor
from .core.engine import Gradient, backward
from .core.graph_utils import graph_summary

from .ops import (
    add, sub, mul, div, sigmoid,
    mat_prod, squared_norm,
    convolution, max_pooling,
    vert_cat, flattening,
)

from .config import EngineConfig, get_config, set_config
from .errors import AutodiffError, ShapeMismatchError, TapeMismatchError, StructuralInvalidError
from .logger import get_logger

# package logger takes its level from the active config (WENGERT_AD_LOG_LEVEL)
get_logger()

__version__ = "0.1.0"

__all__ = [
    # Core
    'Tape',
    'use_tape',
    'OpKind',
    'Tensor',
    'Gradient',
    'backward',
    'graph_summary',
    # Operations
    'add', 'sub', 'mul', 'div', 'sigmoid',
    'mat_prod', 'squared_norm',
    'convolution', 'max_pooling',
    'vert_cat', 'flattening',
    # Configuration, errors, logging
    'EngineConfig', 'get_config', 'set_config',
    'AutodiffError', 'ShapeMismatchError', 'TapeMismatchError', 'StructuralInvalidError',
    'get_logger',
]
