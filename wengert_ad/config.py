# wengert_ad/config.py
"""
Engine configuration.

A single process-wide EngineConfig holds the defaults used when a Tape is
created without an explicit dtype and when a convolution does not name its
correlation method. Values can be seeded from the environment:

    WENGERT_AD_DTYPE        float32 | float64
    WENGERT_AD_CONV_METHOD  direct | im2col
    WENGERT_AD_LOG_LEVEL    DEBUG | INFO | WARNING | ERROR
"""

from __future__ import annotations
import os
import logging
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

CONV_METHODS = ("direct", "im2col")
_DTYPES = {"float32": np.float32, "float64": np.float64}


def _check_dtype(dtype: Any) -> np.dtype:
    dt = np.dtype(dtype)
    if dt.kind != "f":
        raise ValueError(f"dtype must be a floating point type, got {dt}")
    return dt


def _check_level(level: str) -> str:
    name = str(level).upper()
    if not isinstance(getattr(logging, name, None), int):
        raise ValueError(f"unknown log level {level!r}")
    return name


@dataclass(frozen=True)
class EngineConfig:
    """
    Attributes
    ----------
    dtype : np.dtype
        Scalar type for tapes created without an explicit dtype.
    conv_method : str
        Correlation kernel used by `convolution`: "direct" or "im2col".
    log_level : str
        Level of the package logger, applied at import and by `set_config`.
    """
    dtype: np.dtype = np.dtype(np.float64)
    conv_method: str = "direct"
    log_level: str = "WARNING"

    def __post_init__(self):
        object.__setattr__(self, "dtype", _check_dtype(self.dtype))
        object.__setattr__(self, "log_level", _check_level(self.log_level))
        if self.conv_method not in CONV_METHODS:
            raise ValueError(
                f"conv_method must be one of {CONV_METHODS}, got {self.conv_method!r}"
            )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        dtype_name = os.getenv("WENGERT_AD_DTYPE", "float64").lower()
        if dtype_name not in _DTYPES:
            raise ValueError(f"WENGERT_AD_DTYPE must be one of {sorted(_DTYPES)}")
        return cls(
            dtype=_DTYPES[dtype_name],
            conv_method=os.getenv("WENGERT_AD_CONV_METHOD", "direct").lower(),
            log_level=os.getenv("WENGERT_AD_LOG_LEVEL", "WARNING"),
        )


_config = EngineConfig.from_env()


def get_config() -> EngineConfig:
    return _config


def set_config(**changes) -> EngineConfig:
    """Replace fields of the active configuration and return the new one."""
    global _config
    _config = replace(_config, **changes)
    if "log_level" in changes:
        from .logger import get_logger
        get_logger()
    return _config
