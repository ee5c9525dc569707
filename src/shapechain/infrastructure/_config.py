"""
Process-wide numeric configuration.

ShapeChain uses a single floating-point width for every tensor, parameter,
gradient and serialized value. The width is selected once, when this module
is first imported, from the ``SHAPECHAIN_PRECISION`` environment variable.
A ``.env`` file in the current working directory is loaded first (without
overriding variables already set in the environment), so a project can pin
its precision alongside its other settings.

Accepted values are ``float32`` and ``float64`` (default).
"""

from __future__ import annotations

import os

import numpy as np
from dotenv import load_dotenv

PRECISION_ENV_VAR = "SHAPECHAIN_PRECISION"

_SUPPORTED = {
    "float32": np.float32,
    "float64": np.float64,
}

load_dotenv(os.path.join(os.getcwd(), ".env"), override=False)


def _resolve_precision(value: str | None) -> np.dtype:
    """
    Map a precision name to a NumPy dtype.

    Raises
    ------
    ValueError
        If `value` names an unsupported precision.
    """
    if value is None or not value.strip():
        return np.dtype(np.float64)
    key = value.strip().lower()
    try:
        return np.dtype(_SUPPORTED[key])
    except KeyError as e:
        available = ", ".join(sorted(_SUPPORTED))
        raise ValueError(
            f"Unsupported {PRECISION_ENV_VAR}={value!r}. Available: {available}"
        ) from e


REAL_DTYPE: np.dtype = _resolve_precision(os.environ.get(PRECISION_ENV_VAR))

# Serialized floats are always little-endian, independent of the host.
WIRE_DTYPE: np.dtype = REAL_DTYPE.newbyteorder("<")
