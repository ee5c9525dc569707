"""
Attribute and initializer readers for ONNX graphs.

These helpers look up typed data on `onnx` protobuf messages and never raise
for data that is merely missing or of an unexpected type:

- Attribute readers return ``None`` when the attribute is absent or stored
  with another type. No coercion between types is attempted.
- Initializer readers return ``None`` when the tensor is absent, does not hold
  floating point data, or does not have the expected dimensions.

Values are returned as NumPy arrays in the library's working precision.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
import onnx
from onnx import AttributeProto, TensorProto, numpy_helper

from .._config import REAL_DTYPE

_FLOAT_TYPES = (TensorProto.FLOAT, TensorProto.DOUBLE)


def _read_attribute(name: str, node: onnx.NodeProto) -> Optional[AttributeProto]:
    for attr in node.attribute:
        if attr.name == name:
            return attr
    return None


def read_double_attribute(name: str, node: onnx.NodeProto) -> Optional[float]:
    """Read a FLOAT attribute as a Python float."""
    attr = _read_attribute(name, node)
    if attr is None or attr.type != AttributeProto.FLOAT:
        return None
    return float(attr.f)


def read_int_attribute(name: str, node: onnx.NodeProto) -> Optional[int]:
    """Read an INT attribute."""
    attr = _read_attribute(name, node)
    if attr is None or attr.type != AttributeProto.INT:
        return None
    return int(attr.i)


def read_ints_attribute(name: str, node: onnx.NodeProto) -> Optional[List[int]]:
    """Read an INTS attribute as a list of ints."""
    attr = _read_attribute(name, node)
    if attr is None or attr.type != AttributeProto.INTS:
        return None
    return [int(v) for v in attr.ints]


def does_not_have_attribute(node: onnx.NodeProto, name: str) -> bool:
    """True when `node` carries no attribute called `name`."""
    return _read_attribute(name, node) is None


def initializer_map(graph: onnx.GraphProto) -> Dict[str, TensorProto]:
    """Index the initializers of `graph` by name."""
    return {init.name: init for init in graph.initializer}


def _read_initializer(
    inits: Dict[str, TensorProto], name: str
) -> Optional[np.ndarray]:
    tensor = inits.get(name)
    if tensor is None or tensor.data_type not in _FLOAT_TYPES:
        return None
    return np.asarray(numpy_helper.to_array(tensor), dtype=REAL_DTYPE)


def read_initializer_vector(
    inits: Dict[str, TensorProto], name: str, n: int
) -> Optional[np.ndarray]:
    """
    Read a one dimensional initializer of exactly `n` elements.
    """
    arr = _read_initializer(inits, name)
    if arr is None or arr.shape != (n,):
        return None
    return arr


def read_initializer_matrix(
    inits: Dict[str, TensorProto], name: str, rows: int, cols: int
) -> Optional[np.ndarray]:
    """
    Read an initializer as a ``rows x cols`` matrix.

    The first stored dimension must equal `rows` and the product of the
    remaining dimensions must equal `cols`; trailing dimensions are
    flattened row-major.
    """
    arr = _read_initializer(inits, name)
    if arr is None or arr.ndim < 1:
        return None
    if arr.shape[0] != rows or int(np.prod(arr.shape[1:])) != cols:
        return None
    return arr.reshape(rows, cols)
