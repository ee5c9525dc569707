"""
Shape-tagged tensors.

`Tensor` is the value that flows between layers: a NumPy array whose rank and
extents are described by a `Shape`. The tensor variants of the domain model
(D1 vector, D2 matrix, D3 and D4 arrays) are all `Tensor` instances that
differ only by their shape tag.

Design notes
------------
- Tensors are immutable values. Constructors copy (or adopt a freshly
  created) array and mark it read-only, so tensors can be shared between
  tapes, batches and threads without aliasing hazards.
- Arithmetic is elementwise and strict: both operands must carry the same
  shape. No broadcasting between tensors is performed; scalars are allowed.
- Element order is row-major (C order) everywhere, including conversions to
  and from flat lists.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Union

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape
from .._config import REAL_DTYPE

Number = Union[int, float]


class Tensor:
    """
    Immutable, shape-tagged numeric array.

    Parameters
    ----------
    shape : Shape
        Shape tag of the tensor.
    data : array-like
        Values. Must contain exactly ``shape.size`` elements; they are
        reshaped row-major into ``shape.dims``.

    Raises
    ------
    ShapeMismatchError
        If the number of elements in `data` does not match `shape`.
    """

    __slots__ = ("_shape", "_data")

    def __init__(self, shape: Shape, data: Any) -> None:
        arr = np.array(data, dtype=REAL_DTYPE, copy=True, order="C")
        if arr.size != shape.size:
            raise ShapeMismatchError(
                f"Tensor data has {arr.size} elements but shape {shape} needs {shape.size}",
                expected=shape,
                actual=arr.shape,
            )
        arr = arr.reshape(shape.dims)
        arr.setflags(write=False)
        self._shape = shape
        self._data = arr

    @classmethod
    def of(cls, shape: Shape, arr: np.ndarray) -> "Tensor":
        """Wrap a freshly computed array without copying it again."""
        t = cls.__new__(cls)
        arr = np.ascontiguousarray(arr, dtype=REAL_DTYPE).reshape(shape.dims)
        arr.setflags(write=False)
        t._shape = shape
        t._data = arr
        return t

    @classmethod
    def zeros(cls, shape: Shape) -> "Tensor":
        """Return a tensor of the given shape filled with zeros."""
        return cls.of(shape, np.zeros(shape.dims, dtype=REAL_DTYPE))

    @classmethod
    def full(cls, shape: Shape, value: Number) -> "Tensor":
        """Return a tensor of the given shape filled with `value`."""
        return cls.of(shape, np.full(shape.dims, value, dtype=REAL_DTYPE))

    @classmethod
    def from_list(cls, shape: Shape, values: Iterable[Number]) -> "Tensor":
        """Build a tensor from a flat, row-major sequence of values."""
        return cls(shape, list(values))

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Tensor":
        """Build a tensor whose shape is taken from a NumPy array."""
        arr = np.asarray(arr)
        return cls(Shape(tuple(arr.shape)), arr)

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the underlying array."""
        return self._data

    def to_numpy(self) -> np.ndarray:
        """Return a writable copy of the underlying array."""
        return self._data.copy()

    def to_list(self) -> List[float]:
        """Return the elements as a flat, row-major list."""
        return self._data.reshape(-1).tolist()

    def with_data(self, arr: np.ndarray) -> "Tensor":
        """Return a tensor with this shape and new values."""
        return Tensor.of(self._shape, arr)

    def map(self, f) -> "Tensor":
        """Apply an array function elementwise, keeping the shape."""
        return Tensor.of(self._shape, f(self._data))

    def sum_of_squares(self) -> float:
        return float(np.sum(self._data * self._data))

    def _binary(self, other: Any, op) -> "Tensor":
        if isinstance(other, Tensor):
            if other._shape != self._shape:
                raise ShapeMismatchError(
                    f"Elementwise operation between {self._shape} and {other._shape}",
                    expected=self._shape,
                    actual=other._shape,
                )
            return Tensor.of(self._shape, op(self._data, other._data))
        if isinstance(other, (int, float, np.floating, np.integer)):
            return Tensor.of(self._shape, op(self._data, REAL_DTYPE.type(other)))
        return NotImplemented

    def __add__(self, other: Any) -> "Tensor":
        return self._binary(other, np.add)

    def __radd__(self, other: Any) -> "Tensor":
        return self._binary(other, lambda a, b: np.add(b, a))

    def __sub__(self, other: Any) -> "Tensor":
        return self._binary(other, np.subtract)

    def __rsub__(self, other: Any) -> "Tensor":
        return self._binary(other, lambda a, b: np.subtract(b, a))

    def __mul__(self, other: Any) -> "Tensor":
        return self._binary(other, np.multiply)

    def __rmul__(self, other: Any) -> "Tensor":
        return self._binary(other, lambda a, b: np.multiply(b, a))

    def __truediv__(self, other: Any) -> "Tensor":
        return self._binary(other, np.divide)

    def __rtruediv__(self, other: Any) -> "Tensor":
        return self._binary(other, lambda a, b: np.divide(b, a))

    def __neg__(self) -> "Tensor":
        return Tensor.of(self._shape, -self._data)

    def __abs__(self) -> "Tensor":
        return Tensor.of(self._shape, np.abs(self._data))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self._shape == other._shape and bool(
            np.array_equal(self._data, other._data)
        )

    def __ne__(self, other: object) -> bool:
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Tensor({self._shape}, {self.to_list()})"
