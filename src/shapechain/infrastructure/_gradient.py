"""
Per-layer gradient values.

This module provides the building blocks used by layers to describe the
gradient of their learnable parameters:

- `ArrayGradient`: base class for frozen dataclasses whose fields are NumPy
  arrays (e.g. a bias vector and a weight matrix). It supplies elementwise
  arithmetic, `map_gradient` and `squared_sums` generically over the fields.
- `NO_GRADIENT`: the gradient of a layer without parameters. Every operation
  on it returns it unchanged and it contributes nothing to norms.

Both satisfy the domain `IFoldableGradient` protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, List, Tuple

import numpy as np


def _scalar(x: Any) -> bool:
    return isinstance(x, (int, float, np.floating, np.integer))


@dataclass(frozen=True)
class ArrayGradient:
    """
    Base class for gradients made of a fixed set of NumPy arrays.

    Subclasses are frozen dataclasses declaring one `np.ndarray` field per
    parameter array, in the same order as the layer's parameters.

    Notes
    -----
    Arithmetic between two gradients requires both to be of the same class;
    scalar multiplication and division are supported on either side.
    """

    def arrays(self) -> Tuple[np.ndarray, ...]:
        """Return the gradient arrays in declaration order."""
        return tuple(getattr(self, f.name) for f in fields(self))

    def with_arrays(self, arrays: Tuple[np.ndarray, ...]) -> "ArrayGradient":
        """Return a gradient of the same class holding `arrays`."""
        return type(self)(*arrays)

    def map_gradient(self, f: Callable[[np.ndarray], np.ndarray]) -> "ArrayGradient":
        return self.with_arrays(tuple(f(a) for a in self.arrays()))

    def squared_sums(self) -> List[float]:
        return [float(np.sum(a * a)) for a in self.arrays()]

    def _zip(self, other: Any, op) -> "ArrayGradient":
        if _scalar(other):
            return self.with_arrays(tuple(op(a, other) for a in self.arrays()))
        if type(other) is not type(self):
            return NotImplemented
        return self.with_arrays(
            tuple(op(a, b) for a, b in zip(self.arrays(), other.arrays()))
        )

    def __add__(self, other: Any) -> "ArrayGradient":
        return self._zip(other, np.add)

    def __sub__(self, other: Any) -> "ArrayGradient":
        return self._zip(other, np.subtract)

    def __mul__(self, other: Any) -> "ArrayGradient":
        return self._zip(other, np.multiply)

    def __rmul__(self, other: Any) -> "ArrayGradient":
        return self._zip(other, np.multiply)

    def __truediv__(self, other: Any) -> "ArrayGradient":
        return self._zip(other, np.divide)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(
            np.array_equal(a, b) for a, b in zip(self.arrays(), other.arrays())
        )

    __hash__ = None  # type: ignore[assignment]


class _NoGradient:
    """Gradient of a layer without learnable parameters."""

    _instance = None

    def __new__(cls) -> "_NoGradient":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def map_gradient(self, f: Callable) -> "_NoGradient":
        return self

    def squared_sums(self) -> List[float]:
        return []

    def _same(self, other: Any) -> "_NoGradient":
        return self

    __add__ = __sub__ = __mul__ = __rmul__ = __truediv__ = _same

    def __repr__(self) -> str:
        return "NO_GRADIENT"

    def __reduce__(self):
        return (_NoGradient, ())


NO_GRADIENT = _NoGradient()


def mean_gradient(grads: List[Any]) -> Any:
    """
    Arithmetic mean of a non-empty list of gradients.

    The sum is accumulated left to right and divided once by the count.
    """
    total = grads[0]
    for g in grads[1:]:
        total = total + g
    return total / len(grads)
