"""
Fully-connected (dense) layer.

This module defines `FullyConnected`, the affine map between two vector
shapes:

    y = b + W x

where ``x`` has shape ``D1 input_size``, ``W`` is an
``(output_size, input_size)`` matrix and ``b`` a length ``output_size``
vector.

Design notes
------------
- The layer is a value: `run_update` returns a new layer, and the optimizer
  state (momentum or Adam moments) travels with it in `store`.
- The tape of a forward pass is the input vector, which is all the backward
  pass needs to form ``dW = dy x^T``.
- Binary encoding: bias vector, then weight matrix row-major. The optimizer
  state is not serialized; a deserialized layer starts with a fresh state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from ...domain._shape import Shape
from ...domain.utils._weight_initialization import WeightInitMethod
from .._config import REAL_DTYPE
from .._gradient import ArrayGradient
from .._layer import Layer, require_shape
from ..encoding._binary import BinaryReader, BinaryWriter
from ..optimizers._update import UpdateState, apply_update_rule
from ..tensor._tensor import Tensor
from ..utils.weight_initializer import get_random_matrix, get_random_vector


@dataclass(frozen=True, eq=False)
class FullyConnectedGradient(ArrayGradient):
    """Gradient of a `FullyConnected` layer with respect to bias and weights."""

    bias: np.ndarray
    weights: np.ndarray


class FullyConnected(Layer):
    """
    Fully-connected layer from ``D1 input_size`` to ``D1 output_size``.

    Parameters
    ----------
    input_size : int
        Length of the input vector.
    output_size : int
        Length of the output vector.
    bias : array-like, optional
        Bias vector of length `output_size`. Defaults to zeros.
    weights : array-like, optional
        Weight matrix of shape ``(output_size, input_size)`` (or any
        row-major sequence of that many values). Defaults to zeros.
    store : UpdateState, optional
        Optimizer state carried from a previous update.

    Raises
    ------
    ValueError
        If sizes are not positive or the parameter arrays do not match them.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        *,
        bias: Any = None,
        weights: Any = None,
        store: Optional[UpdateState] = None,
    ) -> None:
        self.input_size = int(input_size)
        self.output_size = int(output_size)
        if self.input_size <= 0 or self.output_size <= 0:
            raise ValueError(
                f"FullyConnected sizes must be positive, got {input_size}x{output_size}"
            )

        b = np.zeros(self.output_size, dtype=REAL_DTYPE) if bias is None else bias
        w = (
            np.zeros((self.output_size, self.input_size), dtype=REAL_DTYPE)
            if weights is None
            else weights
        )
        b = np.array(b, dtype=REAL_DTYPE, copy=True).reshape(-1)
        w = np.array(w, dtype=REAL_DTYPE, copy=True)
        if b.shape != (self.output_size,):
            raise ValueError(
                f"bias must have {self.output_size} elements, got shape {b.shape}"
            )
        if w.size != self.output_size * self.input_size:
            raise ValueError(
                f"weights must have {self.output_size}x{self.input_size} elements, "
                f"got shape {w.shape}"
            )
        w = w.reshape(self.output_size, self.input_size)
        b.setflags(write=False)
        w.setflags(write=False)
        self._bias = b
        self._weights = w
        self.store = store

    @property
    def bias(self) -> np.ndarray:
        return self._bias

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    def _replace(
        self,
        bias: np.ndarray,
        weights: np.ndarray,
        store: Optional[UpdateState] = None,
    ) -> "FullyConnected":
        return FullyConnected(
            self.input_size, self.output_size, bias=bias, weights=weights, store=store
        )

    def output_shape(self, input_shape: Shape) -> Shape:
        require_shape(self, input_shape, Shape.d1(self.input_size))
        return Shape.d1(self.output_size)

    def run_forwards(self, x: Tensor) -> Tuple[Tensor, Tensor]:
        y = self._bias + self._weights @ x.data
        return x, Tensor.of(Shape.d1(self.output_size), y)

    def run_backwards(
        self, tape: Tensor, dy: Tensor
    ) -> Tuple[FullyConnectedGradient, Tensor]:
        g = dy.data
        grad = FullyConnectedGradient(bias=g.copy(), weights=np.outer(g, tape.data))
        dx = self._weights.T @ g
        return grad, Tensor.of(Shape.d1(self.input_size), dx)

    def run_update(
        self, optimizer: Any, grad: FullyConnectedGradient
    ) -> "FullyConnected":
        (b, w), store = apply_update_rule(
            optimizer,
            (self._bias, self._weights),
            (grad.bias, grad.weights),
            self.store,
        )
        return self._replace(b, w, store)

    def create_random_with(
        self, method: WeightInitMethod, rng: np.random.Generator
    ) -> "FullyConnected":
        i, o = self.input_size, self.output_size
        b = get_random_vector(i, o, method, rng, o)
        w = get_random_matrix(i, o, method, rng, o, i)
        return self._replace(b, w)

    def serialize(self, writer: BinaryWriter) -> None:
        writer.write_array(self._bias)
        writer.write_array(self._weights)

    def deserialize(self, reader: BinaryReader) -> "FullyConnected":
        b = reader.read_array((self.output_size,))
        w = reader.read_array((self.output_size, self.input_size))
        return self._replace(b, w)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FullyConnected):
            return NotImplemented
        return (
            self.input_size == other.input_size
            and self.output_size == other.output_size
            and np.array_equal(self._bias, other._bias)
            and np.array_equal(self._weights, other._weights)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FullyConnected {self.input_size} {self.output_size}"
