"""
Elman-style recurrent layer.

`BasicRecurrent` keeps a hidden vector as its recurrent state and computes,
for each timestep,

    h_t = tanh(b + W_ih x_t + W_hh h_{t-1})

emitting ``h_t`` both as its output and as the state for the next timestep.

The backward pass adds the gradient arriving through the output to the one
arriving through the state, then back propagates through the ``tanh``:

    da = (dy + dh_t) * (1 - h_t^2)
    db = da,  dW_ih = da x_t^T,  dW_hh = da h_{t-1}^T
    dx_t = W_ih^T da,  dh_{t-1} = W_hh^T da

Binary encoding: bias, input weights, recurrent weights, each row-major.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ...domain._shape import Shape
from ...domain.utils._weight_initialization import WeightInitMethod
from .._config import REAL_DTYPE
from .._gradient import ArrayGradient
from .._layer import require_shape
from ..encoding._binary import BinaryReader, BinaryWriter
from ..optimizers._update import UpdateState, apply_update_rule
from ..tensor._tensor import Tensor
from ..utils.weight_initializer import get_random_matrix, get_random_vector
from ._recurrent_layer import RecurrentLayer


@dataclass(frozen=True, eq=False)
class BasicRecurrentGradient(ArrayGradient):
    bias: np.ndarray
    input_weights: np.ndarray
    recurrent_weights: np.ndarray


def _param(value: Any, shape, name: str) -> np.ndarray:
    arr = np.zeros(shape, dtype=REAL_DTYPE) if value is None else value
    arr = np.array(arr, dtype=REAL_DTYPE, copy=True)
    if arr.size != int(np.prod(shape)):
        raise ValueError(f"{name} must have shape {shape}, got {arr.shape}")
    arr = arr.reshape(shape)
    arr.setflags(write=False)
    return arr


class BasicRecurrent(RecurrentLayer):
    """
    Recurrent layer from ``D1 input_size`` to ``D1 hidden_size``.

    Parameters
    ----------
    input_size : int
        Length of the input vector.
    hidden_size : int
        Length of the hidden state, which is also the output.
    bias, input_weights, recurrent_weights : array-like, optional
        Parameters of shapes ``(hidden,)``, ``(hidden, input)`` and
        ``(hidden, hidden)``. Default to zeros.
    store : UpdateState, optional
        Optimizer state carried from a previous update.
    """

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        *,
        bias: Any = None,
        input_weights: Any = None,
        recurrent_weights: Any = None,
        store: Optional[UpdateState] = None,
    ) -> None:
        self.input_size = int(input_size)
        self.hidden_size = int(hidden_size)
        if self.input_size <= 0 or self.hidden_size <= 0:
            raise ValueError(
                f"BasicRecurrent sizes must be positive, got "
                f"{input_size}x{hidden_size}"
            )
        h, i = self.hidden_size, self.input_size
        self.bias = _param(bias, (h,), "bias")
        self.input_weights = _param(input_weights, (h, i), "input_weights")
        self.recurrent_weights = _param(recurrent_weights, (h, h), "recurrent_weights")
        self.store = store

    def _replace(self, b, w_ih, w_hh, store=None) -> "BasicRecurrent":
        return BasicRecurrent(
            self.input_size,
            self.hidden_size,
            bias=b,
            input_weights=w_ih,
            recurrent_weights=w_hh,
            store=store,
        )

    def output_shape(self, input_shape: Shape) -> Shape:
        require_shape(self, input_shape, Shape.d1(self.input_size))
        return Shape.d1(self.hidden_size)

    def initial_state(self) -> Tensor:
        return Tensor.zeros(Shape.d1(self.hidden_size))

    def run_recurrent_forwards(self, state: Tensor, x: Tensor):
        a = self.bias + self.input_weights @ x.data + self.recurrent_weights @ state.data
        h = Tensor.of(Shape.d1(self.hidden_size), np.tanh(a))
        return (x, state, h), h, h

    def run_recurrent_backwards(self, tape, state_grad: Tensor, dy: Tensor):
        x, prev, h = tape
        da = (dy.data + state_grad.data) * (1 - h.data * h.data)
        grad = BasicRecurrentGradient(
            bias=da,
            input_weights=np.outer(da, x.data),
            recurrent_weights=np.outer(da, prev.data),
        )
        ds = Tensor.of(prev.shape, self.recurrent_weights.T @ da)
        dx = Tensor.of(x.shape, self.input_weights.T @ da)
        return grad, ds, dx

    def run_update(
        self, optimizer: Any, grad: BasicRecurrentGradient
    ) -> "BasicRecurrent":
        params, store = apply_update_rule(
            optimizer,
            (self.bias, self.input_weights, self.recurrent_weights),
            grad.arrays(),
            self.store,
        )
        return self._replace(*params, store=store)

    def create_random_with(
        self, method: WeightInitMethod, rng: np.random.Generator
    ) -> "BasicRecurrent":
        i, h = self.input_size, self.hidden_size
        b = get_random_vector(i, h, method, rng, h)
        w_ih = get_random_matrix(i, h, method, rng, h, i)
        w_hh = get_random_matrix(h, h, method, rng, h, h)
        return self._replace(b, w_ih, w_hh)

    def serialize(self, writer: BinaryWriter) -> None:
        writer.write_array(self.bias)
        writer.write_array(self.input_weights)
        writer.write_array(self.recurrent_weights)

    def deserialize(self, reader: BinaryReader) -> "BasicRecurrent":
        h, i = self.hidden_size, self.input_size
        b = reader.read_array((h,))
        w_ih = reader.read_array((h, i))
        w_hh = reader.read_array((h, h))
        return self._replace(b, w_ih, w_hh)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BasicRecurrent):
            return NotImplemented
        return (
            self.input_size == other.input_size
            and self.hidden_size == other.hidden_size
            and np.array_equal(self.bias, other.bias)
            and np.array_equal(self.input_weights, other.input_weights)
            and np.array_equal(self.recurrent_weights, other.recurrent_weights)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"BasicRecurrent {self.input_size} {self.hidden_size}"
