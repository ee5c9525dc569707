"""
Elementwise activation layers.

This module provides parameterless layers that apply a nonlinearity to every
element of their input and accept any shape (D1 through D4), producing an
output of the same shape.

Tapes
-----
Each activation keeps its input as the tape and evaluates the derivative at
that input during the backward pass:

- `Relu`:  y = max(0, x),         dy/dx = 1 if x > 0 else 0
- `Tanh`:  y = tanh(x),           dy/dx = 1 - tanh(x)^2
- `Logit`: y = 1 / (1 + exp(-x)), dy/dx = y (1 - y)

Notes
-----
- All activations return `NO_GRADIENT` as their parameter gradient.
- The ReLU derivative at exactly zero is taken to be zero.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Tuple

import numpy as np

from ..domain._shape import Shape
from ._gradient import NO_GRADIENT
from ._layer import Layer
from .tensor._tensor import Tensor


class _Activation(Layer):
    """
    Shared implementation of shape-preserving elementwise activations.

    Subclasses provide `_forward(x)` and `_derivative(x)` over NumPy arrays.
    """

    @abstractmethod
    def _forward(self, x: np.ndarray) -> np.ndarray:
        """Apply the nonlinearity elementwise."""

    @abstractmethod
    def _derivative(self, x: np.ndarray) -> np.ndarray:
        """Derivative of the nonlinearity at `x`, elementwise."""

    def output_shape(self, input_shape: Shape) -> Shape:
        return input_shape

    def run_forwards(self, x: Tensor) -> Tuple[Tensor, Tensor]:
        return x, x.map(self._forward)

    def run_backwards(self, tape: Tensor, dy: Tensor):
        return NO_GRADIENT, dy.with_data(self._derivative(tape.data) * dy.data)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self).__name__)


class Relu(_Activation):
    """Rectified linear unit."""

    def _forward(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(x, 0)

    def _derivative(self, x: np.ndarray) -> np.ndarray:
        return (x > 0).astype(x.dtype)


class Tanh(_Activation):
    """Hyperbolic tangent activation."""

    def _forward(self, x: np.ndarray) -> np.ndarray:
        return np.tanh(x)

    def _derivative(self, x: np.ndarray) -> np.ndarray:
        t = np.tanh(x)
        return 1 - t * t


class Logit(_Activation):
    """
    Logistic sigmoid activation.

    Evaluated in a numerically stable way for large negative inputs.
    """

    def _forward(self, x: np.ndarray) -> np.ndarray:
        out = np.empty_like(x)
        pos = x >= 0
        out[pos] = 1 / (1 + np.exp(-x[pos]))
        ex = np.exp(x[~pos])
        out[~pos] = ex / (1 + ex)
        return out

    def _derivative(self, x: np.ndarray) -> np.ndarray:
        s = self._forward(x)
        return s * (1 - s)
