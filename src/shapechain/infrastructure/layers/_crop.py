"""
Cropping and padding layers for D2 and D3 images.

`Crop` removes a fixed border from the rows and columns of an image and
`Pad` adds a zero border. Each is the adjoint of the other: the backward pass
of `Crop` zero-pads the output gradient, and the backward pass of `Pad`
crops it. D3 inputs ``(rows, columns, channels)`` are treated per channel.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape
from .._gradient import NO_GRADIENT
from .._layer import Layer, require_rank
from ..tensor._tensor import Tensor


def _pad_width(rank: int, left: int, top: int, right: int, bottom: int):
    width = [(top, bottom), (left, right)]
    if rank == 3:
        width.append((0, 0))
    return width


class _Border(Layer):
    def __init__(self, left: int, top: int, right: int, bottom: int) -> None:
        self.left = int(left)
        self.top = int(top)
        self.right = int(right)
        self.bottom = int(bottom)
        if min(self.left, self.top, self.right, self.bottom) < 0:
            raise ValueError(
                f"{type(self).__name__} borders must be non-negative, got "
                f"{self.borders}"
            )

    @property
    def borders(self) -> Tuple[int, int, int, int]:
        """``(left, top, right, bottom)``"""
        return (self.left, self.top, self.right, self.bottom)

    def _crop(self, arr: np.ndarray) -> np.ndarray:
        rows, cols = arr.shape[:2]
        return arr[self.top : rows - self.bottom, self.left : cols - self.right]

    def _pad(self, arr: np.ndarray) -> np.ndarray:
        return np.pad(arr, _pad_width(arr.ndim, *self.borders), mode="constant")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.borders == other.borders

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.borders))


class Crop(_Border):
    """
    Remove `left`, `top`, `right` and `bottom` rows/columns from an image.
    """

    def output_shape(self, input_shape: Shape) -> Shape:
        require_rank(self, input_shape, 2, 3)
        rows = input_shape.dims[0] - self.top - self.bottom
        cols = input_shape.dims[1] - self.left - self.right
        if rows <= 0 or cols <= 0:
            raise ShapeMismatchError(
                f"Crop {self.borders} leaves nothing of {input_shape}",
                actual=input_shape,
            )
        return Shape((rows, cols) + input_shape.dims[2:])

    def run_forwards(self, x: Tensor):
        y = self._crop(x.data)
        return None, Tensor.of(Shape(y.shape), y)

    def run_backwards(self, tape, dy: Tensor):
        dx = self._pad(dy.data)
        return NO_GRADIENT, Tensor.of(Shape(dx.shape), dx)


class Pad(_Border):
    """
    Surround an image with `left`, `top`, `right` and `bottom` zero
    rows/columns.
    """

    def output_shape(self, input_shape: Shape) -> Shape:
        require_rank(self, input_shape, 2, 3)
        rows = input_shape.dims[0] + self.top + self.bottom
        cols = input_shape.dims[1] + self.left + self.right
        return Shape((rows, cols) + input_shape.dims[2:])

    def run_forwards(self, x: Tensor):
        y = self._pad(x.data)
        return None, Tensor.of(Shape(y.shape), y)

    def run_backwards(self, tape, dy: Tensor):
        dx = self._crop(dy.data)
        return NO_GRADIENT, Tensor.of(Shape(dx.shape), dx)
