"""
Reshape layer.

`Reshape` reinterprets its input as a tensor of another shape holding the
same number of elements. Elements keep their row-major order, so a D2 or D3
image flattens to a D1 vector (and back) exactly as the underlying array
would.
"""

from __future__ import annotations

from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape
from .._gradient import NO_GRADIENT
from .._layer import Layer
from ..tensor._tensor import Tensor


class Reshape(Layer):
    """
    Change the shape of a tensor without touching its elements.

    Parameters
    ----------
    target : Shape
        Output shape. Must have as many elements as the input shape.
    """

    def __init__(self, target: Shape) -> None:
        self.target = target

    def output_shape(self, input_shape: Shape) -> Shape:
        if input_shape.size != self.target.size:
            raise ShapeMismatchError(
                f"Reshape cannot turn {input_shape} ({input_shape.size} elements) "
                f"into {self.target} ({self.target.size} elements)",
                expected=self.target,
                actual=input_shape,
            )
        return self.target

    def run_forwards(self, x: Tensor):
        return x.shape, Tensor.of(self.target, x.data)

    def run_backwards(self, tape: Shape, dy: Tensor):
        return NO_GRADIENT, Tensor.of(tape, dy.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reshape):
            return NotImplemented
        return self.target == other.target

    def __hash__(self) -> int:
        return hash(self.target)
