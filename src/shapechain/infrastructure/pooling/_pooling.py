"""
Max pooling over D2 and D3 images.

The pooling window slides over rows and columns with a fixed stride and keeps
the maximum of each window. D3 inputs ``(rows, columns, channels)`` are
pooled independently per channel.

Output extents follow ``out = (in - kernel) // stride + 1`` on each spatial
axis; inputs smaller than the kernel are rejected when the network is built.

The forward pass records, for every output element, the flat (row-major)
index of the input element that won the window. The backward pass scatters
the output gradient back to those positions, accumulating where windows
overlap.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape
from .._gradient import NO_GRADIENT
from .._layer import Layer, require_rank
from ..tensor._tensor import Tensor


def _out_extent(n: int, k: int, s: int) -> int:
    return (n - k) // s + 1


def maxpool_forward(
    x: np.ndarray, kernel: Tuple[int, int], stride: Tuple[int, int]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Naive max pooling over a ``(rows, columns, channels)`` array.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        y :
            Pooled array of shape ``(out_rows, out_columns, channels)``.
        argmax_idx :
            Flat row-major index into `x` of each selected maximum.
    """
    H, W, C = x.shape
    k_h, k_w = kernel
    s_h, s_w = stride
    H_out = _out_extent(H, k_h, s_h)
    W_out = _out_extent(W, k_w, s_w)

    y = np.empty((H_out, W_out, C), dtype=x.dtype)
    argmax_idx = np.empty((H_out, W_out, C), dtype=np.int64)

    for c in range(C):
        for i in range(H_out):
            h0 = i * s_h
            for j in range(W_out):
                w0 = j * s_w
                patch = x[h0 : h0 + k_h, w0 : w0 + k_w, c]
                flat_idx = int(np.argmax(patch))
                y[i, j, c] = patch.reshape(-1)[flat_idx]

                h = h0 + flat_idx // k_w
                w_ = w0 + flat_idx % k_w
                argmax_idx[i, j, c] = (h * W + w_) * C + c

    return y, argmax_idx


def maxpool_backward(
    grad_out: np.ndarray, argmax_idx: np.ndarray, x_shape: Tuple[int, ...]
) -> np.ndarray:
    """
    Route `grad_out` back to the argmax positions of the forward pass.
    """
    grad_x = np.zeros(int(np.prod(x_shape)), dtype=grad_out.dtype)
    np.add.at(grad_x, argmax_idx.reshape(-1), grad_out.reshape(-1))
    return grad_x.reshape(x_shape)


class Pooling(Layer):
    """
    Max pooling layer.

    Parameters
    ----------
    kernel_rows, kernel_columns : int
        Window extent.
    stride_rows, stride_columns : int
        Window step.

    Notes
    -----
    The layer has no parameters; its configuration is part of the layer
    value and is not serialized.
    """

    def __init__(
        self,
        kernel_rows: int,
        kernel_columns: int,
        stride_rows: int,
        stride_columns: int,
    ) -> None:
        self.kernel = (int(kernel_rows), int(kernel_columns))
        self.stride = (int(stride_rows), int(stride_columns))
        if min(self.kernel + self.stride) <= 0:
            raise ValueError(
                f"Pooling kernel and stride must be positive, got "
                f"kernel={self.kernel} stride={self.stride}"
            )

    def output_shape(self, input_shape: Shape) -> Shape:
        require_rank(self, input_shape, 2, 3)
        rows, cols = input_shape.dims[:2]
        k_h, k_w = self.kernel
        if rows < k_h or cols < k_w:
            raise ShapeMismatchError(
                f"Pooling kernel {k_h}x{k_w} does not fit input {input_shape}",
                actual=input_shape,
            )
        out = (
            _out_extent(rows, k_h, self.stride[0]),
            _out_extent(cols, k_w, self.stride[1]),
        )
        return Shape(out + input_shape.dims[2:])

    def run_forwards(self, x: Tensor):
        arr = x.data if x.shape.rank == 3 else x.data[:, :, np.newaxis]
        y, idx = maxpool_forward(arr, self.kernel, self.stride)
        out_shape = Shape(y.shape[:2] + x.shape.dims[2:])
        return (idx, x.shape), Tensor.of(out_shape, y)

    def run_backwards(self, tape, dy: Tensor):
        idx, in_shape = tape
        dx = maxpool_backward(dy.data, idx, in_shape.dims)
        return NO_GRADIENT, Tensor.of(in_shape, dx)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pooling):
            return NotImplemented
        return self.kernel == other.kernel and self.stride == other.stride

    def __hash__(self) -> int:
        return hash((self.kernel, self.stride))

    def __repr__(self) -> str:
        return "Pooling"
