"""
Exceptions raised by ShapeChain.

Composition errors (an invalid shape, or two layers whose shapes do not line
up) are raised when a network is constructed, never when it is run. Caller
invariant violations, such as reducing an empty batch of gradients, are
raised where they are detected so that they cannot be silently defaulted.

Recoverable failures of external data import (ONNX attributes and
initializers) do not raise; those readers return ``None`` instead.
"""

from __future__ import annotations

from typing import Any, Optional


class ShapechainError(Exception):
    """Base class for all ShapeChain errors."""


class InvalidShapeError(ShapechainError, ValueError):
    """Raised when a shape has an unsupported rank or a non-positive extent."""


class ShapeMismatchError(ShapechainError, ValueError):
    """
    Raised when two shapes that must agree do not.

    Attributes
    ----------
    expected : Any
        The shape that was required.
    actual : Any
        The shape that was supplied or produced.
    index : Optional[int]
        Position of the offending layer in a network, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        expected: Any = None,
        actual: Any = None,
        index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.index = index


class EmptyBatchError(ShapechainError, ValueError):
    """
    Raised when gradient reduction is requested over zero samples.

    The structure of a gradient cannot be inferred from an empty batch, so
    this is treated as a caller error rather than defaulted to zero.
    """

    def __init__(self, where: str) -> None:
        super().__init__(f"Cannot reduce an empty batch of gradients in {where}.")
        self.where = where


class DeserializationError(ShapechainError, ValueError):
    """Raised when a binary payload does not match the expected network."""


class NotRecurrentLayerError(ShapechainError, TypeError):
    """Raised when a layer tagged as recurrent does not implement the recurrent contract."""

    def __init__(self, layer: Any, index: int) -> None:
        super().__init__(
            f"Layer {index} ({type(layer).__name__}) is tagged Recurrent but does "
            "not implement RecurrentLayer."
        )
        self.layer = layer
        self.index = index
