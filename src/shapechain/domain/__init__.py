"""
Domain layer of ShapeChain.

Backend-agnostic contracts: shapes, layer and gradient protocols, optimizer
contracts, weight initialization methods and errors.
"""

from ._shape import Shape
from ._errors import (
    ShapechainError,
    InvalidShapeError,
    ShapeMismatchError,
    EmptyBatchError,
    DeserializationError,
    NotRecurrentLayerError,
)
from ._layer import ILayer, IRecurrentLayer
from ._gradient import IFoldableGradient
from ._optimizers import IOptimizer
from .utils._weight_initialization import WeightInitMethod

__all__ = [
    Shape.__name__,
    ShapechainError.__name__,
    InvalidShapeError.__name__,
    ShapeMismatchError.__name__,
    EmptyBatchError.__name__,
    DeserializationError.__name__,
    NotRecurrentLayerError.__name__,
    ILayer.__name__,
    IRecurrentLayer.__name__,
    IFoldableGradient.__name__,
    IOptimizer.__name__,
    WeightInitMethod.__name__,
]
