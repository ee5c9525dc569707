"""
Tensor public API.

Exports
-------
- Tensor:
    The immutable, shape-tagged array passed between layers.
"""

from ._tensor import Tensor

__all__ = [
    Tensor.__name__,
]
