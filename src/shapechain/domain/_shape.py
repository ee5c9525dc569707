"""
Shape descriptors for ShapeChain tensors.

This module defines `Shape`, the value that tags every tensor flowing through
a network with its rank and per-axis extents. Shapes are the unit of
composition checking: a network is only constructible when the output shape
of each layer equals the input shape of the next one.

Supported ranks
---------------
- D1: ``(length,)``
- D2: ``(rows, columns)``
- D3: ``(rows, columns, channels)``
- D4: four extents

Notes
-----
- Shapes are immutable and hashable, and equality is purely structural.
- This module is backend-agnostic and must not depend on NumPy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ._errors import InvalidShapeError


@dataclass(frozen=True)
class Shape:
    """
    Rank-1..4 tensor shape.

    Parameters
    ----------
    dims : tuple[int, ...]
        Per-axis extents. Must contain between one and four strictly
        positive integers.

    Raises
    ------
    InvalidShapeError
        If the rank is outside 1..4 or any extent is not positive.
    """

    dims: Tuple[int, ...]

    def __post_init__(self) -> None:
        dims = tuple(int(d) for d in self.dims)
        if not 1 <= len(dims) <= 4:
            raise InvalidShapeError(
                f"Shape rank must be between 1 and 4, got {len(dims)}: {dims}"
            )
        if any(d <= 0 for d in dims):
            raise InvalidShapeError(f"Shape extents must be positive, got {dims}")
        object.__setattr__(self, "dims", dims)

    @classmethod
    def d1(cls, length: int) -> "Shape":
        """Vector shape."""
        return cls((length,))

    @classmethod
    def d2(cls, rows: int, columns: int) -> "Shape":
        """Matrix shape."""
        return cls((rows, columns))

    @classmethod
    def d3(cls, rows: int, columns: int, channels: int) -> "Shape":
        """Three dimensional (image with channels) shape."""
        return cls((rows, columns, channels))

    @classmethod
    def d4(cls, a: int, b: int, c: int, d: int) -> "Shape":
        """Four dimensional shape."""
        return cls((a, b, c, d))

    @property
    def rank(self) -> int:
        return len(self.dims)

    @property
    def size(self) -> int:
        """Total number of elements described by this shape."""
        n = 1
        for d in self.dims:
            n *= d
        return n

    def __str__(self) -> str:
        return f"D{self.rank} {' '.join(str(d) for d in self.dims)}"
