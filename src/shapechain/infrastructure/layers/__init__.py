"""
Parameterless structural layers.

Exports
-------
- Reshape:
    Reinterpret a tensor under another shape with the same element count.
- Crop, Pad:
    Remove or add a border around D2/D3 images.
- Dropout:
    Inverted dropout with a seeded, deterministic mask.
"""

from ._reshape import Reshape
from ._crop import Crop, Pad
from ._dropout import Dropout

__all__ = [
    Reshape.__name__,
    Crop.__name__,
    Pad.__name__,
    Dropout.__name__,
]
