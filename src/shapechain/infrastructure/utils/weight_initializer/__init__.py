"""
Weight initialization public API.

This module aggregates the supported weight initialization strategies
(uniform, Xavier, He et al.) and registers them into the global
`WeightInitializer` registry via import side effects.

Importing this module ensures that all built-in initializers are available
for lookup and dispatch through `WeightInitializer`.

Exports
-------
- WeightInitializer:
    The registry-backed initializer dispatcher.
- get_random_vector / get_random_matrix:
    Convenience helpers used by layers to draw their parameters.
"""

from ._uniform import *
from ._xavier import *
from ._kaiming import *
from ._base import WeightInitializer, get_random_vector, get_random_matrix

__all__ = [
    WeightInitializer.__name__,
    get_random_vector.__name__,
    get_random_matrix.__name__,
]
