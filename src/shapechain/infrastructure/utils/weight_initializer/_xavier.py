"""
Xavier/Glorot weight initializer.

Registers ``xavier`` into the global `WeightInitializer` registry:

    W ~ U(-bound, +bound), where bound = sqrt(6 / (fan_in + fan_out))
"""

import math

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("xavier")
def xavier(fan_in: int, fan_out: int, rng: np.random.Generator, size) -> np.ndarray:
    """
    Apply Xavier (Glorot) uniform initialization.

    Parameters
    ----------
    fan_in, fan_out:
        Number of inputs and outputs of the layer.
    rng:
        Random source.
    size:
        Output shape.

    Returns
    -------
    np.ndarray
        Freshly drawn values.
    """
    bound = math.sqrt(6.0) / math.sqrt(float(fan_in + fan_out))
    return rng.uniform(-1.0, 1.0, size=size) * bound
