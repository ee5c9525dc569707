"""
Uniform weight initializer.

Registers ``uniform`` into the global `WeightInitializer` registry:

    W ~ U(-1/sqrt(fan_in), 1/sqrt(fan_in))

This is the default method used by `random_network`.
"""

import math

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("uniform")
def uniform(
    fan_in: int, fan_out: int, rng: np.random.Generator, size
) -> np.ndarray:
    """
    Draw from U(-1/sqrt(fan_in), 1/sqrt(fan_in)).

    Parameters
    ----------
    fan_in:
        Number of inputs of the layer.
    fan_out:
        Unused by this method.
    rng:
        Random source.
    size:
        Output shape.

    Returns
    -------
    np.ndarray
        Freshly drawn values.
    """
    bound = 1.0 / math.sqrt(float(fan_in))
    return rng.uniform(-1.0, 1.0, size=size) * bound
