"""
He et al. (Kaiming) weight initializer.

Registers ``he_et_al`` into the global `WeightInitializer` registry:

    W ~ N(0, sqrt(2 / fan_in))

Notes
-----
- Fan-in is the number of inputs of the layer being initialized.
- Intended for weights feeding ReLU-family activations.
"""

import math

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("he_et_al")
def he_et_al(
    fan_in: int, fan_out: int, rng: np.random.Generator, size
) -> np.ndarray:
    """
    Apply He et al. normal initialization, ``std = sqrt(2 / fan_in)``.

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
    std = math.sqrt(2.0 / float(fan_in))
    return rng.standard_normal(size=size) * std
