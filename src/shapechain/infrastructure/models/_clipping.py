"""
Gradient norms and global-norm clipping.

Both functions accept any foldable gradient: a single layer gradient,
`NO_GRADIENT`, or a whole network's `Gradients`.

Non-finite values
-----------------
A NaN or infinite norm is never used to rescale. `clip_by_global_norm`
returns the gradients unchanged and emits a `RuntimeWarning`, leaving the
decision to the caller.
"""

from __future__ import annotations

import math
import warnings
from typing import Any

from ...domain._gradient import IFoldableGradient


def l2_norm(grad: IFoldableGradient) -> float:
    """
    Euclidean norm over every element of `grad`.

    Returns
    -------
    float
        ``sqrt(sum(grad.squared_sums()))``; 0.0 for a gradient without
        parameters.
    """
    return math.sqrt(math.fsum(grad.squared_sums()))


def clip_by_global_norm(threshold: float, grads: Any) -> Any:
    """
    Rescale `grads` so that their global norm does not exceed `threshold`.

    The norm is computed over every layer's gradient before any scaling is
    decided. When it exceeds `threshold`, every element is multiplied by
    ``threshold / norm``; otherwise `grads` is returned as is.

    Parameters
    ----------
    threshold : float
        Maximum allowed global norm. Must be non-negative.
    grads : IFoldableGradient
        Gradients to clip.

    Raises
    ------
    ValueError
        If `threshold` is negative or not finite.
    """
    threshold = float(threshold)
    if not math.isfinite(threshold) or threshold < 0.0:
        raise ValueError(f"Clipping threshold must be finite and >= 0, got {threshold}")

    divisor = l2_norm(grads)
    if not math.isfinite(divisor):
        warnings.warn(
            f"Global gradient norm is {divisor}; gradients left unclipped.",
            RuntimeWarning,
            stacklevel=2,
        )
        return grads
    if divisor > threshold:
        scale = threshold / divisor
        return grads.map_gradient(lambda a: a * scale)
    return grads
