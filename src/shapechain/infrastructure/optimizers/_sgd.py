"""
Stochastic Gradient Descent (SGD) optimizer configuration.

`SGD` is an immutable description of the momentum SGD update rule with
classical L2 regularization. It holds no parameter references and no running
state: the momentum buffers live in the layer being updated and are threaded
through `apply_update_rule`.

Update rule
-----------
For a parameter array ``w`` with gradient ``g`` and previous momentum ``m``:

    m' = momentum * m - learning_rate * g
    w' = w + m' - learning_rate * l2 * w
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SGD:
    """
    Momentum SGD optimizer configuration.

    Parameters
    ----------
    learning_rate : float, optional
        Step size. Must be positive. Defaults to 0.01.
    momentum : float, optional
        Momentum coefficient in [0, 1). Defaults to 0.9.
    l2 : float, optional
        Classical L2 regularization coefficient (coupled). Must be
        non-negative. Defaults to 1e-4.

    Raises
    ------
    ValueError
        If any hyperparameter is outside its valid range.
    """

    learning_rate: float = 0.01
    momentum: float = 0.9
    l2: float = 1e-4

    def __post_init__(self) -> None:
        if self.learning_rate <= 0.0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if not 0.0 <= self.momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {self.momentum}")
        if self.l2 < 0.0:
            raise ValueError(f"l2 must be >= 0, got {self.l2}")

    @property
    def name(self) -> str:
        return "sgd"

    @property
    def state_size(self) -> int:
        """One momentum buffer per parameter array."""
        return 1
