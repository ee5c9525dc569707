"""
Adam optimizer configuration.

`Adam` is an immutable description of the Adam update rule. The first and
second moment estimates and the step counter live in the layer being updated
and are threaded through `apply_update_rule`, so updating a layer never
mutates it.

Update rule
-----------
Let ``g_t`` be the gradient at step ``t`` (with coupled L2 regularization
``g_t <- g_t + l2 * w``):

    m_t = beta1 * m_{t-1} + (1 - beta1) * g_t
    v_t = beta2 * v_{t-1} + (1 - beta2) * (g_t ** 2)

    m_hat = m_t / (1 - beta1^t)
    v_hat = v_t / (1 - beta2^t)

    w <- w - alpha * m_hat / (sqrt(v_hat) + epsilon)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Adam:
    """
    Adam optimizer configuration.

    Parameters
    ----------
    alpha : float, optional
        Learning rate. Must be positive. Defaults to 1e-3.
    beta1, beta2 : float, optional
        Exponential decay rates for the moment estimates, each in (0, 1).
        Default to 0.9 and 0.999.
    epsilon : float, optional
        Numerical stability term added to the denominator. Must be positive.
        Defaults to 1e-4.
    l2 : float, optional
        Classical L2 regularization coefficient. Must be non-negative.
        Defaults to 1e-3.

    Raises
    ------
    ValueError
        If any hyperparameter is outside its valid range.
    """

    alpha: float = 1e-3
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-4
    l2: float = 1e-3

    def __post_init__(self) -> None:
        if self.alpha <= 0.0:
            raise ValueError(f"alpha must be > 0, got {self.alpha}")
        if not (0.0 < self.beta1 < 1.0) or not (0.0 < self.beta2 < 1.0):
            raise ValueError(
                f"betas must be in (0,1), got {(self.beta1, self.beta2)}"
            )
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be > 0, got {self.epsilon}")
        if self.l2 < 0.0:
            raise ValueError(f"l2 must be >= 0, got {self.l2}")

    @property
    def name(self) -> str:
        return "adam"

    @property
    def state_size(self) -> int:
        """First and second moment buffers per parameter array."""
        return 2
