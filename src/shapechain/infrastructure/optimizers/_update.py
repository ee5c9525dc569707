"""
Generic update-rule dispatch.

`apply_update_rule` is the single entry point layers use to apply an
optimizer step to their parameter arrays. It dispatches on the optimizer
configuration type and returns new parameter arrays together with the new
optimizer state; nothing passed in is modified.

Optimizer state
---------------
`UpdateState` records which rule produced it, the number of steps taken, and
``state_size`` auxiliary arrays per parameter array. A layer stores the
`UpdateState` it received from its previous update. When the optimizer
changes (or on the very first step) the state is reset to zeros.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ._adam import Adam
from ._sgd import SGD


@dataclass(frozen=True)
class UpdateState:
    """
    Running optimizer state owned by a layer.

    Attributes
    ----------
    rule : str
        Name of the update rule that produced this state.
    step : int
        Number of updates applied so far.
    slots : tuple[tuple[np.ndarray, ...], ...]
        One tuple of auxiliary arrays per parameter array.
    """

    rule: str
    step: int
    slots: Tuple[Tuple[np.ndarray, ...], ...]

    @classmethod
    def fresh(cls, optimizer: Any, params: Sequence[np.ndarray]) -> "UpdateState":
        slots = tuple(
            tuple(np.zeros_like(p) for _ in range(optimizer.state_size))
            for p in params
        )
        return cls(rule=optimizer.name, step=0, slots=slots)

    def matches(self, optimizer: Any, params: Sequence[np.ndarray]) -> bool:
        return (
            self.rule == optimizer.name
            and len(self.slots) == len(params)
            and all(
                len(s) == optimizer.state_size
                and all(a.shape == p.shape for a in s)
                for s, p in zip(self.slots, params)
            )
        )


def _resolve_state(
    optimizer: Any, params: Sequence[np.ndarray], state: Optional[UpdateState]
) -> UpdateState:
    if state is None or not state.matches(optimizer, params):
        return UpdateState.fresh(optimizer, params)
    return state


@singledispatch
def apply_update_rule(
    optimizer: Any,
    params: Sequence[np.ndarray],
    grads: Sequence[np.ndarray],
    state: Optional[UpdateState],
) -> Tuple[Tuple[np.ndarray, ...], UpdateState]:
    """
    Apply one optimizer step to a set of parameter arrays.

    Parameters
    ----------
    optimizer:
        Optimizer configuration (`SGD`, `Adam`, or any type registered with
        ``apply_update_rule.register``).
    params:
        Current parameter arrays.
    grads:
        Gradients aligned with `params`.
    state:
        State returned by the previous call for these parameters, or None.

    Returns
    -------
    tuple
        ``(new_params, new_state)``.

    Raises
    ------
    TypeError
        If no update rule is registered for ``type(optimizer)``.
    """
    raise TypeError(f"No update rule registered for {type(optimizer).__name__}")


@apply_update_rule.register
def _(optimizer: SGD, params, grads, state):
    st = _resolve_state(optimizer, params, state)
    lr = optimizer.learning_rate
    new_params = []
    new_slots = []
    for w, g, (m,) in zip(params, grads, st.slots):
        m_new = optimizer.momentum * m - lr * g
        new_params.append(w + m_new - lr * optimizer.l2 * w)
        new_slots.append((m_new,))
    return tuple(new_params), UpdateState(st.rule, st.step + 1, tuple(new_slots))


@apply_update_rule.register
def _(optimizer: Adam, params, grads, state):
    st = _resolve_state(optimizer, params, state)
    t = st.step + 1
    b1, b2 = optimizer.beta1, optimizer.beta2
    new_params = []
    new_slots = []
    for w, g, (m, v) in zip(params, grads, st.slots):
        g_eff = g + optimizer.l2 * w if optimizer.l2 != 0.0 else g
        m_new = b1 * m + (1.0 - b1) * g_eff
        v_new = b2 * v + (1.0 - b2) * (g_eff * g_eff)

        # bias correction
        m_hat = m_new / (1.0 - b1**t)
        v_hat = v_new / (1.0 - b2**t)

        new_params.append(w - optimizer.alpha * m_hat / (np.sqrt(v_hat) + optimizer.epsilon))
        new_slots.append((m_new, v_new))
    return tuple(new_params), UpdateState(st.rule, t, tuple(new_slots))
