"""
Network composition public API.

Exports
-------
- Network:
    Shape-checked chain of layers; itself a layer.
- Tapes, BatchTapes, Gradients:
    Per-layer containers produced by forward and backward passes.
- run_network, run_gradient, batch_run_network, batch_run_gradient,
  apply_update, apply_settings_update, random_network:
    Functional entry points mirroring the `Network` methods.
- l2_norm, clip_by_global_norm:
    Gradient norm utilities.
- run_net, back_propagate, train, batch_train:
    Quadratic-loss training helpers.
"""

from ._containers import BatchTapes, Gradients, Tapes
from ._network import (
    Network,
    apply_settings_update,
    apply_update,
    batch_run_gradient,
    batch_run_network,
    random_network,
    run_gradient,
    run_network,
)
from ._clipping import clip_by_global_norm, l2_norm
from ._runner import back_propagate, batch_train, run_net, train

__all__ = [
    Network.__name__,
    Tapes.__name__,
    BatchTapes.__name__,
    Gradients.__name__,
    run_network.__name__,
    run_gradient.__name__,
    batch_run_network.__name__,
    batch_run_gradient.__name__,
    apply_update.__name__,
    apply_settings_update.__name__,
    random_network.__name__,
    l2_norm.__name__,
    clip_by_global_norm.__name__,
    run_net.__name__,
    back_propagate.__name__,
    train.__name__,
    batch_train.__name__,
]
