"""
Training helpers for feed-forward networks.

These functions wire the network passes together for the common case of a
quadratic loss, whose gradient with respect to the output is simply
``output - target``.
"""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Any, Optional, Sequence

from ...domain._errors import ShapeMismatchError
from ._containers import Gradients
from ._network import Network


def run_net(network: Network, x: Any) -> Any:
    """Run `x` through `network` and return only the output."""
    _, y = network.run_network(x)
    return y


def back_propagate(network: Network, x: Any, target: Any) -> Gradients:
    """
    Gradients of the quadratic loss ``0.5 * |y - target|^2`` for one sample.
    """
    tapes, y = network.run_network(x)
    grads, _ = network.run_gradient(tapes, y - target)
    return grads


def train(optimizer: Any, network: Network, x: Any, target: Any) -> Network:
    """Apply one optimizer step computed from a single sample."""
    return network.apply_update(optimizer, back_propagate(network, x, target))


def batch_train(
    optimizer: Any,
    network: Network,
    xs: Sequence[Any],
    targets: Sequence[Any],
    executor: Optional[Executor] = None,
) -> Network:
    """
    Apply one optimizer step computed from the mean gradient of a batch.

    Raises
    ------
    ShapeMismatchError
        If `xs` and `targets` have different lengths.
    EmptyBatchError
        If the batch is empty.
    """
    xs = list(xs)
    targets = list(targets)
    if len(xs) != len(targets):
        raise ShapeMismatchError(
            f"Got {len(xs)} inputs for {len(targets)} targets",
            expected=len(xs),
            actual=len(targets),
        )
    batch_tapes, ys = network.batch_run_network(xs, executor=executor)
    dys = [y - t for y, t in zip(ys, targets)]
    grads, _ = network.batch_run_gradient(batch_tapes, dys)
    return network.apply_update(optimizer, grads)
