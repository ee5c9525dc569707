"""
Time-loop helpers for recurrent networks.

`RecurrentNetwork` only knows how to run a single timestep. These helpers run
a whole sequence:

- `run_recurrent_sequence` threads the states forwards through time and
  keeps every timestep's tape.
- `backpropagate_through_time` additionally walks the tapes in reverse,
  feeding the state gradient of timestep ``t`` into timestep ``t - 1`` and
  summing parameter gradients over all timesteps.
- `train_recurrent` applies one optimizer step from the quadratic loss of a
  sequence whose targets may be missing for some timesteps.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from ...domain._errors import EmptyBatchError, ShapeMismatchError
from ..models._containers import Gradients
from ..tensor._tensor import Tensor
from ._inputs import RecurrentInputs
from ._network import RecurrentNetwork, RecurrentTape


def run_recurrent_sequence(
    network: RecurrentNetwork, state: RecurrentInputs, xs: Sequence[Any]
) -> Tuple[List[RecurrentTape], RecurrentInputs, List[Any]]:
    """
    Run a sequence forwards through time.

    Returns
    -------
    tuple[list[RecurrentTape], RecurrentInputs, list[Tensor]]
        One tape per timestep, the states after the last timestep and one
        output per timestep.
    """
    tapes: List[RecurrentTape] = []
    ys: List[Any] = []
    for x in xs:
        tape, state, y = network.run_recurrent(state, x)
        tapes.append(tape)
        ys.append(y)
    return tapes, state, ys


def _backward_through_time(
    network: RecurrentNetwork,
    tapes: Sequence[RecurrentTape],
    output_gradients: Sequence[Optional[Any]],
) -> Tuple[Gradients, RecurrentInputs, List[Any]]:
    if not tapes:
        raise EmptyBatchError("backpropagate_through_time")

    state_grad = network.initial_state()
    total: Optional[Gradients] = None
    dxs: List[Any] = [None] * len(tapes)
    for t in range(len(tapes) - 1, -1, -1):
        dy = output_gradients[t]
        if dy is None:
            dy = Tensor.zeros(network.final_shape)
        grads, state_grad, dxs[t] = network.run_recurrent_backwards(
            tapes[t], state_grad, dy
        )
        total = grads if total is None else total + grads
    return total, state_grad, dxs


def backpropagate_through_time(
    network: RecurrentNetwork,
    state: RecurrentInputs,
    xs: Sequence[Any],
    output_gradients: Sequence[Optional[Any]],
) -> Tuple[Gradients, RecurrentInputs, List[Any]]:
    """
    Back propagate a whole sequence through time.

    Parameters
    ----------
    network : RecurrentNetwork
        Network to differentiate.
    state : RecurrentInputs
        States before the first timestep.
    xs : Sequence[Tensor]
        Inputs, one per timestep.
    output_gradients : Sequence[Optional[Tensor]]
        Loss gradient with respect to each timestep's output. ``None`` stands
        for a zero gradient (no target at that timestep).

    Returns
    -------
    tuple[Gradients, RecurrentInputs, list[Tensor]]
        Parameter gradients summed over timesteps, the gradient with respect
        to `state`, and the input gradient of every timestep.

    Raises
    ------
    ShapeMismatchError
        If `xs` and `output_gradients` have different lengths.
    EmptyBatchError
        If the sequence is empty.
    """
    xs = list(xs)
    output_gradients = list(output_gradients)
    if len(xs) != len(output_gradients):
        raise ShapeMismatchError(
            f"Got {len(xs)} timesteps but {len(output_gradients)} output gradients",
            expected=len(xs),
            actual=len(output_gradients),
        )
    tapes, _, _ = run_recurrent_sequence(network, state, xs)
    return _backward_through_time(network, tapes, output_gradients)


def train_recurrent(
    optimizer: Any,
    network: RecurrentNetwork,
    state: RecurrentInputs,
    xs: Sequence[Any],
    targets: Sequence[Optional[Any]],
) -> RecurrentNetwork:
    """
    Apply one optimizer step from the quadratic loss of a sequence.

    ``targets[t]`` may be ``None`` when timestep ``t`` has no target.
    """
    xs = list(xs)
    targets = list(targets)
    if len(xs) != len(targets):
        raise ShapeMismatchError(
            f"Got {len(xs)} timesteps but {len(targets)} targets",
            expected=len(xs),
            actual=len(targets),
        )
    tapes, _, ys = run_recurrent_sequence(network, state, xs)
    dys = [None if t is None else y - t for y, t in zip(ys, targets)]
    grads, _, _ = _backward_through_time(network, tapes, dys)
    return network.apply_recurrent_update(optimizer, grads)
