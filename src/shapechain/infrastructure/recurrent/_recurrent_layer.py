"""
Infrastructure base class for recurrent layers.

A recurrent layer consumes, alongside its ordinary input, a state produced by
itself at the previous timestep, and emits the state for the next timestep:

    (tape, new_state, y) = layer.run_recurrent_forwards(state, x)
    (grad, state_grad_in, dx) = layer.run_recurrent_backwards(tape, state_grad, dy)

`state_grad` is the gradient flowing into the emitted state from the next
timestep; `state_grad_in` is the gradient with respect to the consumed state,
to be handed to the previous timestep.

Used as an ordinary layer (tagged `FeedForward`), a recurrent layer runs a
single timestep from its zero initial state.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Tuple

from .._layer import Layer


class RecurrentLayer(Layer):
    """
    Base class for layers that carry a recurrent state between timesteps.

    Subclasses implement `initial_state`, `run_recurrent_forwards` and
    `run_recurrent_backwards`, plus `output_shape`.
    """

    @abstractmethod
    def initial_state(self) -> Any:
        """Return the all-zero recurrent state of this layer."""

    @abstractmethod
    def run_recurrent_forwards(self, state: Any, x: Any) -> Tuple[Any, Any, Any]:
        """Run one timestep, returning ``(tape, new_state, output)``."""

    @abstractmethod
    def run_recurrent_backwards(
        self, tape: Any, state_grad: Any, dy: Any
    ) -> Tuple[Any, Any, Any]:
        """
        Back propagate one timestep.

        Returns
        -------
        tuple
            ``(gradient, state_gradient, input_gradient)``.
        """

    def run_forwards(self, x: Any) -> Tuple[Any, Any]:
        tape, _, y = self.run_recurrent_forwards(self.initial_state(), x)
        return tape, y

    def run_backwards(self, tape: Any, dy: Any) -> Tuple[Any, Any]:
        grad, _, dx = self.run_recurrent_backwards(tape, self.initial_state(), dy)
        return grad, dx
