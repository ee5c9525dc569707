"""
Layer interface definitions.

This module defines the domain-level contracts for layers using structural
subtyping via `typing.Protocol`:

- `ILayer`: a feed-forward layer that maps a tensor of one shape to a tensor
  of another shape, produces a tape for back propagation, and can be updated,
  initialized and serialized.
- `IRecurrentLayer`: a layer that additionally consumes and produces a
  recurrent state threaded sideways between timesteps.

Any object that implements the required methods is considered a valid layer,
independent of inheritance. Whole networks implement the same contracts, which
is what allows a network to be nested as a single layer inside another one.

Notes
-----
- Tapes are opaque to everything except the layer that produced them.
- Gradients only need to satisfy `IFoldableGradient`.
- Layers are values: `run_update` and `create_random_with` return new layers
  and never mutate the receiver.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, runtime_checkable

from ._shape import Shape


@runtime_checkable
class ILayer(Protocol):
    """
    Domain-level layer interface.

    Required methods
    ----------------
    - `output_shape` declares the shape produced for an accepted input shape.
    - `run_forwards` / `run_backwards` implement one sample.
    - `run_batch_forwards` / `run_batch_backwards` implement an ordered batch.
    - `reduce_gradient` collapses a batch of parameter gradients.
    - `run_update` applies one optimizer step.
    - `create_random_with` draws fresh parameters.
    - `serialize` / `deserialize` implement the binary encoding.
    """

    def output_shape(self, input_shape: Shape) -> Shape:
        """
        Return the shape produced for `input_shape`.

        Raises
        ------
        ShapeMismatchError
            If the layer cannot accept `input_shape`.
        """
        ...

    def run_forwards(self, x: Any) -> Tuple[Any, Any]:
        """Run one sample forwards, returning ``(tape, output)``."""
        ...

    def run_backwards(self, tape: Any, dy: Any) -> Tuple[Any, Any]:
        """Run one sample backwards, returning ``(gradient, input_gradient)``."""
        ...

    def run_batch_forwards(self, xs: Sequence[Any]) -> Tuple[list, list]:
        """Run a batch forwards, returning aligned ``(tapes, outputs)``."""
        ...

    def run_batch_backwards(
        self, tapes: Sequence[Any], dys: Sequence[Any]
    ) -> Tuple[list, list]:
        """Run a batch backwards, returning aligned ``(gradients, input_gradients)``."""
        ...

    def reduce_gradient(self, grads: Sequence[Any]) -> Any:
        """Combine a batch of parameter gradients into one gradient."""
        ...

    def run_update(self, optimizer: Any, grad: Any) -> "ILayer":
        """Return a new layer with `grad` applied by `optimizer`."""
        ...

    def create_random_with(self, method: Any, rng: Any) -> "ILayer":
        """Return a new layer of the same configuration with random parameters."""
        ...

    def serialize(self, writer: Any) -> None:
        """Write this layer's parameters to `writer`."""
        ...

    def deserialize(self, reader: Any) -> "ILayer":
        """Read a layer shaped like this one from `reader`."""
        ...


@runtime_checkable
class IRecurrentLayer(ILayer, Protocol):
    """
    Domain-level recurrent layer interface.

    A recurrent layer receives, besides its ordinary input, the recurrent
    state it emitted at the previous timestep, and emits the state to be fed
    to itself at the next timestep.
    """

    def initial_state(self) -> Any:
        """Return the zero recurrent state used before the first timestep."""
        ...

    def run_recurrent_forwards(self, state: Any, x: Any) -> Tuple[Any, Any, Any]:
        """Return ``(tape, outgoing_state, output)`` for one timestep."""
        ...

    def run_recurrent_backwards(
        self, tape: Any, state_grad: Any, dy: Any
    ) -> Tuple[Any, Any, Any]:
        """Return ``(gradient, incoming_state_gradient, input_gradient)``."""
        ...
