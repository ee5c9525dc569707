"""
Recurrent networks.

A `RecurrentNetwork` is a shape-checked chain of layers in which every node is
tagged either `FeedForward` or `Recurrent`. Feed-forward nodes behave exactly
as in `Network`. Recurrent nodes additionally consume the state they emitted
at the previous timestep and emit a new one; the states of all nodes travel
together in a `RecurrentInputs`.

The network only implements a single timestep:

- `run_recurrent(state, x)` returns the tape of the timestep, the states for
  the next timestep and the output.
- `run_recurrent_backwards(tape, state_grad, dy)` returns per-layer parameter
  gradients, the gradient with respect to the consumed states (to be handed
  to the previous timestep) and the input gradient.

Looping over time is left to the caller; see the helpers in `_runner`.

Composition
-----------
`RecurrentNetwork` is itself a `RecurrentLayer` whose recurrent state is its
`RecurrentInputs`, so it can be nested inside another recurrent network with
either tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._errors import (
    EmptyBatchError,
    NotRecurrentLayerError,
    ShapeMismatchError,
)
from ...domain._layer import IRecurrentLayer
from ...domain._shape import Shape
from ...domain.utils._weight_initialization import WeightInitMethod
from .._layer import NetworkSettings, require_shape
from ..encoding._binary import BinaryReader, BinaryWriter
from ..models._containers import Gradients
from ..models._network import check_chain
from ._inputs import RecurrentInputs
from ._recurrent_layer import RecurrentLayer


@dataclass(frozen=True)
class FeedForward:
    """Tag for a node run as an ordinary layer."""

    layer: Any


@dataclass(frozen=True)
class Recurrent:
    """Tag for a node run as a recurrent layer."""

    layer: Any


Node = Union[FeedForward, Recurrent]


class RecurrentTape(tuple):
    """Tapes of one timestep, one per node."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"RecurrentTape({len(self)} layers)"


class RecurrentNetwork(RecurrentLayer):
    """
    Shape-checked chain of tagged layers.

    Parameters
    ----------
    nodes : Sequence[FeedForward | Recurrent]
        Tagged layers in execution order.
    shapes : Sequence[Shape]
        ``len(nodes) + 1`` shapes, as for `Network`.

    Raises
    ------
    TypeError
        If a node is not tagged.
    NotRecurrentLayerError
        If a node tagged `Recurrent` does not implement the recurrent
        contract.
    ShapeMismatchError
        If the shapes do not chain.
    """

    def __init__(self, nodes: Sequence[Node], shapes: Sequence[Shape]) -> None:
        nodes = tuple(nodes)
        shapes = tuple(shapes)
        for k, node in enumerate(nodes):
            if not isinstance(node, (FeedForward, Recurrent)):
                raise TypeError(
                    f"RecurrentNetwork node {k} must be tagged FeedForward or "
                    f"Recurrent, got {type(node)}"
                )
            if isinstance(node, Recurrent) and not isinstance(
                node.layer, IRecurrentLayer
            ):
                raise NotRecurrentLayerError(node.layer, k)
        check_chain([n.layer for n in nodes], shapes)

        self._nodes: Tuple[Node, ...] = nodes
        self._shapes: Tuple[Shape, ...] = shapes

    def _rebuild(self, layers: Sequence[Any]) -> "RecurrentNetwork":
        net = RecurrentNetwork.__new__(RecurrentNetwork)
        net._nodes = tuple(type(n)(layer) for n, layer in zip(self._nodes, layers))
        net._shapes = self._shapes
        return net

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    @property
    def layers(self) -> Tuple[Any, ...]:
        return tuple(n.layer for n in self._nodes)

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        return self._shapes

    @property
    def input_shape(self) -> Shape:
        return self._shapes[0]

    @property
    def final_shape(self) -> Shape:
        return self._shapes[-1]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __getitem__(self, idx: int) -> Node:
        return self._nodes[idx]

    def initial_state(self) -> RecurrentInputs:
        """All-zero recurrent state, ``None`` for feed-forward nodes."""
        return RecurrentInputs(
            n.layer.initial_state() if isinstance(n, Recurrent) else None
            for n in self._nodes
        )

    def _check_inputs(self, state: RecurrentInputs) -> None:
        if not isinstance(state, RecurrentInputs):
            raise TypeError(f"Expected RecurrentInputs, got {type(state)}")
        self.initial_state().check_structure(state)

    # ------------------------------------------------------------------
    # One timestep
    # ------------------------------------------------------------------

    def run_recurrent(
        self, state: RecurrentInputs, x: Any
    ) -> Tuple[RecurrentTape, RecurrentInputs, Any]:
        """
        Run one timestep forwards.

        Parameters
        ----------
        state : RecurrentInputs
            States emitted at the previous timestep, or `initial_state()`.
        x : Tensor
            Input of this timestep.

        Returns
        -------
        tuple[RecurrentTape, RecurrentInputs, Tensor]
            Tape, states for the next timestep and output.

        Raises
        ------
        ShapeMismatchError
            If `state` is not structured like this network's states.
        """
        self._check_inputs(state)
        tapes: List[Any] = []
        states: List[Any] = []
        out = x
        for node, s in zip(self._nodes, state):
            if isinstance(node, Recurrent):
                tape, s_new, out = node.layer.run_recurrent_forwards(s, out)
            else:
                tape, out = node.layer.run_forwards(out)
                s_new = None
            tapes.append(tape)
            states.append(s_new)
        return RecurrentTape(tapes), RecurrentInputs(states), out

    def run_recurrent_backwards(
        self, tape: RecurrentTape, state_grad: RecurrentInputs, dy: Any
    ) -> Tuple[Gradients, RecurrentInputs, Any]:
        """
        Run one timestep backwards.

        Parameters
        ----------
        tape : RecurrentTape
            Tape of this timestep.
        state_grad : RecurrentInputs
            Gradient with respect to the states this timestep emitted, as
            returned by the backward pass of the next timestep (zeros at the
            last timestep).
        dy : Tensor
            Gradient with respect to this timestep's output.

        Returns
        -------
        tuple[Gradients, RecurrentInputs, Tensor]
            Parameter gradients, gradient with respect to the states this
            timestep consumed, and input gradient.
        """
        self._check_inputs(state_grad)
        n = len(self._nodes)
        grads: List[Any] = [None] * n
        state_grads: List[Any] = [None] * n
        delta = dy
        for k in range(n - 1, -1, -1):
            node = self._nodes[k]
            if isinstance(node, Recurrent):
                grads[k], state_grads[k], delta = node.layer.run_recurrent_backwards(
                    tape[k], state_grad[k], delta
                )
            else:
                grads[k], delta = node.layer.run_backwards(tape[k], delta)
        return Gradients(grads), RecurrentInputs(state_grads), delta

    def run_recurrent_forwards(self, state: RecurrentInputs, x: Any):
        return self.run_recurrent(state, x)

    # ------------------------------------------------------------------
    # Layer contract
    # ------------------------------------------------------------------

    def output_shape(self, input_shape: Shape) -> Shape:
        require_shape(self, input_shape, self._shapes[0])
        return self._shapes[-1]

    def reduce_gradient(self, grads: Sequence[Gradients]) -> Gradients:
        """
        Reduce per-sample gradients layer by layer.

        Raises
        ------
        EmptyBatchError
            If `grads` is empty.
        """
        grads = list(grads)
        if not grads:
            raise EmptyBatchError(type(self).__name__)
        return Gradients(
            n.layer.reduce_gradient([g[k] for g in grads])
            for k, n in enumerate(self._nodes)
        )

    def apply_recurrent_update(
        self, optimizer: Any, grads: Gradients
    ) -> "RecurrentNetwork":
        """
        Apply one optimizer step to every layer.

        Raises
        ------
        ShapeMismatchError
            If `grads` does not have one entry per node.
        """
        if len(grads) != len(self._nodes):
            raise ShapeMismatchError(
                f"RecurrentNetwork has {len(self._nodes)} layers but got "
                f"{len(grads)} gradients",
                expected=len(self._nodes),
                actual=len(grads),
            )
        return self._rebuild(
            [n.layer.run_update(optimizer, g) for n, g in zip(self._nodes, grads)]
        )

    def run_update(self, optimizer: Any, grad: Gradients) -> "RecurrentNetwork":
        return self.apply_recurrent_update(optimizer, grad)

    def run_settings_update(self, settings: NetworkSettings) -> "RecurrentNetwork":
        return self._rebuild([n.layer.run_settings_update(settings) for n in self._nodes])

    def create_random_with(
        self, method: WeightInitMethod, rng: np.random.Generator
    ) -> "RecurrentNetwork":
        return self._rebuild(
            [n.layer.create_random_with(method, rng) for n in self._nodes]
        )

    def serialize(self, writer: BinaryWriter) -> None:
        for n in self._nodes:
            n.layer.serialize(writer)

    def deserialize(self, reader: BinaryReader) -> "RecurrentNetwork":
        return self._rebuild([n.layer.deserialize(reader) for n in self._nodes])

    def summary(self) -> str:
        lines = [f"{self.__class__.__name__}("]
        for i, n in enumerate(self._nodes):
            lines.append(
                f"  ({i}): {type(n).__name__} {n.layer!r}  "
                f"{self._shapes[i]} -> {self._shapes[i + 1]}"
            )
        lines.append(")")
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecurrentNetwork):
            return NotImplemented
        return (
            self._shapes == other._shapes
            and len(self._nodes) == len(other._nodes)
            and all(
                type(a) is type(b) and a.layer == b.layer
                for a, b in zip(self._nodes, other._nodes)
            )
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return " ~~> ".join([repr(n.layer) for n in self._nodes] + ["NNil"])


def run_recurrent(
    network: RecurrentNetwork, state: RecurrentInputs, x: Any
) -> Tuple[RecurrentTape, RecurrentInputs, Any]:
    return network.run_recurrent(state, x)


def run_recurrent_backwards(
    network: RecurrentNetwork,
    tape: RecurrentTape,
    state_grad: RecurrentInputs,
    dy: Any,
) -> Tuple[Gradients, RecurrentInputs, Any]:
    return network.run_recurrent_backwards(tape, state_grad, dy)


def apply_recurrent_update(
    optimizer: Any, network: RecurrentNetwork, grads: Gradients
) -> RecurrentNetwork:
    return network.apply_recurrent_update(optimizer, grads)


def random_recurrent(
    nodes: Sequence[Node],
    shapes: Sequence[Shape],
    method: WeightInitMethod = WeightInitMethod.UNIFORM,
    rng: Optional[np.random.Generator] = None,
) -> RecurrentNetwork:
    """Build a recurrent network and draw fresh parameters for every layer."""
    if rng is None:
        rng = np.random.default_rng()
    return RecurrentNetwork(nodes, shapes).create_random_with(method, rng)
