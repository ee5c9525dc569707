"""
Shape-checked layer chains.

This module defines `Network`, an ordered chain of layers together with the
list of shapes flowing between them:

    shapes[0] -> layers[0] -> shapes[1] -> ... -> layers[-1] -> shapes[-1]

A network is only constructible when every layer accepts the shape before it
and produces the shape after it, so a constructed network is always
shape-consistent and forward/backward passes never re-check shapes.

Supported operations
--------------------
- Forward (`run_network`) and backward (`run_gradient`) over one sample.
- Batched forward (`batch_run_network`) and backward (`batch_run_gradient`),
  where each layer's parameter gradients are reduced over the batch as soon
  as they are computed while input gradients stay per sample.
- Optimizer steps (`apply_update`) and settings propagation
  (`apply_settings_update`) returning new networks.
- Random initialization (`random_network`, `Network.create_random_with`).
- Binary encoding: the concatenation of each layer's encoding, in order.

Composition
-----------
`Network` is itself a `Layer` whose input and output shapes are the first
and last entries of its shape list, so a network can be nested as a single
layer inside a larger network. Its tape is a `Tapes` and its gradient a
`Gradients`.

Notes
-----
- An empty network (no layers, a single shape) is the identity.
- Networks are values; every operation returns a new network.
"""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import EmptyBatchError, ShapeMismatchError
from ...domain._layer import ILayer
from ...domain._shape import Shape
from ...domain.utils._weight_initialization import WeightInitMethod
from .._layer import Layer, NetworkSettings, require_shape
from ..encoding._binary import BinaryReader, BinaryWriter
from ._containers import BatchTapes, Gradients, Tapes


def check_chain(layers: Sequence[Any], shapes: Sequence[Shape]) -> None:
    """
    Validate that `layers` map each shape of `shapes` to the next one.

    Raises
    ------
    TypeError
        If a layer does not implement `ILayer`.
    ShapeMismatchError
        If ``len(shapes) != len(layers) + 1`` or a layer does not accept
        ``shapes[k]`` and produce ``shapes[k + 1]``. `index` is set to the
        position of the offending layer.
    """
    if len(shapes) != len(layers) + 1:
        raise ShapeMismatchError(
            f"A network of {len(layers)} layers needs {len(layers) + 1} shapes, "
            f"got {len(shapes)}",
            expected=len(layers) + 1,
            actual=len(shapes),
        )

    for k, layer in enumerate(layers):
        if not isinstance(layer, ILayer):
            raise TypeError(f"Network layer {k} must implement ILayer, got {type(layer)}")
        try:
            produced = layer.output_shape(shapes[k])
        except ShapeMismatchError as e:
            raise ShapeMismatchError(
                f"Layer {k} ({layer!r}): {e}",
                expected=e.expected,
                actual=e.actual,
                index=k,
            ) from e
        if produced != shapes[k + 1]:
            raise ShapeMismatchError(
                f"Layer {k} ({layer!r}) produces {produced} from {shapes[k]}, "
                f"but the network declares {shapes[k + 1]}",
                expected=shapes[k + 1],
                actual=produced,
                index=k,
            )


class Network(Layer):
    """
    Ordered, shape-checked chain of layers.

    Parameters
    ----------
    layers : Sequence[Layer]
        Layers in execution order. Any object implementing `ILayer` is
        accepted, including other networks.
    shapes : Sequence[Shape]
        ``len(layers) + 1`` shapes: the input shape of the first layer
        followed by the output shape of every layer.

    Raises
    ------
    TypeError
        If an element of `layers` does not implement `ILayer`.
    ShapeMismatchError
        If the shape list has the wrong length or two adjacent shapes do not
        match what a layer accepts and produces. The error's `index` names
        the offending layer.
    """

    def __init__(self, layers: Sequence[Any], shapes: Sequence[Shape]) -> None:
        layers = tuple(layers)
        shapes = tuple(shapes)
        check_chain(layers, shapes)

        self._layers: Tuple[Any, ...] = layers
        self._shapes: Tuple[Shape, ...] = shapes

    @classmethod
    def _trusted(
        cls, layers: Sequence[Any], shapes: Tuple[Shape, ...]
    ) -> "Network":
        # Structure-preserving rebuild of an already validated network.
        net = cls.__new__(cls)
        net._layers = tuple(layers)
        net._shapes = shapes
        return net

    @property
    def layers(self) -> Tuple[Any, ...]:
        return self._layers

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
        return len(self._layers)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._layers)

    def __getitem__(self, idx: int) -> Any:
        return self._layers[idx]

    # ------------------------------------------------------------------
    # Forward / backward
    # ------------------------------------------------------------------

    def run_network(self, x: Any) -> Tuple[Tapes, Any]:
        """
        Run one sample through every layer.

        Returns
        -------
        tuple[Tapes, Tensor]
            The tape of every layer and the final output.
        """
        tapes: List[Any] = []
        out = x
        for layer in self._layers:
            tape, out = layer.run_forwards(out)
            tapes.append(tape)
        return Tapes(tapes), out

    def run_gradient(self, tapes: Tapes, dy: Any) -> Tuple[Gradients, Any]:
        """
        Back propagate one sample.

        Parameters
        ----------
        tapes : Tapes
            Tapes from the matching `run_network` call.
        dy : Tensor
            Gradient of the loss with respect to the network output.

        Returns
        -------
        tuple[Gradients, Tensor]
            Per-layer parameter gradients and the gradient with respect to
            the network input.
        """
        grads: List[Any] = [None] * len(self._layers)
        delta = dy
        for k in range(len(self._layers) - 1, -1, -1):
            grads[k], delta = self._layers[k].run_backwards(tapes[k], delta)
        return Gradients(grads), delta

    def batch_run_network(
        self, xs: Sequence[Any], executor: Optional[Executor] = None
    ) -> Tuple[BatchTapes, List[Any]]:
        """
        Run a batch through the network.

        Parameters
        ----------
        xs : Sequence[Tensor]
            Ordered samples.
        executor : concurrent.futures.Executor, optional
            If given, samples are run through the whole network concurrently,
            one task per sample. Results keep the order of `xs` either way.

        Returns
        -------
        tuple[BatchTapes, list[Tensor]]
            Per-layer batch tapes and the per-sample outputs.
        """
        if executor is not None:
            results = list(executor.map(self.run_network, xs))
            outs = [y for _, y in results]
            return (
                BatchTapes.from_samples([t for t, _ in results], len(self._layers)),
                outs,
            )

        batch_tapes: List[Any] = []
        outs = list(xs)
        for layer in self._layers:
            tapes, outs = layer.run_batch_forwards(outs)
            batch_tapes.append(tapes)
        return BatchTapes(batch_tapes), list(outs)

    def batch_run_gradient(
        self, batch_tapes: BatchTapes, dys: Sequence[Any]
    ) -> Tuple[Gradients, List[Any]]:
        """
        Back propagate a batch, reducing parameter gradients per layer.

        Each layer computes one parameter gradient per sample and immediately
        collapses them with its own `reduce_gradient`. Input gradients are not
        reduced and are returned per sample.

        Raises
        ------
        EmptyBatchError
            If the batch is empty and the network has at least one layer.
        """
        grads: List[Any] = [None] * len(self._layers)
        deltas = list(dys)
        for k in range(len(self._layers) - 1, -1, -1):
            layer = self._layers[k]
            sample_grads, deltas = layer.run_batch_backwards(batch_tapes[k], deltas)
            grads[k] = layer.reduce_gradient(sample_grads)
        return Gradients(grads), list(deltas)

    # ------------------------------------------------------------------
    # Layer contract
    # ------------------------------------------------------------------

    def output_shape(self, input_shape: Shape) -> Shape:
        require_shape(self, input_shape, self._shapes[0])
        return self._shapes[-1]

    def run_forwards(self, x: Any) -> Tuple[Tapes, Any]:
        return self.run_network(x)

    def run_backwards(self, tape: Tapes, dy: Any) -> Tuple[Gradients, Any]:
        return self.run_gradient(tape, dy)

    def run_batch_forwards(self, xs: Sequence[Any]) -> Tuple[BatchTapes, List[Any]]:
        return self.batch_run_network(xs)

    def run_batch_backwards(
        self, tapes: Any, dys: Sequence[Any]
    ) -> Tuple[List[Gradients], List[Any]]:
        """
        Back propagate a batch without reducing, one `Gradients` per sample.

        `tapes` is either the `BatchTapes` from `run_batch_forwards` or a
        sequence of per-sample `Tapes`.
        """
        dys = list(dys)
        if not isinstance(tapes, BatchTapes):
            tapes = BatchTapes.from_samples(list(tapes), len(self._layers))
        per_layer: List[Any] = [None] * len(self._layers)
        deltas = dys
        for k in range(len(self._layers) - 1, -1, -1):
            per_layer[k], deltas = self._layers[k].run_batch_backwards(
                tapes[k], deltas
            )
        per_sample = [
            Gradients(per_layer[k][i] for k in range(len(self._layers)))
            for i in range(len(dys))
        ]
        return per_sample, list(deltas)

    def reduce_gradient(self, grads: Sequence[Gradients]) -> Gradients:
        """
        Reduce per-sample `Gradients` layer by layer.

        Raises
        ------
        EmptyBatchError
            If `grads` is empty.
        """
        grads = list(grads)
        if not grads:
            raise EmptyBatchError(type(self).__name__)
        return Gradients(
            layer.reduce_gradient([g[k] for g in grads])
            for k, layer in enumerate(self._layers)
        )

    def apply_update(self, optimizer: Any, grads: Gradients) -> "Network":
        """
        Apply one optimizer step to every layer.

        Raises
        ------
        ShapeMismatchError
            If `grads` does not have one entry per layer.
        """
        if len(grads) != len(self._layers):
            raise ShapeMismatchError(
                f"Network has {len(self._layers)} layers but got "
                f"{len(grads)} gradients",
                expected=len(self._layers),
                actual=len(grads),
            )
        layers = [
            layer.run_update(optimizer, g) for layer, g in zip(self._layers, grads)
        ]
        return Network._trusted(layers, self._shapes)

    def run_update(self, optimizer: Any, grad: Gradients) -> "Network":
        return self.apply_update(optimizer, grad)

    def run_settings_update(self, settings: NetworkSettings) -> "Network":
        layers = [layer.run_settings_update(settings) for layer in self._layers]
        return Network._trusted(layers, self._shapes)

    def create_random_with(
        self, method: WeightInitMethod, rng: np.random.Generator
    ) -> "Network":
        """
        Return a network of the same structure with fresh parameters.

        Layers draw from `rng` in order, first layer first.
        """
        layers = [layer.create_random_with(method, rng) for layer in self._layers]
        return Network._trusted(layers, self._shapes)

    def serialize(self, writer: BinaryWriter) -> None:
        for layer in self._layers:
            layer.serialize(writer)

    def deserialize(self, reader: BinaryReader) -> "Network":
        layers = [layer.deserialize(reader) for layer in self._layers]
        return Network._trusted(layers, self._shapes)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def summary(self) -> str:
        """
        Generate a lightweight textual summary of the network.

        Returns
        -------
        str
            One line per layer with its index, description and shapes.
        """
        lines = [f"{self.__class__.__name__}("]
        for i, layer in enumerate(self._layers):
            lines.append(
                f"  ({i}): {layer!r}  {self._shapes[i]} -> {self._shapes[i + 1]}"
            )
        lines.append(")")
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Network):
            return NotImplemented
        return self._shapes == other._shapes and all(
            a == b for a, b in zip(self._layers, other._layers)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return " ~> ".join([repr(layer) for layer in self._layers] + ["NNil"])


def run_network(network: Network, x: Any) -> Tuple[Tapes, Any]:
    return network.run_network(x)


def run_gradient(network: Network, tapes: Tapes, dy: Any) -> Tuple[Gradients, Any]:
    return network.run_gradient(tapes, dy)


def batch_run_network(
    network: Network, xs: Sequence[Any], executor: Optional[Executor] = None
) -> Tuple[BatchTapes, List[Any]]:
    return network.batch_run_network(xs, executor=executor)


def batch_run_gradient(
    network: Network, batch_tapes: BatchTapes, dys: Sequence[Any]
) -> Tuple[Gradients, List[Any]]:
    return network.batch_run_gradient(batch_tapes, dys)


def apply_update(optimizer: Any, network: Network, grads: Gradients) -> Network:
    return network.apply_update(optimizer, grads)


def apply_settings_update(settings: NetworkSettings, network: Network) -> Network:
    """Propagate `settings` to every layer of `network`, nested ones included."""
    return network.run_settings_update(settings)


def random_network(
    layers: Sequence[Any],
    shapes: Sequence[Shape],
    method: WeightInitMethod = WeightInitMethod.UNIFORM,
    rng: Optional[np.random.Generator] = None,
) -> Network:
    """
    Build a network and draw fresh parameters for every layer.

    Parameters
    ----------
    layers, shapes
        As for `Network`. The parameters held by `layers` are ignored.
    method : WeightInitMethod, optional
        Initialization method. Default is uniform.
    rng : numpy.random.Generator, optional
        Random source. A freshly seeded generator is used when omitted.
    """
    if rng is None:
        rng = np.random.default_rng()
    return Network(layers, shapes).create_random_with(method, rng)
