"""
Infrastructure base class for layers.

`Layer` implements the parts of the domain `ILayer` contract that have a
sensible generic definition, so concrete layers only need to provide what is
specific to them:

- batched forward/backward fall back to the single-sample operations applied
  to each sample in order;
- gradient reduction is the arithmetic mean and rejects empty batches;
- update, settings propagation, random initialization and serialization are
  no-ops, which is exactly right for layers without learnable parameters.

Layers holding parameters override `run_update`, `create_random_with`,
`serialize` and `deserialize`.

Notes
-----
- Layers are values. Nothing in this class mutates `self`; operations that
  "change" a layer return a new one.
- `output_shape` is only consulted when a network is constructed. Forward and
  backward passes do not re-check shapes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

import numpy as np
from typing_extensions import Self

from ..domain._errors import EmptyBatchError, ShapeMismatchError
from ..domain._shape import Shape
from ._gradient import mean_gradient
from .encoding._binary import BinaryReader, BinaryWriter


@dataclass(frozen=True)
class NetworkSettings:
    """
    Settings propagated through every layer of a network.

    Attributes
    ----------
    training : bool
        Whether stochastic layers (e.g. `Dropout`) are in training mode.
    """

    training: bool = True


class Layer(ABC):
    """
    Base class for all layers, including composed networks.

    Subclasses must implement `output_shape`, `run_forwards` and
    `run_backwards`.
    """

    @abstractmethod
    def output_shape(self, input_shape: Shape) -> Shape:
        """
        Return the output shape produced for `input_shape`.

        Raises
        ------
        ShapeMismatchError
            If this layer does not accept `input_shape`.
        """

    @abstractmethod
    def run_forwards(self, x: Any) -> Tuple[Any, Any]:
        """
        Run one sample forwards.

        Returns
        -------
        tuple
            ``(tape, output)``, where `tape` is whatever `run_backwards`
            needs for this sample.
        """

    @abstractmethod
    def run_backwards(self, tape: Any, dy: Any) -> Tuple[Any, Any]:
        """
        Run one sample backwards.

        Returns
        -------
        tuple
            ``(gradient, input_gradient)``.
        """

    def run_batch_forwards(self, xs: Sequence[Any]) -> Tuple[List[Any], List[Any]]:
        """
        Run a batch forwards, one sample at a time, preserving order.
        """
        tapes: List[Any] = []
        outs: List[Any] = []
        for x in xs:
            tape, y = self.run_forwards(x)
            tapes.append(tape)
            outs.append(y)
        return tapes, outs

    def run_batch_backwards(
        self, tapes: Sequence[Any], dys: Sequence[Any]
    ) -> Tuple[List[Any], List[Any]]:
        """
        Run a batch backwards, one sample at a time, preserving order.
        """
        if len(tapes) != len(dys):
            raise ValueError(
                f"{type(self).__name__}: got {len(tapes)} tapes for {len(dys)} gradients"
            )
        grads: List[Any] = []
        backs: List[Any] = []
        for tape, dy in zip(tapes, dys):
            g, dx = self.run_backwards(tape, dy)
            grads.append(g)
            backs.append(dx)
        return grads, backs

    def reduce_gradient(self, grads: Sequence[Any]) -> Any:
        """
        Combine a batch of gradients into their arithmetic mean.

        Raises
        ------
        EmptyBatchError
            If `grads` is empty.
        """
        grads = list(grads)
        if not grads:
            raise EmptyBatchError(type(self).__name__)
        return mean_gradient(grads)

    def run_update(self, optimizer: Any, grad: Any) -> Self:
        return self

    def run_settings_update(self, settings: NetworkSettings) -> Self:
        return self

    def create_random_with(self, method: Any, rng: np.random.Generator) -> Self:
        return self

    def serialize(self, writer: BinaryWriter) -> None:
        pass

    def deserialize(self, reader: BinaryReader) -> Self:
        return self

    def to_bytes(self) -> bytes:
        """Return this layer's binary encoding."""
        writer = BinaryWriter()
        self.serialize(writer)
        return writer.getvalue()

    def from_bytes(self, data: bytes) -> Self:
        """
        Decode a layer shaped like this one.

        Raises
        ------
        DeserializationError
            If `data` is too short or has trailing bytes.
        """
        reader = BinaryReader(data)
        layer = self.deserialize(reader)
        reader.ensure_consumed()
        return layer

    def __repr__(self) -> str:
        return type(self).__name__


def require_shape(layer: Any, actual: Shape, expected: Shape) -> None:
    """Raise `ShapeMismatchError` unless `actual == expected`."""
    if actual != expected:
        raise ShapeMismatchError(
            f"{type(layer).__name__} expects input {expected}, got {actual}",
            expected=expected,
            actual=actual,
        )


def require_rank(layer: Any, shape: Shape, *ranks: int) -> None:
    """Raise `ShapeMismatchError` unless `shape` has one of `ranks`."""
    if shape.rank not in ranks:
        names = " or ".join(f"D{r}" for r in ranks)
        raise ShapeMismatchError(
            f"{type(layer).__name__} expects a {names} input, got {shape}",
            actual=shape,
        )
