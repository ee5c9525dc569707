"""
Recurrent state containers.

`RecurrentInputs` mirrors the node list of a `RecurrentNetwork`: slot ``k``
holds ``None`` for a feed-forward node and the recurrent state of layer ``k``
for a recurrent node. A state is a `Tensor`, or a nested `RecurrentInputs`
when the recurrent layer is itself a recurrent network.

The same container carries states forwards in time and state gradients
backwards in time, so it supports elementwise arithmetic:

- ``+``, ``-``, ``*``, ``/`` with another `RecurrentInputs` of the same
  structure, slot by slot;
- ``+``, ``-``, ``*``, ``/`` with a scalar, applied to every recurrent slot;
- `zeros_like` and `constant`.

Feed-forward slots never participate and stay ``None``.

Binary encoding: the recurrent slots in order, each as its row-major
elements. Decoding is directed by a template of the expected structure.
"""

from __future__ import annotations

import operator
from typing import Any, Iterator, Sequence, Tuple

from ...domain._errors import ShapeMismatchError
from .._gradient import _scalar
from ..encoding._binary import BinaryReader, BinaryWriter
from ..tensor._tensor import Tensor


def _zero(state: Any) -> Any:
    if isinstance(state, RecurrentInputs):
        return state.zeros_like()
    if isinstance(state, Tensor):
        return Tensor.zeros(state.shape)
    return state * 0


class RecurrentInputs:
    """
    Per-node recurrent states of a recurrent network.

    Parameters
    ----------
    slots : Sequence[Optional[Tensor | RecurrentInputs]]
        One entry per node; ``None`` for feed-forward nodes.
    """

    __slots__ = ("_slots",)

    def __init__(self, slots: Sequence[Any]) -> None:
        self._slots: Tuple[Any, ...] = tuple(slots)

    @classmethod
    def constant(cls, network: Any, value: float) -> "RecurrentInputs":
        """
        Recurrent state of `network` with every element set to `value`.
        """
        return network.initial_state() + value

    @property
    def slots(self) -> Tuple[Any, ...]:
        return self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._slots)

    def __getitem__(self, idx: int) -> Any:
        return self._slots[idx]

    def zeros_like(self) -> "RecurrentInputs":
        return RecurrentInputs(None if s is None else _zero(s) for s in self._slots)

    def check_structure(self, other: "RecurrentInputs") -> None:
        """
        Raise `ShapeMismatchError` unless `other` has the same slot layout.
        """
        if len(other) != len(self) or any(
            (a is None) != (b is None) for a, b in zip(self._slots, other._slots)
        ):
            raise ShapeMismatchError(
                "RecurrentInputs belong to differently structured networks",
                expected=self.layout(),
                actual=other.layout(),
            )

    def layout(self) -> Tuple[bool, ...]:
        """Per slot, whether it holds a recurrent state."""
        return tuple(s is not None for s in self._slots)

    def _zip(self, other: Any, op) -> "RecurrentInputs":
        if _scalar(other):
            return RecurrentInputs(
                None if s is None else op(s, other) for s in self._slots
            )
        if not isinstance(other, RecurrentInputs):
            return NotImplemented
        self.check_structure(other)
        return RecurrentInputs(
            None if a is None else op(a, b) for a, b in zip(self._slots, other._slots)
        )

    def __add__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, operator.add)

    def __radd__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, lambda a, b: b + a)

    def __sub__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, operator.sub)

    def __mul__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, operator.mul)

    def __rmul__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, lambda a, b: b * a)

    def __truediv__(self, other: Any) -> "RecurrentInputs":
        return self._zip(other, operator.truediv)

    def __neg__(self) -> "RecurrentInputs":
        return RecurrentInputs(None if s is None else -s for s in self._slots)

    def serialize(self, writer: BinaryWriter) -> None:
        for s in self._slots:
            if s is None:
                continue
            if isinstance(s, RecurrentInputs):
                s.serialize(writer)
            else:
                writer.write_array(s.data)

    def deserialize(self, reader: BinaryReader) -> "RecurrentInputs":
        out = []
        for s in self._slots:
            if s is None:
                out.append(None)
            elif isinstance(s, RecurrentInputs):
                out.append(s.deserialize(reader))
            else:
                out.append(Tensor.of(s.shape, reader.read_array(s.shape.dims)))
        return RecurrentInputs(out)

    def to_bytes(self) -> bytes:
        writer = BinaryWriter()
        self.serialize(writer)
        return writer.getvalue()

    def from_bytes(self, data: bytes) -> "RecurrentInputs":
        """
        Decode states structured like this container.

        Raises
        ------
        DeserializationError
            If `data` is too short or has trailing bytes.
        """
        reader = BinaryReader(data)
        out = self.deserialize(reader)
        reader.ensure_consumed()
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecurrentInputs):
            return NotImplemented
        return len(self) == len(other) and all(
            a == b for a, b in zip(self._slots, other._slots)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"RecurrentInputs({list(self._slots)!r})"
