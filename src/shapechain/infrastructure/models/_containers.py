"""
Per-layer containers produced by network passes.

These containers mirror the layer list of a `Network`, one entry per layer:

- `Tapes`: tapes of one forward pass over a single sample.
- `BatchTapes`: for each layer, the ordered tapes of every sample of a batch.
- `Gradients`: one parameter gradient per layer. It is itself a foldable
  gradient, so a whole network can be used as a layer of a larger network
  and clipping can walk every parameter of a network in one pass.

All containers are immutable.
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Iterator, List, Sequence, Tuple

from ...domain._errors import ShapeMismatchError
from .._gradient import _scalar


class Tapes(tuple):
    """Ordered tapes of a single-sample forward pass, one per layer."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Tapes({len(self)} layers)"


class BatchTapes(tuple):
    """
    Ordered per-layer tapes of a batched forward pass.

    ``batch_tapes[k]`` is whatever layer ``k`` returned from
    `run_batch_forwards`, normally a list with one tape per sample.
    """

    __slots__ = ()

    @classmethod
    def from_samples(cls, samples: Sequence[Tapes], n_layers: int) -> "BatchTapes":
        """Transpose per-sample `Tapes` into per-layer batches."""
        return cls([s[k] for s in samples] for k in range(n_layers))

    def __repr__(self) -> str:
        return f"BatchTapes({len(self)} layers)"


class Gradients:
    """
    Parameter gradients of a network, one entry per layer.

    Supports elementwise ``+`` and ``-`` with another `Gradients` of the same
    length, scaling by a scalar (``*`` on either side, ``/``),
    `map_gradient` and `squared_sums`.

    Raises
    ------
    ShapeMismatchError
        If two containers of different lengths are combined.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Sequence[Any]) -> None:
        self._items: Tuple[Any, ...] = tuple(items)

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, idx: int) -> Any:
        return self._items[idx]

    def map_gradient(self, f: Callable) -> "Gradients":
        return Gradients(g.map_gradient(f) for g in self._items)

    def squared_sums(self) -> List[float]:
        out: List[float] = []
        for g in self._items:
            out.extend(g.squared_sums())
        return out

    def _zip(self, other: Any, op) -> "Gradients":
        if _scalar(other):
            return Gradients(op(g, other) for g in self._items)
        if not isinstance(other, Gradients):
            return NotImplemented
        if len(other) != len(self):
            raise ShapeMismatchError(
                f"Cannot combine gradients of {len(self)} and {len(other)} layers",
                expected=len(self),
                actual=len(other),
            )
        return Gradients(op(a, b) for a, b in zip(self._items, other._items))

    def __add__(self, other: Any) -> "Gradients":
        return self._zip(other, operator.add)

    def __sub__(self, other: Any) -> "Gradients":
        return self._zip(other, operator.sub)

    def __mul__(self, other: Any) -> "Gradients":
        return self._zip(other, operator.mul)

    def __rmul__(self, other: Any) -> "Gradients":
        return self._zip(other, operator.mul)

    def __truediv__(self, other: Any) -> "Gradients":
        return self._zip(other, operator.truediv)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gradients):
            return NotImplemented
        return len(self) == len(other) and all(
            a == b for a, b in zip(self._items, other._items)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Gradients({list(self._items)!r})"
