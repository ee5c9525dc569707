"""
Gradient interface definitions.

Every per-layer gradient, and every container of per-layer gradients, is a
`IFoldableGradient`: it can be mapped elementwise and it can report the
squared sums of its numeric contents. Those two operations are all that
global-norm computation and clipping need.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, runtime_checkable


@runtime_checkable
class IFoldableGradient(Protocol):
    """
    Gradient contract used by norm computation and clipping.

    Required methods
    ----------------
    - `map_gradient(f)` returns a new gradient with `f` applied to every
      numeric array it holds.
    - `squared_sums()` returns one squared sum per numeric array it holds
      (possibly none).
    """

    def map_gradient(self, f: Callable) -> "IFoldableGradient": ...

    def squared_sums(self) -> List[float]: ...
