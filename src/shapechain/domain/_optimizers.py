"""
Domain-level optimizer contracts for ShapeChain.

This module defines the `IOptimizer` protocol, which specifies the minimal
interface an optimizer configuration must expose.

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- Optimizers are plain configuration values. They hold no per-parameter
  state; running state (momentum, moment estimates) is owned by the layer
  being updated so that updates remain pure functions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer configuration contract.

    Required members
    ----------------
    - `name` identifies the update rule (e.g. ``"sgd"``, ``"adam"``).
    - `state_size` is the number of auxiliary arrays the rule keeps per
      parameter array.
    """

    @property
    def name(self) -> str: ...

    @property
    def state_size(self) -> int: ...
