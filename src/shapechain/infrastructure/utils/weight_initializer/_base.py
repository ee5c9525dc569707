"""
Named weight initializers used by `create_random_with`.

Every initialization formula is a function ``(fan_in, fan_out, rng, size)``
drawing an array from a `numpy.random.Generator`. Formulas are stored in a
class-level table keyed by the `WeightInitMethod` value, filled by the
``register_initializer`` decorator when the formula modules are imported.

`WeightInitializer(method)` looks the formula up once; calling the instance
validates the fans, draws the values and casts them to the working
precision. Layers normally go through `get_random_vector` and
`get_random_matrix` instead of using the class directly.

    init = WeightInitializer(WeightInitMethod.HE_ET_AL)
    w = init(n_in, n_out, rng, (n_out, n_in))

Values are drawn row-major, one independent sample per element.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import (
    WeightInitMethod,
    _WeightInitializer,
    _check_fans,
)
from ..._config import REAL_DTYPE

T = TypeVar("T", bound=Callable[..., np.ndarray])


class WeightInitializer(_WeightInitializer):
    """
    Callable wrapper around one registered initialization formula.

    Parameters
    ----------
    method : WeightInitMethod or str
        Method, or its table key.

    Raises
    ------
    ValueError
        If no formula is registered under `method`.
    """

    INITIALIZERS: ClassVar[Dict[str, Callable[..., np.ndarray]]] = {}

    def __init__(self, method: "WeightInitMethod | str") -> None:
        name = method.value if isinstance(method, WeightInitMethod) else str(method)
        if name not in self.INITIALIZERS:
            known = ", ".join(self.available()) or "<none>"
            raise ValueError(f"Unknown weight initializer {name!r}; known: {known}")
        self._initializer: Callable[..., np.ndarray] = self.INITIALIZERS[name]

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Store the decorated formula under `name`.

        A second registration under the same name is rejected unless
        `overwrite` is set.
        """
        if not name or not isinstance(name, str):
            raise ValueError("Weight initializer names must be non-empty strings")

        def decorator(func: T) -> T:
            if name in cls.INITIALIZERS and not overwrite:
                raise ValueError(f"Weight initializer {name!r} is already registered")
            cls.INITIALIZERS[name] = func
            return func

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        return tuple(sorted(cls.INITIALIZERS))

    @classmethod
    def get(cls, name: str) -> Callable[..., np.ndarray]:
        return cls.INITIALIZERS[name]

    def __call__(
        self, fan_in: int, fan_out: int, rng: np.random.Generator, size: Any
    ) -> np.ndarray:
        fan_in, fan_out = _check_fans(fan_in, fan_out)
        out = self._initializer(fan_in, fan_out, rng, size)
        return np.asarray(out, dtype=REAL_DTYPE)


def get_random_vector(
    fan_in: int,
    fan_out: int,
    method: "WeightInitMethod | str",
    rng: np.random.Generator,
    n: int,
) -> np.ndarray:
    """
    Draw a length-`n` vector with the selected initialization method.
    """
    return WeightInitializer(method)(fan_in, fan_out, rng, (int(n),))


def get_random_matrix(
    fan_in: int,
    fan_out: int,
    method: "WeightInitMethod | str",
    rng: np.random.Generator,
    rows: int,
    cols: int,
) -> np.ndarray:
    """
    Draw a ``rows x cols`` matrix with the selected initialization method.

    ``rows * cols`` independent samples are drawn and laid out row-major.
    """
    return WeightInitializer(method)(fan_in, fan_out, rng, (int(rows), int(cols)))
