"""
Weight initialization methods and the contract of their dispatcher.

Only the selectable methods and the fan validation live here; the formulas
and the random source are supplied by the infrastructure layer.

Methods
-------
- ``UNIFORM``:  W ~ U(-1/sqrt(n_in), 1/sqrt(n_in))
- ``XAVIER``:   W ~ U(-sqrt(6/(n_in+n_out)), sqrt(6/(n_in+n_out)))
- ``HE_ET_AL``: W ~ N(0, sqrt(2/n_in))
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, TypeVar


T = TypeVar("T", bound=Callable[..., object])


class WeightInitMethod(str, Enum):
    """Weight initialization method selectable when creating random layers."""

    UNIFORM = "uniform"
    XAVIER = "xavier"
    HE_ET_AL = "he_et_al"


class _WeightInitializer(ABC):
    """
    Contract of a weight initializer dispatcher.

    An instance is bound to one method at construction and draws arrays when
    called. Subclasses own the table of formulas, keyed by the
    `WeightInitMethod` values.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    @classmethod
    @abstractmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """Return a decorator adding a formula to the table under `name`."""

    @classmethod
    @abstractmethod
    def available(cls) -> tuple[str, ...]:
        """Sorted names of the registered formulas."""

    @classmethod
    @abstractmethod
    def get(cls, name: str) -> Callable:
        """The formula registered under `name`."""

    @abstractmethod
    def __call__(self, fan_in: int, fan_out: int, rng: Any, size: Any):
        """
        Draw an array of `size` for a layer with the given fans.

        Parameters
        ----------
        fan_in, fan_out:
            Number of inputs and outputs of the layer being initialized.
        rng:
            Random source.
        size:
            Shape tuple of the result.
        """


def _check_fans(fan_in: int, fan_out: int) -> tuple[int, int]:
    """
    Coerce fan-in and fan-out to ints and require both to be positive.

    Raises
    ------
    ValueError
        If either value is not positive.
    """
    fan_in, fan_out = int(fan_in), int(fan_out)
    if min(fan_in, fan_out) <= 0:
        raise ValueError(
            f"Weight initialization needs positive fans, got "
            f"fan_in={fan_in}, fan_out={fan_out}"
        )
    return fan_in, fan_out
