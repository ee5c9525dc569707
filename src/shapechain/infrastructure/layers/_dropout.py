"""
Dropout regularization layer.

This module implements inverted dropout. During training, activations are
masked with probability `rate` and the survivors are scaled by
``1 / (1 - rate)`` so the expected activation is unchanged. Outside training
the layer is the identity.

Design notes
------------
- The mask is drawn from a `numpy.random.Generator` seeded with the layer's
  `seed`, so `run_forwards` is deterministic for a given layer value. Each
  `run_update` advances the seed, which gives every training step a fresh
  mask without hidden mutable state.
- By default every sample of a batch, and every timestep of a recurrent
  sequence, sees the same mask, so batched and per-sample runs agree. With
  `per_sample=True`, `run_batch_forwards` draws sample ``i`` from the
  generator seeded with ``(seed, i)``, which decorrelates the masks across
  the batch at the cost of that agreement.
- Training mode is switched through `run_settings_update`, driven by
  `NetworkSettings.training`.
- The backward pass reuses the forward mask, which is kept as the tape.
- Binary encoding: `rate` as a float followed by `seed` as an integer. The
  training flag and `per_sample` are configuration and are not serialized.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._shape import Shape
from .._config import REAL_DTYPE
from .._gradient import NO_GRADIENT
from .._layer import Layer, NetworkSettings
from ..encoding._binary import BinaryReader, BinaryWriter
from ..tensor._tensor import Tensor


class Dropout(Layer):
    """
    Dropout regularization layer (inverted dropout).

    Behavior
    --------
    - Training mode:
        y = x * mask / (1 - rate), where mask ~ Bernoulli(1 - rate)
    - Evaluation mode:
        y = x (identity)

    Parameters
    ----------
    rate : float, optional
        Probability of dropping (zeroing) an element. Must satisfy
        ``0.0 <= rate < 1.0``. Default is 0.5.
    seed : int, optional
        Seed of the mask generator. Default is 0.
    training : bool, optional
        Whether the layer starts in training mode. Default is True.
    per_sample : bool, optional
        Draw an independent mask for every sample of a batch. Default is
        False.
    """

    def __init__(
        self,
        rate: float = 0.5,
        seed: int = 0,
        training: bool = True,
        per_sample: bool = False,
    ):
        if not 0.0 <= rate < 1.0:
            raise ValueError("Dropout rate must be in [0, 1).")
        self.rate = float(rate)
        self.seed = int(seed)
        self.training = bool(training)
        self.per_sample = bool(per_sample)

    def _mask(
        self, shape: Shape, sample: Optional[int] = None
    ) -> Optional[np.ndarray]:
        if not self.training or self.rate == 0.0:
            return None
        keep_prob = 1.0 - self.rate
        seed = self.seed if sample is None else [self.seed, sample]
        r = np.random.default_rng(seed).random(shape.dims)
        return (r < keep_prob).astype(REAL_DTYPE) / keep_prob

    def output_shape(self, input_shape: Shape) -> Shape:
        return input_shape

    def _apply(self, x: Tensor, mask: Optional[np.ndarray]):
        if mask is None:
            return None, x
        return mask, x.with_data(x.data * mask)

    def run_forwards(self, x: Tensor):
        return self._apply(x, self._mask(x.shape))

    def run_batch_forwards(
        self, xs: Sequence[Tensor]
    ) -> Tuple[List[Any], List[Tensor]]:
        if not self.per_sample:
            return super().run_batch_forwards(xs)
        tapes: List[Any] = []
        outs: List[Tensor] = []
        for i, x in enumerate(xs):
            tape, y = self._apply(x, self._mask(x.shape, i))
            tapes.append(tape)
            outs.append(y)
        return tapes, outs

    def run_backwards(self, tape: Optional[np.ndarray], dy: Tensor):
        if tape is None:
            return NO_GRADIENT, dy
        return NO_GRADIENT, dy.with_data(dy.data * tape)

    def run_update(self, optimizer: Any, grad: Any) -> "Dropout":
        return Dropout(self.rate, self.seed + 1, self.training, self.per_sample)

    def run_settings_update(self, settings: NetworkSettings) -> "Dropout":
        return Dropout(self.rate, self.seed, settings.training, self.per_sample)

    def serialize(self, writer: BinaryWriter) -> None:
        writer.write_float(self.rate)
        writer.write_int(self.seed)

    def deserialize(self, reader: BinaryReader) -> "Dropout":
        rate = reader.read_float()
        seed = reader.read_int()
        return Dropout(rate, seed, self.training, self.per_sample)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dropout):
            return NotImplemented
        return (self.rate, self.seed, self.training, self.per_sample) == (
            other.rate,
            other.seed,
            other.training,
            other.per_sample,
        )

    def __hash__(self) -> int:
        return hash((self.rate, self.seed, self.training, self.per_sample))

    def __repr__(self) -> str:
        return f"Dropout {self.rate}"
