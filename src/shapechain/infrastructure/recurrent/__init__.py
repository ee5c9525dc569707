"""
Recurrent network public API.

Exports
-------
- RecurrentLayer:
    Base class for layers carrying a state between timesteps.
- BasicRecurrent, BasicRecurrentGradient:
    Elman-style tanh recurrent layer.
- FeedForward, Recurrent:
    Node tags of a recurrent network.
- RecurrentNetwork, RecurrentInputs, RecurrentTape:
    Single-timestep recurrent composition and its state/tape containers.
- run_recurrent, run_recurrent_backwards, apply_recurrent_update,
  random_recurrent:
    Functional entry points mirroring the `RecurrentNetwork` methods.
- run_recurrent_sequence, backpropagate_through_time, train_recurrent:
    Time-loop helpers.
"""

from ._recurrent_layer import RecurrentLayer
from ._basic import BasicRecurrent, BasicRecurrentGradient
from ._inputs import RecurrentInputs
from ._network import (
    FeedForward,
    Recurrent,
    RecurrentNetwork,
    RecurrentTape,
    apply_recurrent_update,
    random_recurrent,
    run_recurrent,
    run_recurrent_backwards,
)
from ._runner import (
    backpropagate_through_time,
    run_recurrent_sequence,
    train_recurrent,
)

__all__ = [
    RecurrentLayer.__name__,
    BasicRecurrent.__name__,
    BasicRecurrentGradient.__name__,
    RecurrentInputs.__name__,
    FeedForward.__name__,
    Recurrent.__name__,
    RecurrentNetwork.__name__,
    RecurrentTape.__name__,
    run_recurrent.__name__,
    run_recurrent_backwards.__name__,
    apply_recurrent_update.__name__,
    random_recurrent.__name__,
    run_recurrent_sequence.__name__,
    backpropagate_through_time.__name__,
    train_recurrent.__name__,
]
