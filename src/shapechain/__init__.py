"""
ShapeChain: shape-checked neural networks on NumPy.

A network is an ordered chain of layers together with the shapes flowing
between them. Shapes are checked once, when the network is built; afterwards
forward passes, back propagation, batching, optimizer updates, random
initialization and serialization all operate on values that are known to fit
together. Networks are layers themselves and can be nested, and recurrent
networks extend the same machinery with a state threaded between timesteps.
"""

from .domain import (
    DeserializationError,
    EmptyBatchError,
    InvalidShapeError,
    NotRecurrentLayerError,
    Shape,
    ShapechainError,
    ShapeMismatchError,
    WeightInitMethod,
)
from .infrastructure import (
    NO_GRADIENT,
    SGD,
    Adam,
    Crop,
    Dropout,
    FullyConnected,
    Layer,
    Logit,
    NetworkSettings,
    Pad,
    Pooling,
    Relu,
    Reshape,
    Tanh,
    Tensor,
)
from .infrastructure.models import (
    BatchTapes,
    Gradients,
    Network,
    Tapes,
    apply_settings_update,
    back_propagate,
    batch_train,
    clip_by_global_norm,
    l2_norm,
    random_network,
    run_net,
    train,
)
from .infrastructure.recurrent import (
    BasicRecurrent,
    FeedForward,
    Recurrent,
    RecurrentInputs,
    RecurrentLayer,
    RecurrentNetwork,
    backpropagate_through_time,
    random_recurrent,
    run_recurrent_sequence,
)

__version__ = "0.1.0a0"
