"""
Infrastructure layer of ShapeChain.

NumPy-backed implementations of the domain contracts: tensors, layers,
optimizers, networks, recurrent networks, binary encoding and ONNX import.
"""

from ._config import PRECISION_ENV_VAR, REAL_DTYPE
from ._gradient import NO_GRADIENT, ArrayGradient, mean_gradient
from ._layer import Layer, NetworkSettings
from ._activations import Logit, Relu, Tanh
from .tensor import Tensor
from .encoding import BinaryReader, BinaryWriter
from .fully_connected import FullyConnected, FullyConnectedGradient
from .layers import Crop, Dropout, Pad, Reshape
from .pooling import Pooling
from .optimizers import SGD, Adam, UpdateState, apply_update_rule

__all__ = [
    "PRECISION_ENV_VAR",
    "REAL_DTYPE",
    "NO_GRADIENT",
    ArrayGradient.__name__,
    mean_gradient.__name__,
    Layer.__name__,
    NetworkSettings.__name__,
    Relu.__name__,
    Tanh.__name__,
    Logit.__name__,
    Tensor.__name__,
    BinaryReader.__name__,
    BinaryWriter.__name__,
    FullyConnected.__name__,
    FullyConnectedGradient.__name__,
    Reshape.__name__,
    Crop.__name__,
    Pad.__name__,
    Dropout.__name__,
    Pooling.__name__,
    SGD.__name__,
    Adam.__name__,
    UpdateState.__name__,
    apply_update_rule.__name__,
]
