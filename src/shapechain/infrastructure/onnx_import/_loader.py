"""
Loading ONNX models into networks.

`load_onnx_network` fills a template `Network` from a strictly sequential
ONNX graph. The template fixes the layer types, their configuration and the
shapes; the graph supplies the parameters.

Design
------
- Layer loaders are registered per layer class through a decorator-based
  registry, together with the ONNX op types they accept.
- Each loader receives the template layer, the ONNX node matched against it
  and the initializer table, and returns the loaded layer or ``None``.
- Nested networks in the template consume consecutive nodes recursively.

Failures never raise. Any problem (non-sequential graph, unknown layer,
op-type mismatch, missing or mis-sized initializer, leftover nodes) makes
`load_onnx_network` return ``None`` and emits a `RuntimeWarning` naming the
reason.

Usage example
-------------
Registering a loader:

    @OnnxLoader.register_loader(MyLayer, "MyOp")
    def _load_my_layer(layer, node, inits):
        ...
"""

from __future__ import annotations

import warnings
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple

import onnx

from ..fully_connected._fully_connected import FullyConnected
from .._activations import Logit, Relu, Tanh
from ..layers._dropout import Dropout
from ..layers._reshape import Reshape
from ..models._network import Network
from ..pooling._pooling import Pooling
from ._graph import Node, generate_graph
from ._readers import (
    does_not_have_attribute,
    initializer_map,
    read_double_attribute,
    read_initializer_matrix,
    read_initializer_vector,
    read_int_attribute,
    read_ints_attribute,
)

LoaderFn = Callable[[Any, onnx.NodeProto, Dict[str, onnx.TensorProto]], Optional[Any]]


class OnnxLoadError(Exception):
    """Internal signal that loading failed; never escapes this module."""


class OnnxLoader:
    """
    Registry of per-layer ONNX loaders.

    Register:
        @OnnxLoader.register_loader(Relu, "Relu")
        def _load_relu(layer, node, inits): ...

    Dispatch:
        OnnxLoader.load_layer(template_layer, node, inits)
    """

    LOADERS: ClassVar[Dict[type, Tuple[Tuple[str, ...], LoaderFn]]] = {}

    @classmethod
    def register_loader(
        cls, layer_type: type, *op_types: str, overwrite: bool = False
    ) -> Callable[[LoaderFn], LoaderFn]:
        """
        Decorator registering a loader for `layer_type`.

        Parameters
        ----------
        layer_type:
            Layer class handled by the loader.
        *op_types:
            ONNX op types the loader accepts.
        overwrite:
            If False (default), raises if `layer_type` is already registered.
        """
        if not op_types:
            raise ValueError("At least one ONNX op type is required")

        def decorator(func: LoaderFn) -> LoaderFn:
            if not overwrite and layer_type in cls.LOADERS:
                raise ValueError(f"Loader already registered: {layer_type.__name__}")
            cls.LOADERS[layer_type] = (tuple(op_types), func)
            return func

        return decorator

    @classmethod
    def op_types(cls, layer_type: type) -> Tuple[str, ...]:
        """ONNX op types accepted for `layer_type` (empty if unsupported)."""
        entry = cls._lookup(layer_type)
        return entry[0] if entry else ()

    @classmethod
    def _lookup(cls, layer_type: type):
        for klass in layer_type.__mro__:
            if klass in cls.LOADERS:
                return cls.LOADERS[klass]
        return None

    @classmethod
    def load_layer(
        cls, layer: Any, node: onnx.NodeProto, inits: Dict[str, onnx.TensorProto]
    ) -> Any:
        entry = cls._lookup(type(layer))
        if entry is None:
            raise OnnxLoadError(f"No ONNX loader for {type(layer).__name__}")
        op_types, func = entry
        if node.op_type not in op_types:
            raise OnnxLoadError(
                f"{layer!r} expects one of {list(op_types)}, got {node.op_type!r}"
            )
        loaded = func(layer, node, inits)
        if loaded is None:
            raise OnnxLoadError(
                f"Could not load {layer!r} from node {node.name or node.op_type!r}"
            )
        return loaded


def _activation(layer: Any, node: onnx.NodeProto, inits) -> Any:
    return layer


OnnxLoader.register_loader(Relu, "Relu")(_activation)
OnnxLoader.register_loader(Tanh, "Tanh")(_activation)
OnnxLoader.register_loader(Logit, "Sigmoid")(_activation)
OnnxLoader.register_loader(Reshape, "Flatten", "Reshape")(_activation)
OnnxLoader.register_loader(Dropout, "Dropout")(_activation)


@OnnxLoader.register_loader(FullyConnected, "Gemm")
def _load_fully_connected(
    layer: FullyConnected, node: onnx.NodeProto, inits
) -> Optional[FullyConnected]:
    """
    Load ``Y = A B + C`` (or ``A B^T + C`` with ``transB=1``).

    `alpha` and `beta` must be absent or 1.0, and `transA` absent or 0.
    """
    if len(node.input) < 3:
        return None
    for name in ("alpha", "beta"):
        value = read_double_attribute(name, node)
        if value is None and not does_not_have_attribute(node, name):
            return None
        if value is not None and value != 1.0:
            return None
    if read_int_attribute("transA", node) not in (None, 0):
        return None

    i, o = layer.input_size, layer.output_size
    if read_int_attribute("transB", node) == 1:
        weights = read_initializer_matrix(inits, node.input[1], o, i)
    else:
        weights = read_initializer_matrix(inits, node.input[1], i, o)
        weights = None if weights is None else weights.T
    bias = read_initializer_vector(inits, node.input[2], o)
    if weights is None or bias is None:
        return None
    return FullyConnected(i, o, bias=bias, weights=weights)


@OnnxLoader.register_loader(Pooling, "MaxPool")
def _load_pooling(layer: Pooling, node: onnx.NodeProto, inits) -> Optional[Pooling]:
    """Accept a MaxPool node whose kernel and strides match the template."""
    kernel = read_ints_attribute("kernel_shape", node)
    strides = read_ints_attribute("strides", node) or [1, 1]
    pads = read_ints_attribute("pads", node)
    if kernel is None or tuple(kernel) != layer.kernel:
        return None
    if tuple(strides) != layer.stride:
        return None
    if pads is not None and any(pads):
        return None
    return layer


def _load_chain(
    layers: Tuple[Any, ...],
    nodes: List[onnx.NodeProto],
    pos: int,
    inits: Dict[str, onnx.TensorProto],
) -> Tuple[List[Any], int]:
    out: List[Any] = []
    for layer in layers:
        if isinstance(layer, Network):
            sub, pos = _load_chain(layer.layers, nodes, pos, inits)
            out.append(Network(sub, layer.shapes))
            continue
        if pos >= len(nodes):
            raise OnnxLoadError(f"Graph ran out of nodes before {layer!r}")
        out.append(OnnxLoader.load_layer(layer, nodes[pos], inits))
        pos += 1
    return out, pos


def load_onnx_network(model: onnx.ModelProto, template: Network) -> Optional[Network]:
    """
    Load the parameters of a sequential ONNX model into `template`.

    Parameters
    ----------
    model : onnx.ModelProto
        Model whose graph is a strict chain of nodes, one per template layer
        (nested networks contribute one node per inner layer).
    template : Network
        Network fixing layer types, configuration and shapes.

    Returns
    -------
    Network or None
        The loaded network, or ``None`` if the model does not fit the
        template.
    """
    try:
        graph, series = generate_graph(model)
        nodes = []
        for item in series.items:
            if not isinstance(item, Node):
                raise OnnxLoadError("Graph is not strictly sequential")
            nodes.append(item.value)
        layers, pos = _load_chain(template.layers, nodes, 0, initializer_map(graph))
        if pos != len(nodes):
            raise OnnxLoadError(
                f"{len(nodes) - pos} graph nodes left after loading the template"
            )
        return Network(layers, template.shapes)
    except (OnnxLoadError, ValueError) as e:
        warnings.warn(f"ONNX model not loaded: {e}", RuntimeWarning, stacklevel=2)
        return None


def load_onnx_file(path: str, template: Network) -> Optional[Network]:
    """Read an ``.onnx`` file and load it into `template`."""
    return load_onnx_network(onnx.load(path), template)
