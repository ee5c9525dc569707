"""
ONNX import public API.

Exports
-------
- read_double_attribute, read_int_attribute, read_ints_attribute,
  does_not_have_attribute:
    Typed attribute lookup on `onnx.NodeProto`.
- initializer_map, read_initializer_vector, read_initializer_matrix:
    Size-checked initializer lookup.
- Node, Series, Parallel, generate_graph, graph_cons, graph_append,
  wrap_series:
    Series/parallel segmentation of a graph.
- OnnxLoader, load_onnx_network, load_onnx_file:
    Loading a sequential model into a template network.
"""

from ._readers import (
    does_not_have_attribute,
    initializer_map,
    read_double_attribute,
    read_initializer_matrix,
    read_initializer_vector,
    read_int_attribute,
    read_ints_attribute,
)
from ._graph import (
    Node,
    Parallel,
    Series,
    generate_graph,
    graph_append,
    graph_cons,
    wrap_series,
)
from ._loader import OnnxLoader, load_onnx_file, load_onnx_network

__all__ = [
    read_double_attribute.__name__,
    read_int_attribute.__name__,
    read_ints_attribute.__name__,
    does_not_have_attribute.__name__,
    initializer_map.__name__,
    read_initializer_vector.__name__,
    read_initializer_matrix.__name__,
    Node.__name__,
    Series.__name__,
    Parallel.__name__,
    generate_graph.__name__,
    graph_cons.__name__,
    graph_append.__name__,
    wrap_series.__name__,
    OnnxLoader.__name__,
    load_onnx_network.__name__,
    load_onnx_file.__name__,
]
