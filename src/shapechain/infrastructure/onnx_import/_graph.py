"""
Series/parallel segmentation of ONNX graphs.

`generate_graph` turns the flat node list of an ONNX graph into a tree of

- `Node`: a single graph node,
- `Series`: consecutive parts run one after another,
- `Parallel`: branches that start from the same node and meet again at a
  join node.

Adjacency is derived from tensor names: a node feeds every node that lists
one of its outputs as an input. A node with two or more producing
predecessors is a join point. Initializers and graph inputs have no producer
and do not count.

Walking from the first node:

- a node with a single successor is followed by its successor in the same
  `Series`;
- a node with several successors becomes the head of a `Parallel` of the
  branches starting at each successor. Every branch stops at the join node,
  which then continues the chain after the `Parallel`;
- a node without successors ends the chain.

A branch that reaches the join directly (a skip connection) is an empty
`Series`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, Union

import onnx

Graph = Union["Node", "Series", "Parallel"]


@dataclass(frozen=True)
class Node:
    value: onnx.NodeProto


@dataclass(frozen=True)
class Series:
    items: Tuple[Graph, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Parallel:
    branches: Tuple["Series", ...] = field(default_factory=tuple)


def wrap_series(g: Graph) -> Graph:
    """Wrap a `Parallel` in a one-element `Series`; other graphs unchanged."""
    if isinstance(g, Parallel):
        return Series((g,))
    return g


def graph_cons(x: onnx.NodeProto, g: Graph) -> Series:
    """Prepend node `x` to `g`."""
    if isinstance(g, Series):
        return Series((Node(x),) + g.items)
    return Series((Node(x), g))


def graph_append(a: Graph, b: Graph) -> Series:
    """Concatenate two graphs into one `Series`."""
    if isinstance(a, Node):
        return graph_cons(a.value, b)
    if isinstance(a, Series) and isinstance(b, Series):
        return Series(a.items + b.items)
    if isinstance(a, Series) and isinstance(b, Node):
        return Series(a.items + (b,))
    return graph_append(wrap_series(a), wrap_series(b))


def _as_series(g: Graph) -> Series:
    if isinstance(g, Series):
        return g
    return Series((g,))


class _Segmenter:
    def __init__(self, nodes: List[onnx.NodeProto]) -> None:
        self.nodes = nodes
        consumers: Dict[str, List[int]] = {}
        producers: Dict[str, List[int]] = {}
        for i, node in enumerate(nodes):
            for name in node.input:
                consumers.setdefault(name, []).append(i)
            for name in node.output:
                producers.setdefault(name, []).append(i)
        self.successors = [
            self._unique(j for name in n.output for j in consumers.get(name, ()))
            for n in nodes
        ]
        self.predecessors = [
            self._unique(j for name in n.input for j in producers.get(name, ()))
            for n in nodes
        ]

    @staticmethod
    def _unique(indices) -> List[int]:
        seen: List[int] = []
        for i in indices:
            if i not in seen:
                seen.append(i)
        return seen

    def walk(self, i: int, at_join: bool = False) -> Tuple[Series, Optional[int]]:
        """
        Segment the chain starting at node `i`.

        Returns the segment and the join node it stopped at, if any.
        `at_join` is True when `i` is a join node being continued.

        Runs of single-successor nodes are collected in a loop; only the
        branches of a `Parallel` are walked recursively.
        """
        items: List[Graph] = []
        seen: Set[int] = set()
        while True:
            if not at_join and len(self.predecessors[i]) >= 2:
                return Series(tuple(items)), i
            at_join = False
            if i in seen:
                raise ValueError(f"Graph has a cycle through node {i}")
            seen.add(i)

            node = self.nodes[i]
            succ = self.successors[i]
            items.append(Node(node))
            if not succ:
                return Series(tuple(items)), None
            if len(succ) == 1:
                i = succ[0]
                continue

            branches = [self.walk(s) for s in succ]
            joins = {j for _, j in branches}
            if len(joins) != 1:
                raise ValueError(
                    f"Branches starting at node {node.name or node.op_type!r} do "
                    "not meet at a single join node"
                )
            join = joins.pop()
            items.append(Parallel(tuple(g for g, _ in branches)))
            if join is None:
                return Series(tuple(items)), None
            i = join
            at_join = True


def generate_graph(model: onnx.ModelProto) -> Tuple[onnx.GraphProto, Series]:
    """
    Segment the graph of `model` into a series/parallel tree.

    Returns
    -------
    tuple[onnx.GraphProto, Series]
        The graph and its segmentation. An empty graph yields an empty
        `Series`.

    Raises
    ------
    ValueError
        If parallel branches do not meet at a single join node.
    """
    graph = model.graph
    nodes = list(graph.node)
    if not nodes:
        return graph, Series()
    segment, _ = _Segmenter(nodes).walk(0, at_join=True)
    return graph, _as_series(segment)
