"""Append-only directed graph with caller-defined node states and edge props.

Nodes and edges live in flat lists and refer to each other only by integer
id. Ids are handed out densely from 0 in insertion order and never reused;
there is no way to remove anything once inserted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .cost import AdditiveCost, CostModel
from .errors import InvalidIdError
from .search import best_path as search_best_path

NodeId = int
EdgeId = int

StateT = TypeVar("StateT")
PropsT = TypeVar("PropsT")


@dataclass
class Node:
    id: NodeId
    incoming: list[EdgeId] = field(default_factory=list)
    outgoing: list[EdgeId] = field(default_factory=list)


@dataclass(frozen=True)
class Edge:
    id: EdgeId
    from_: NodeId
    to: NodeId

    @property
    def is_loop(self) -> bool:
        return self.from_ == self.to


def _check_id(kind: str, value: object, size: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < size:
        raise InvalidIdError(kind, value, size)
    return value


class Graph(Generic[StateT, PropsT]):
    def __init__(self, cost_model: CostModel | None = None) -> None:
        self.cost_model: CostModel = cost_model if cost_model is not None else AdditiveCost()
        self._nodes: list[Node] = []
        self._states: list[StateT] = []
        self._edges: list[Edge] = []
        self._props: list[PropsT] = []

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self._nodes)}, edges={len(self._edges)}, cost_model={self.cost_model!r})"

    @classmethod
    def _restore(
        cls,
        *,
        nodes: list[Node],
        states: list[StateT],
        edges: list[Edge],
        props: list[PropsT],
        cost_model: CostModel | None = None,
    ) -> Graph[StateT, PropsT]:
        # Used by the snapshot codec, which has already checked consistency.
        graph: Graph[StateT, PropsT] = cls(cost_model)
        graph._nodes = nodes
        graph._states = states
        graph._edges = edges
        graph._props = props
        return graph

    def insert_node(self, state: StateT) -> NodeId:
        node_id = len(self._nodes)
        self._nodes.append(Node(id=node_id))
        self._states.append(state)
        return node_id

    def insert_edge(self, from_: NodeId, to: NodeId, props: PropsT) -> EdgeId:
        size = len(self._nodes)
        _check_id("node", from_, size)
        _check_id("node", to, size)
        edge_id = len(self._edges)
        self._edges.append(Edge(id=edge_id, from_=from_, to=to))
        self._props.append(props)
        self._nodes[from_].outgoing.append(edge_id)
        self._nodes[to].incoming.append(edge_id)
        return edge_id

    def node(self, node_id: NodeId) -> Node:
        return self._nodes[_check_id("node", node_id, len(self._nodes))]

    def state(self, node_id: NodeId) -> StateT:
        return self._states[_check_id("node", node_id, len(self._nodes))]

    def edge(self, edge_id: EdgeId) -> Edge:
        return self._edges[_check_id("edge", edge_id, len(self._edges))]

    def props(self, edge_id: EdgeId) -> PropsT:
        return self._props[_check_id("edge", edge_id, len(self._edges))]

    def num_nodes(self) -> int:
        return len(self._nodes)

    def num_edges(self) -> int:
        return len(self._edges)

    def node_ids(self) -> Iterator[NodeId]:
        return iter(range(len(self._nodes)))

    def edge_ids(self) -> Iterator[EdgeId]:
        return iter(range(len(self._edges)))

    def cost(self, path: Iterable[EdgeId]) -> Any:
        total = self.cost_model.zero
        for edge_id in path:
            total = total + self.props(edge_id).cost()
        return total

    def is_valid_walk(self, path: Sequence[EdgeId], source: NodeId, target: NodeId) -> bool:
        """True when ``path`` leads edge by edge from ``source`` to ``target``."""
        if not path:
            return source == target
        at = source
        for edge_id in path:
            edge = self.edge(edge_id)
            if edge.from_ != at:
                return False
            at = edge.to
        return at == target

    def best_path(
        self,
        source: NodeId,
        targets: Sequence[NodeId],
        *,
        workers: int | None = None,
        early_exit: bool | None = None,
    ) -> list[EdgeId] | None:
        return search_best_path(self, source, targets, workers=workers, early_exit=early_exit)
