from __future__ import annotations

from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .cost import CostModel
from .errors import SnapshotDecodeError
from .graph import Edge, Graph, Node
from .settings import settings

StateT = TypeVar("StateT")
PropsT = TypeVar("PropsT")


class NodeRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int = Field(..., ge=0)
    incoming: list[int] | None = None
    outgoing: list[int] = Field(default_factory=list)


class EdgeRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: int = Field(..., ge=0)
    from_: int = Field(..., ge=0, alias="from")
    to: int = Field(..., ge=0)


class GraphSnapshot(BaseModel, Generic[StateT, PropsT]):
    """Flat, lossless picture of a graph: four parallel collections indexed by id."""

    nodes: list[NodeRecord] = Field(default_factory=list)
    states: list[StateT] = Field(default_factory=list)
    edges: list[EdgeRecord] = Field(default_factory=list)
    props: list[PropsT] = Field(default_factory=list)


def to_snapshot(graph: Graph[Any, Any]) -> GraphSnapshot[Any, Any]:
    nodes = []
    for node_id in graph.node_ids():
        node = graph.node(node_id)
        nodes.append(NodeRecord(id=node.id, incoming=list(node.incoming), outgoing=list(node.outgoing)))
    edges = []
    for edge_id in graph.edge_ids():
        edge = graph.edge(edge_id)
        edges.append(EdgeRecord(id=edge.id, from_=edge.from_, to=edge.to))
    return GraphSnapshot(
        nodes=nodes,
        states=[graph.state(node_id) for node_id in graph.node_ids()],
        edges=edges,
        props=[graph.props(edge_id) for edge_id in graph.edge_ids()],
    )


def encode_graph(graph: Graph[Any, Any], *, indent: int | None = None) -> str:
    return to_snapshot(graph).model_dump_json(by_alias=True, indent=indent)


def _check_adjacency(
    *,
    kind: str,
    node_id: int,
    listed: list[int],
    expected: list[int],
) -> None:
    if sorted(listed) != expected:
        raise SnapshotDecodeError(
            reason_code="snapshot_adjacency_mismatch",
            message=f"node {node_id} {kind} edges {listed} disagree with the edge list",
            details={"node": node_id, "kind": kind, "listed": listed, "expected": expected},
        )


def from_snapshot(
    snapshot: GraphSnapshot[Any, Any],
    *,
    cost_model: CostModel | None = None,
) -> Graph[Any, Any]:
    node_count = len(snapshot.nodes)
    edge_count = len(snapshot.edges)
    if node_count != len(snapshot.states) or edge_count != len(snapshot.props):
        raise SnapshotDecodeError(
            reason_code="snapshot_length_mismatch",
            message=(
                f"snapshot holds {node_count} nodes/{len(snapshot.states)} states and "
                f"{edge_count} edges/{len(snapshot.props)} props"
            ),
            details={
                "nodes": node_count,
                "states": len(snapshot.states),
                "edges": edge_count,
                "props": len(snapshot.props),
            },
        )
    for index, record in enumerate(snapshot.nodes):
        if record.id != index:
            raise SnapshotDecodeError(
                reason_code="snapshot_ids_not_dense",
                message=f"node at position {index} carries id {record.id}",
                details={"kind": "node", "position": index, "id": record.id},
            )
    expected_out: list[list[int]] = [[] for _ in range(node_count)]
    expected_in: list[list[int]] = [[] for _ in range(node_count)]
    for index, record in enumerate(snapshot.edges):
        if record.id != index:
            raise SnapshotDecodeError(
                reason_code="snapshot_ids_not_dense",
                message=f"edge at position {index} carries id {record.id}",
                details={"kind": "edge", "position": index, "id": record.id},
            )
        if record.from_ >= node_count or record.to >= node_count:
            raise SnapshotDecodeError(
                reason_code="snapshot_endpoint_out_of_range",
                message=f"edge {index} joins {record.from_} -> {record.to} but only {node_count} nodes exist",
                details={"edge": index, "from": record.from_, "to": record.to, "nodes": node_count},
            )
        expected_out[record.from_].append(index)
        expected_in[record.to].append(index)

    nodes: list[Node] = []
    for record in snapshot.nodes:
        _check_adjacency(kind="outgoing", node_id=record.id, listed=record.outgoing, expected=expected_out[record.id])
        if record.incoming is None:
            incoming = expected_in[record.id]
        else:
            _check_adjacency(kind="incoming", node_id=record.id, listed=record.incoming, expected=expected_in[record.id])
            incoming = list(record.incoming)
        nodes.append(Node(id=record.id, incoming=incoming, outgoing=list(record.outgoing)))

    return Graph._restore(
        nodes=nodes,
        states=list(snapshot.states),
        edges=[Edge(id=record.id, from_=record.from_, to=record.to) for record in snapshot.edges],
        props=list(snapshot.props),
        cost_model=cost_model,
    )


def decode_graph(
    text: str | bytes,
    state_type: Any = Any,
    props_type: Any = Any,
    *,
    cost_model: CostModel | None = None,
) -> Graph[Any, Any]:
    """Rebuild a graph from JSON. Either the whole graph comes back or ``SnapshotDecodeError`` is raised."""
    size = len(text.encode("utf-8") if isinstance(text, str) else text)
    if size > settings.snapshot_max_bytes:
        raise SnapshotDecodeError(
            reason_code="snapshot_too_large",
            message=f"snapshot is {size} bytes, limit is {settings.snapshot_max_bytes}",
            details={"size_bytes": size, "limit_bytes": settings.snapshot_max_bytes},
        )
    try:
        snapshot = GraphSnapshot[state_type, props_type].model_validate_json(text)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        malformed = any(err.get("type") == "json_invalid" for err in errors)
        raise SnapshotDecodeError(
            reason_code="snapshot_malformed_json" if malformed else "snapshot_schema_invalid",
            message=f"snapshot rejected: {exc.error_count()} validation error(s)",
            details={"errors": [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in errors[:20]]},
        ) from exc
    return from_snapshot(snapshot, cost_model=cost_model)


def load_graph(
    path: str | Path,
    state_type: Any = Any,
    props_type: Any = Any,
    *,
    cost_model: CostModel | None = None,
) -> Graph[Any, Any]:
    source = Path(path)
    try:
        raw = source.read_bytes()
    except OSError as exc:
        raise SnapshotDecodeError(
            reason_code="snapshot_unreadable",
            message=f"cannot read snapshot {source}: {exc}",
            details={"path": str(source)},
        ) from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SnapshotDecodeError(
            reason_code="snapshot_malformed_json",
            message=f"snapshot {source} is not valid UTF-8: {exc}",
            details={"path": str(source), "offset": exc.start},
        ) from exc
    return decode_graph(text, state_type, props_type, cost_model=cost_model)


def dump_graph(graph: Graph[Any, Any], path: str | Path, *, indent: int | None = None) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(encode_graph(graph, indent=indent), encoding="utf-8")
    return target
