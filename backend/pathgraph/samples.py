from __future__ import annotations

import random
import string

from pydantic import BaseModel, ConfigDict, Field

from .cost import AdvanceCost
from .graph import Graph, NodeId
from .settings import settings


class Letter(BaseModel):
    name: str = Field(..., min_length=1, max_length=1)


class Weight(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    weight: float = Field(..., ge=0.0, alias="cost")

    def cost(self) -> float:
        return self.weight


class Elapsed(BaseModel):
    """Node state whose cost is the time spent getting there."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    elapsed: float | None = Field(default=None, alias="cost")

    def advance(self, edge_props: Weight) -> Elapsed:
        start = self.elapsed if self.elapsed is not None else 0.0
        return Elapsed(name=self.name, elapsed=start + edge_props.cost())

    def update(self, node_state: Elapsed) -> None:
        self.elapsed = node_state.elapsed

    def cost(self) -> float | None:
        return self.elapsed


def random_sample(
    node_count: int | None = None,
    edge_count: int | None = None,
    *,
    seed: int | None = None,
) -> Graph[Letter, Weight]:
    """Letter-named nodes joined by random edges with uniform [0, 1) costs.

    Endpoints are drawn independently, so self-loops and parallel edges occur.
    """
    nodes = settings.sample_node_count if node_count is None else node_count
    edges = settings.sample_edge_count if edge_count is None else edge_count
    if not 1 <= nodes <= len(string.ascii_lowercase):
        raise ValueError(f"node_count must be between 1 and {len(string.ascii_lowercase)}")
    if edges < 0:
        raise ValueError("edge_count must be >= 0")
    rng = random.Random(seed)
    graph: Graph[Letter, Weight] = Graph()
    for letter in string.ascii_lowercase[:nodes]:
        graph.insert_node(Letter(name=letter))
    for _ in range(edges):
        graph.insert_edge(rng.randrange(nodes), rng.randrange(nodes), Weight(weight=rng.random()))
    return graph


def grid3d_neighbours(node_id: NodeId, n: int) -> list[NodeId]:
    # clamped at the faces, so border nodes get self-loops
    i, j, k = node_id % n, (node_id // n) % n, node_id // n // n

    def id_of(a: int, b: int, c: int) -> NodeId:
        return a + n * (b + n * c)

    def less(index: int) -> int:
        return max(index - 1, 0)

    def more(index: int) -> int:
        return min(index + 1, n - 1)

    return [
        id_of(less(i), j, k),
        id_of(more(i), j, k),
        id_of(i, less(j), k),
        id_of(i, more(j), k),
        id_of(i, j, less(k)),
        id_of(i, j, more(k)),
    ]


def grid3d(n: int = 10, *, seed: int | None = None) -> Graph[Elapsed, Weight]:
    """n x n x n lattice with integer costs in [0, 255], searched with ``AdvanceCost``."""
    if n < 1:
        raise ValueError("n must be >= 1")
    rng = random.Random(seed)
    graph: Graph[Elapsed, Weight] = Graph(AdvanceCost())
    node_ids = [graph.insert_node(Elapsed(name=str(index))) for index in range(n**3)]
    for from_id in node_ids:
        for to_id in grid3d_neighbours(from_id, n):
            graph.insert_edge(from_id, to_id, Weight(weight=rng.randint(0, 255)))
    return graph
