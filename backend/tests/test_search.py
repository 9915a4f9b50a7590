from __future__ import annotations

import math
from dataclasses import dataclass

import pytest

import pathgraph.search as search_module
from pathgraph.cost import AdditiveCost, Cost
from pathgraph.errors import IncomparableCostError, InvalidIdError, PathReconstructionError
from pathgraph.graph import Graph
from pathgraph.samples import Letter, Weight, random_sample
from pathgraph.search import best_path, search


def _letters(graph: Graph, names: str) -> list[int]:
    return [graph.insert_node(Letter(name=name)) for name in names]


def _w(value: float) -> Weight:
    return Weight(weight=value)


def _reference_costs(graph: Graph, source: int) -> list[float]:
    # Bellman-Ford over every edge; slow but independent of the search under test.
    dist = [math.inf] * graph.num_nodes()
    dist[source] = 0.0
    for _ in range(graph.num_nodes()):
        changed = False
        for edge_id in graph.edge_ids():
            edge = graph.edge(edge_id)
            candidate = dist[edge.from_] + graph.props(edge_id).cost()
            if candidate < dist[edge.to]:
                dist[edge.to] = candidate
                changed = True
        if not changed:
            break
    return dist


def test_best_path_prefers_cheaper_detour() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c, d = _letters(graph, "abcd")
    graph.insert_edge(a, b, _w(1))
    graph.insert_edge(b, c, _w(90))
    ad = graph.insert_edge(a, d, _w(10))
    dc = graph.insert_edge(d, c, _w(20))
    graph.insert_edge(d, b, _w(1))

    # three ways from a to c: ab-bc, ad-db-bc and ad-dc
    path = graph.best_path(a, [c])

    assert path == [ad, dc]
    assert graph.cost(path) == 30.0


def test_fork_picks_cheapest_target() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    graph.insert_edge(a, b, _w(2))
    ac = graph.insert_edge(a, c, _w(1))

    path = graph.best_path(a, [b, c])

    assert path == [ac]
    assert graph.cost(path) == 1.0


def test_chain_stops_at_nearest_target() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    ab = graph.insert_edge(a, b, _w(2))
    graph.insert_edge(b, c, _w(1))

    path = graph.best_path(a, [b, c])

    assert path == [ab]
    assert graph.cost(path) == 2.0


def test_multi_edge_uses_cheapest_parallel_edge() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    u = graph.insert_edge(a, b, _w(3))
    v = graph.insert_edge(a, b, _w(2))
    w = graph.insert_edge(a, b, _w(1))

    assert len({u, v, w}) == 3
    path = graph.best_path(a, [b])

    assert path == [w]
    assert graph.cost(path) == 1.0


def test_self_loop_is_never_taken() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    loop = graph.insert_edge(a, a, _w(0))
    ab = graph.insert_edge(a, b, _w(2))
    graph.insert_edge(b, b, _w(0))

    path = graph.best_path(a, [b])

    assert path == [ab]
    assert loop not in path
    assert graph.cost(path) == 2.0


def test_disconnected_target_is_unreachable() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")

    assert graph.best_path(a, [b]) is None
    result = search(graph, a, [b])
    assert not result.reachable
    assert result.target is None
    assert result.cost is None


def test_edges_only_run_forwards() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    graph.insert_edge(b, a, _w(1))

    assert graph.best_path(a, [b]) is None


def test_source_in_targets_gives_empty_path() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    graph.insert_edge(a, b, _w(1))

    assert graph.best_path(a, [a]) == []
    assert graph.best_path(a, [b, a]) == []
    result = search(graph, a, [b, a])
    assert result.termination_reason == "source_is_target"
    assert result.cost == 0.0
    assert graph.cost([]) == 0.0


def test_unreachable_targets_are_ignored() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, z = _letters(graph, "abz")
    ab = graph.insert_edge(a, b, _w(5))

    assert graph.best_path(a, [z, b]) == [ab]


@pytest.mark.parametrize("early_exit", [True, False])
def test_ties_resolve_to_first_listed_target(early_exit: bool) -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    ab = graph.insert_edge(a, b, _w(1))
    bc = graph.insert_edge(b, c, _w(0))

    assert graph.best_path(a, [c, b], early_exit=early_exit) == [ab, bc]
    assert graph.best_path(a, [b, c], early_exit=early_exit) == [ab]


@pytest.mark.parametrize("early_exit", [True, False])
def test_equal_cost_siblings_resolve_by_target_order(early_exit: bool) -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    ab = graph.insert_edge(a, b, _w(1))
    ac = graph.insert_edge(a, c, _w(1))

    assert graph.best_path(a, [c, b], early_exit=early_exit) == [ac]
    assert graph.best_path(a, [b, c], early_exit=early_exit) == [ab]


def test_stale_entries_are_skipped() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c, d = _letters(graph, "abcd")
    graph.insert_edge(a, b, _w(1))
    graph.insert_edge(b, c, _w(90))
    graph.insert_edge(a, d, _w(10))
    graph.insert_edge(d, c, _w(20))
    graph.insert_edge(d, b, _w(1))

    full = search(graph, a, [c], early_exit=False)
    assert full.termination_reason == "queue_exhausted"
    assert full.stale == 1
    assert full.settled == 4
    assert full.cost == 30.0

    early = search(graph, a, [c], early_exit=True)
    assert early.termination_reason == "targets_settled"
    assert early.path == full.path
    assert early.stale == 0


def test_invalid_ids_are_fatal() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, _b = _letters(graph, "ab")

    with pytest.raises(InvalidIdError):
        graph.best_path(a, [7])
    with pytest.raises(InvalidIdError):
        graph.best_path(-1, [a])
    with pytest.raises(IndexError):
        best_path(graph, 2, [a])


@dataclass
class _RawProps:
    weight: float

    def cost(self) -> float:
        return self.weight


def test_nan_edge_cost_is_fatal() -> None:
    graph: Graph[str, _RawProps] = Graph()
    a = graph.insert_node("a")
    b = graph.insert_node("b")
    graph.insert_edge(a, b, _RawProps(float("nan")))

    with pytest.raises(IncomparableCostError):
        graph.best_path(a, [b])


@dataclass
class _WrappedProps:
    weight: int

    def cost(self) -> Cost:
        return Cost(self.weight)


def test_search_over_cost_wrapper() -> None:
    graph: Graph[str, _WrappedProps] = Graph(AdditiveCost(zero=Cost(0)))
    a, b, c, d = (graph.insert_node(name) for name in "abcd")
    graph.insert_edge(a, b, _WrappedProps(1))
    graph.insert_edge(b, c, _WrappedProps(90))
    ad = graph.insert_edge(a, d, _WrappedProps(10))
    dc = graph.insert_edge(d, c, _WrappedProps(20))
    graph.insert_edge(d, b, _WrappedProps(1))

    result = search(graph, a, [c])
    assert result.path == [ad, dc]
    assert result.cost == Cost(30)
    assert graph.cost(result.path) == Cost(30)


def test_cost_model_override() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    ab = graph.insert_edge(a, b, _w(2))

    result = search(graph, a, [b], cost_model=AdditiveCost(zero=5.0))
    assert result.path == [ab]
    assert result.cost == 7.0


@pytest.mark.parametrize("seed", range(20))
def test_random_graphs_match_reference(seed: int) -> None:
    graph = random_sample(26, 100, seed=seed)
    source, targets = 0, [23, 24, 25]
    reference = _reference_costs(graph, source)

    path = graph.best_path(source, targets)

    reachable = [target for target in targets if reference[target] < math.inf]
    if not reachable:
        assert path is None
        return
    assert path is not None
    best = min(reference[target] for target in reachable)
    chosen = graph.edge(path[-1]).to if path else source
    assert chosen in targets
    assert graph.is_valid_walk(path, source, chosen)
    assert graph.cost(path) == pytest.approx(best)
    assert reference[chosen] == pytest.approx(best)
    assert all(not graph.edge(edge_id).is_loop for edge_id in path)
    for edge_id, next_id in zip(path, path[1:]):
        assert graph.edge(edge_id).to == graph.edge(next_id).from_


@pytest.mark.parametrize("seed", range(10))
def test_early_exit_matches_full_search(seed: int) -> None:
    graph = random_sample(26, 60, seed=100 + seed)
    for source in (0, 5, 13):
        targets = [20, 3, 25, 11]
        assert graph.best_path(source, targets, early_exit=True) == graph.best_path(
            source, targets, early_exit=False
        )


@pytest.mark.parametrize("seed", range(5))
def test_parallel_relaxation_matches_sequential(monkeypatch, seed: int) -> None:
    monkeypatch.setattr(search_module.settings, "search_parallel_min_degree", 1)
    graph = random_sample(26, 200, seed=200 + seed)
    targets = [23, 24, 25]

    sequential = search(graph, 0, targets, workers=0)
    parallel = search(graph, 0, targets, workers=4)

    assert parallel.path == sequential.path
    assert parallel.cost == sequential.cost
    assert parallel.settled == sequential.settled


def test_settings_drive_defaults(monkeypatch) -> None:
    monkeypatch.setattr(search_module.settings, "search_early_exit", False)
    monkeypatch.setattr(search_module.settings, "search_parallel_workers", 2)
    monkeypatch.setattr(search_module.settings, "search_parallel_min_degree", 1)
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    graph.insert_edge(a, b, _w(1))
    ac = graph.insert_edge(a, c, _w(0.5))

    result = search(graph, a, [b, c])
    assert result.path == [ac]
    assert result.termination_reason == "queue_exhausted"


def test_reconstruction_without_incoming_edge_fails_loudly() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b = _letters(graph, "ab")
    graph.insert_edge(a, b, _w(1))

    with pytest.raises(PathReconstructionError):
        search_module._reconstruct(graph, [None, None], a, b)


def test_reconstruction_detects_cycles() -> None:
    graph: Graph[Letter, Weight] = Graph()
    a, b, c = _letters(graph, "abc")
    graph.insert_edge(a, b, _w(1))
    bc = graph.insert_edge(b, c, _w(1))
    cb = graph.insert_edge(c, b, _w(1))

    with pytest.raises(PathReconstructionError):
        search_module._reconstruct(graph, [None, cb, bc], a, c)
