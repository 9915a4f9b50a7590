from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .cost import CostModel, check_comparable
from .errors import PathReconstructionError
from .logging_utils import log_event
from .priority_queue import Heap
from .settings import settings

if TYPE_CHECKING:
    from .graph import EdgeId, Graph, NodeId


@dataclass(frozen=True)
class SearchResult:
    path: list[EdgeId] | None
    target: NodeId | None
    cost: Any
    settled: int
    pushed: int
    stale: int
    termination_reason: str
    elapsed_ms: float

    @property
    def reachable(self) -> bool:
        return self.path is not None


def _relax_edges(
    graph: Graph[Any, Any],
    model: CostModel,
    from_id: NodeId,
    from_cost: Any,
    edge_ids: list[EdgeId],
    executor: ThreadPoolExecutor | None,
) -> list[tuple[Any, Any] | None]:
    if executor is None or len(edge_ids) < max(1, int(settings.search_parallel_min_degree)):
        return [model.relax(graph, from_id, from_cost, edge_id) for edge_id in edge_ids]
    # map() keeps edge order, so folding the results is deterministic.
    return list(executor.map(lambda edge_id: model.relax(graph, from_id, from_cost, edge_id), edge_ids))


def _reconstruct(
    graph: Graph[Any, Any],
    best_incoming: list[EdgeId | None],
    source: NodeId,
    target: NodeId,
) -> list[EdgeId]:
    path: list[EdgeId] = []
    node_id = target
    limit = graph.num_nodes()
    while node_id != source:
        edge_id = best_incoming[node_id]
        if edge_id is None:
            raise PathReconstructionError(f"node {node_id} was reached but has no incoming edge recorded")
        path.append(edge_id)
        if len(path) > limit:
            raise PathReconstructionError(f"incoming edges from node {target} never lead back to {source}")
        node_id = graph.edge(edge_id).from_
    path.reverse()
    return path


def search(
    graph: Graph[Any, Any],
    source: NodeId,
    targets: Sequence[NodeId],
    *,
    cost_model: CostModel | None = None,
    workers: int | None = None,
    early_exit: bool | None = None,
) -> SearchResult:
    """Cheapest path from ``source`` to whichever of ``targets`` is cheapest to reach.

    Dijkstra with lazy decrease-key: a node is queued again every time a
    cheaper way to it turns up, and entries for nodes that are already
    settled are skipped when they surface. Edge costs must be non-negative.

    With ``early_exit`` the loop stops after the first target is settled and
    every other entry at that same cost has been settled too, so ties are
    still resolved by ``targets`` order. ``workers`` > 0 computes the
    relaxation candidates of each settled node on a thread pool; only this
    loop ever writes the queue and the bookkeeping tables.
    """
    started = time.monotonic()
    model = cost_model if cost_model is not None else graph.cost_model
    targets = list(targets)
    graph.node(source)
    for target in targets:
        graph.node(target)
    use_early_exit = settings.search_early_exit if early_exit is None else bool(early_exit)
    worker_count = settings.search_parallel_workers if workers is None else max(0, int(workers))

    source_cost = check_comparable(model.seed(graph, source))
    if source in targets:
        return _finish(
            graph,
            source=source,
            targets=targets,
            started=started,
            path=[],
            target=source,
            cost=source_cost,
            settled=0,
            pushed=0,
            stale=0,
            reason="source_is_target",
        )

    size = graph.num_nodes()
    target_set = set(targets)
    best_cost: list[Any] = [None] * size
    best_incoming: list[EdgeId | None] = [None] * size
    best_candidate: list[Any] = [None] * size
    is_closed = [False] * size

    best_cost[source] = source_cost
    queue: Heap[Any] = Heap()
    queue.insert(source, source_cost)
    pushed = 1
    settled = 0
    stale = 0
    stop_cost: Any = None
    reason = "queue_exhausted"

    executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="relax") if worker_count > 0 else None
    try:
        while (entry := queue.extract_min()) is not None:
            from_id, from_cost = entry
            if stop_cost is not None and from_cost > stop_cost:
                reason = "targets_settled"
                break
            if is_closed[from_id]:
                stale += 1
                continue
            is_closed[from_id] = True
            settled += 1
            if model.is_stateful and from_id != source:
                model.commit(graph, from_id, best_candidate[from_id])
                best_candidate[from_id] = None
            if use_early_exit and stop_cost is None and from_id in target_set:
                stop_cost = from_cost

            relaxable: list[EdgeId] = []
            for edge_id in graph.node(from_id).outgoing:
                edge = graph.edge(edge_id)
                if edge.to == from_id or is_closed[edge.to]:
                    continue
                relaxable.append(edge_id)
            if not relaxable:
                continue

            relaxed = _relax_edges(graph, model, from_id, from_cost, relaxable, executor)
            for edge_id, outcome in zip(relaxable, relaxed):
                if outcome is None:
                    continue
                to_cost, candidate = outcome
                check_comparable(to_cost)
                to = graph.edge(edge_id).to
                known = best_cost[to]
                if known is None or to_cost < known:
                    best_cost[to] = to_cost
                    best_incoming[to] = edge_id
                    best_candidate[to] = candidate
                    # older entries for `to` stay queued and are skipped once `to` is settled
                    queue.insert(to, to_cost)
                    pushed += 1
    finally:
        if executor is not None:
            executor.shutdown(wait=True)

    chosen: NodeId | None = None
    chosen_cost: Any = None
    for target in targets:
        target_cost = best_cost[target]
        if target_cost is None:
            continue
        if chosen is None or target_cost < chosen_cost:
            chosen, chosen_cost = target, target_cost

    path = None if chosen is None else _reconstruct(graph, best_incoming, source, chosen)
    return _finish(
        graph,
        source=source,
        targets=targets,
        started=started,
        path=path,
        target=chosen,
        cost=chosen_cost,
        settled=settled,
        pushed=pushed,
        stale=stale,
        reason=reason,
    )


def _finish(
    graph: Graph[Any, Any],
    *,
    source: NodeId,
    targets: list[NodeId],
    started: float,
    path: list[EdgeId] | None,
    target: NodeId | None,
    cost: Any,
    settled: int,
    pushed: int,
    stale: int,
    reason: str,
) -> SearchResult:
    elapsed_ms = round(max(0.0, (time.monotonic() - started) * 1000.0), 3)
    log_event(
        "best_path_search",
        level=logging.DEBUG,
        source=source,
        target_count=len(targets),
        node_count=graph.num_nodes(),
        edge_count=graph.num_edges(),
        reachable=path is not None,
        chosen_target=target,
        path_edges=None if path is None else len(path),
        settled=settled,
        pushed=pushed,
        stale=stale,
        termination_reason=reason,
        elapsed_ms=elapsed_ms,
    )
    return SearchResult(
        path=path,
        target=target,
        cost=cost,
        settled=settled,
        pushed=pushed,
        stale=stale,
        termination_reason=reason,
        elapsed_ms=elapsed_ms,
    )


def best_path(
    graph: Graph[Any, Any],
    source: NodeId,
    targets: Sequence[NodeId],
    *,
    cost_model: CostModel | None = None,
    workers: int | None = None,
    early_exit: bool | None = None,
) -> list[EdgeId] | None:
    return search(
        graph,
        source,
        targets,
        cost_model=cost_model,
        workers=workers,
        early_exit=early_exit,
    ).path
