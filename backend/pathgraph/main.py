from __future__ import annotations

import time
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException

from .errors import InvalidIdError, SnapshotDecodeError
from .logging_utils import log_event
from .models import BestPathRequest, BestPathResponse, SampleRequest, SearchStats
from .samples import random_sample
from .search import search
from .settings import settings
from .snapshot import from_snapshot, to_snapshot

app = FastAPI(title="pathgraph", version="0.1.0")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# Plain def: searches are CPU bound, so FastAPI runs them in its worker threadpool.
@app.post("/paths/best", response_model=BestPathResponse)
def compute_best_path(req: BestPathRequest) -> BestPathResponse:
    request_id = str(uuid.uuid4())
    t0 = time.perf_counter()

    if len(req.targets) > settings.api_max_targets:
        raise HTTPException(
            status_code=422,
            detail=f"at most {settings.api_max_targets} targets per request",
        )
    try:
        graph = from_snapshot(req.graph)
    except SnapshotDecodeError as e:
        raise HTTPException(
            status_code=400,
            detail={"reason_code": e.reason_code, "message": e.message},
        ) from e
    try:
        result = search(graph, req.source, req.targets, early_exit=req.early_exit)
    except InvalidIdError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    cost = None if result.path is None else float(graph.cost(result.path))
    log_event(
        "best_path_request",
        request_id=request_id,
        source=req.source,
        target_count=len(req.targets),
        node_count=graph.num_nodes(),
        edge_count=graph.num_edges(),
        reachable=result.reachable,
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    return BestPathResponse(
        reachable=result.reachable,
        path=result.path,
        target=result.target,
        cost=cost,
        stats=SearchStats(
            settled=result.settled,
            pushed=result.pushed,
            stale=result.stale,
            termination_reason=result.termination_reason,
            elapsed_ms=result.elapsed_ms,
        ),
    )


@app.post("/samples/random")
def sample_graph(req: SampleRequest) -> dict[str, Any]:
    graph = random_sample(req.node_count, req.edge_count, seed=req.seed)
    return to_snapshot(graph).model_dump(by_alias=True, mode="json")
