from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from .samples import Letter, Weight
from .settings import settings
from .snapshot import GraphSnapshot

LetterGraphSnapshot = GraphSnapshot[Letter, Weight]


class BestPathRequest(BaseModel):
    graph: LetterGraphSnapshot
    source: int = Field(..., ge=0)
    targets: list[int] = Field(..., min_length=1)
    early_exit: bool | None = None

    @field_validator("targets")
    @classmethod
    def non_negative(cls, v: list[int]) -> list[int]:
        if any(target < 0 for target in v):
            raise ValueError("target ids must be >= 0")
        return v


class SearchStats(BaseModel):
    settled: int
    pushed: int
    stale: int
    termination_reason: str
    elapsed_ms: float


class BestPathResponse(BaseModel):
    reachable: bool
    path: list[int] | None = None
    target: int | None = None
    cost: float | None = None
    stats: SearchStats


class SampleRequest(BaseModel):
    node_count: int = Field(default_factory=lambda: settings.sample_node_count, ge=1, le=26)
    edge_count: int = Field(default_factory=lambda: settings.sample_edge_count, ge=0, le=100_000)
    seed: int | None = None
