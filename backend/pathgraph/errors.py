from __future__ import annotations

from dataclasses import dataclass
from typing import Any

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "snapshot_malformed_json",
        "snapshot_schema_invalid",
        "snapshot_length_mismatch",
        "snapshot_ids_not_dense",
        "snapshot_endpoint_out_of_range",
        "snapshot_adjacency_mismatch",
        "snapshot_too_large",
        "snapshot_unreadable",
    }
)


class GraphError(Exception):
    """Base class for every error raised by pathgraph."""


class InvalidIdError(GraphError, IndexError):
    """A node or edge id outside the graph was used. Caller bug, not a runtime condition."""

    def __init__(self, kind: str, value: object, size: int) -> None:
        self.kind = kind
        self.value = value
        self.size = size
        super().__init__(f"invalid {kind} id {value!r} (graph holds {size} {kind}s)")


class IncomparableCostError(GraphError, ArithmeticError):
    pass


class PathReconstructionError(GraphError, RuntimeError):
    pass


@dataclass
class SnapshotDecodeError(GraphError, ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


def normalize_reason_code(reason_code: str, *, default: str = "snapshot_schema_invalid") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default
