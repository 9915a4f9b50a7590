"""Cost values and the cost models the search is generic over.

Two ways a caller can describe what a path costs:

* ``AdditiveCost``: edge property types implement ``EdgeCost`` and the path
  cost is the plain sum of edge costs, starting from the model's ``zero``.
* ``AdvanceCost``: node state types implement ``Advance`` and the cost of
  reaching a node is read off the state produced by advancing the previous
  node's state across an edge. ``advance`` must never produce a state that
  is cheaper than the one it started from; the search relies on this to
  finalise nodes and does not check it.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from .errors import IncomparableCostError

if TYPE_CHECKING:
    from .graph import EdgeId, Graph, NodeId

PropsT = TypeVar("PropsT", contravariant=True)


def _is_nan(value: Any) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    if isinstance(value, Cost):
        return _is_nan(value.value)
    return False


def check_comparable(value: Any) -> Any:
    if _is_nan(value):
        raise IncomparableCostError(f"cost {value!r} is not comparable")
    return value


@dataclass(frozen=True, eq=False)
class Cost:
    """Totally ordered wrapper around a numeric cost.

    Ordering a NaN-valued ``Cost`` raises ``IncomparableCostError`` instead of
    quietly treating it as equal to everything.
    """

    value: Any

    @classmethod
    def zero(cls) -> Cost:
        return cls(0)

    def _operand(self, other: object) -> Any:
        if isinstance(other, Cost):
            return other.value
        if isinstance(other, (int, float, Decimal)) and not isinstance(other, bool):
            return other
        return NotImplemented

    def _ordered(self, other: object) -> tuple[Any, Any] | None:
        rhs = self._operand(other)
        if rhs is NotImplemented:
            return None
        if _is_nan(self.value) or _is_nan(rhs):
            raise IncomparableCostError(f"cannot order {self!r} against {other!r}")
        return self.value, rhs

    def __lt__(self, other: object) -> bool:
        pair = self._ordered(other)
        return NotImplemented if pair is None else pair[0] < pair[1]

    def __le__(self, other: object) -> bool:
        pair = self._ordered(other)
        return NotImplemented if pair is None else pair[0] <= pair[1]

    def __gt__(self, other: object) -> bool:
        pair = self._ordered(other)
        return NotImplemented if pair is None else pair[0] > pair[1]

    def __ge__(self, other: object) -> bool:
        pair = self._ordered(other)
        return NotImplemented if pair is None else pair[0] >= pair[1]

    def __eq__(self, other: object) -> bool:
        rhs = self._operand(other)
        if rhs is NotImplemented:
            return NotImplemented
        return self.value == rhs

    def __hash__(self) -> int:
        return hash(self.value)

    def __add__(self, other: object) -> Cost:
        rhs = self._operand(other)
        if rhs is NotImplemented:
            return NotImplemented
        return Cost(self.value + rhs)

    def __radd__(self, other: object) -> Cost:
        # sum() starts from the int 0
        return self.__add__(other)

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return str(self.value)


@runtime_checkable
class EdgeCost(Protocol):
    def cost(self) -> Any: ...


@runtime_checkable
class Advance(Protocol[PropsT]):
    def advance(self, edge_props: PropsT) -> Any: ...

    def update(self, node_state: Any) -> None: ...

    def cost(self) -> Any | None: ...


class CostModel(ABC):
    """How the search seeds, relaxes and commits costs."""

    is_stateful: bool = False

    def __init__(self, zero: Any = 0.0) -> None:
        self.zero = zero

    @abstractmethod
    def seed(self, graph: Graph[Any, Any], source: NodeId) -> Any:
        """Cost the source is queued with."""

    @abstractmethod
    def relax(
        self,
        graph: Graph[Any, Any],
        from_id: NodeId,
        from_cost: Any,
        edge_id: EdgeId,
    ) -> tuple[Any, Any] | None:
        """Return ``(candidate_cost, candidate_payload)`` for crossing ``edge_id``, or None if it cannot be crossed.

        Must not mutate anything: it may run on worker threads.
        """

    def commit(self, graph: Graph[Any, Any], node_id: NodeId, candidate: Any) -> None:
        """Fold the winning candidate of a settled node back into the graph."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(zero={self.zero!r})"


class AdditiveCost(CostModel):
    def seed(self, graph: Graph[Any, Any], source: NodeId) -> Any:
        return self.zero

    def relax(
        self,
        graph: Graph[Any, Any],
        from_id: NodeId,
        from_cost: Any,
        edge_id: EdgeId,
    ) -> tuple[Any, Any] | None:
        return from_cost + graph.props(edge_id).cost(), None


class AdvanceCost(CostModel):
    """Cost model over ``Advance`` node states.

    Winning candidates are committed with ``update`` when their node is
    settled, so after a search every settled node holds its cheapest state.
    The source keeps whatever state it holds when the search starts.

    Committed states stay in the graph: a later search from a node settled
    by an earlier one starts from that node's committed cost, not from zero.
    Rebuild the graph (or reset its states) to search afresh.
    """

    is_stateful = True

    def seed(self, graph: Graph[Any, Any], source: NodeId) -> Any:
        seeded = graph.state(source).cost()
        return self.zero if seeded is None else seeded

    def relax(
        self,
        graph: Graph[Any, Any],
        from_id: NodeId,
        from_cost: Any,
        edge_id: EdgeId,
    ) -> tuple[Any, Any] | None:
        candidate = graph.state(from_id).advance(graph.props(edge_id))
        candidate_cost = candidate.cost()
        if candidate_cost is None:
            return None
        return candidate_cost, candidate

    def commit(self, graph: Graph[Any, Any], node_id: NodeId, candidate: Any) -> None:
        if candidate is not None:
            graph.state(node_id).update(candidate)
