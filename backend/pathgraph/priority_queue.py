from __future__ import annotations

from typing import Generic, TypeVar

from .cost import check_comparable

CostT = TypeVar("CostT")


class Heap(Generic[CostT]):
    """Binary min-heap of ``(id, cost)`` pairs.

    Ids are not unique: the search queues a node again whenever it finds a
    cheaper way there and drops the older entries itself when they surface.
    """

    def __init__(self) -> None:
        self._items: list[tuple[int, CostT]] = []

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Heap(size={len(self._items)})"

    def is_empty(self) -> bool:
        return not self._items

    def peek(self) -> tuple[int, CostT] | None:
        return self._items[0] if self._items else None

    def insert(self, item_id: int, cost: CostT) -> None:
        check_comparable(cost)
        self._items.append((item_id, cost))
        self._promote(len(self._items) - 1)

    def extract_min(self) -> tuple[int, CostT] | None:
        items = self._items
        if not items:
            return None
        if len(items) == 1:
            return items.pop()
        root = items[0]
        items[0] = items.pop()
        self._demote(0)
        return root

    # move a cheaper child up towards the root
    def _promote(self, child: int) -> None:
        items = self._items
        while child > 0:
            parent = (child - 1) // 2
            if not items[child][1] < items[parent][1]:
                return
            items[child], items[parent] = items[parent], items[child]
            child = parent

    # move a more expensive parent down towards the leaves
    def _demote(self, parent: int) -> None:
        items = self._items
        size = len(items)
        while True:
            left = 2 * parent + 1
            right = left + 1
            if left >= size:
                return
            if right < size and items[right][1] < items[left][1] and items[parent][1] > items[right][1]:
                items[parent], items[right] = items[right], items[parent]
                parent = right
            elif items[parent][1] > items[left][1]:
                items[parent], items[left] = items[left], items[parent]
                parent = left
            else:
                return