"""
rowflow Arena - Index-Based SuperGroup Storage
==============================================

Bookkeeping for every materialized group lives in parallel numpy columns
instead of on the SuperGroup objects themselves:

- ``parents``: handle of the parent record, -1 for the virtual root
- ``depths``:  root = -1, otherwise parent depth + 1
- ``sizes``:   flat slots occupied by all materialized descendants
- ``indices``: flat-list position of the group's own slot, -1 if unknown

A SuperGroup refers to its parent by handle (a row number), never by object
reference, so the tree has a single ownership direction: view -> arena ->
records. Handles are recycled through a free list; the columns double when
they run out of rows.

Size bubbling walks the parent handles once to collect the ancestor chain and
then updates every ancestor in a single fancy-indexed add.
"""

from typing import Any, List, Optional

import numpy as np

from .errors import ArenaExhaustedError, InvariantViolation

NO_PARENT = -1


class SuperGroupArena:
    """
    Arena of SuperGroup records addressed by integer handle.

    Args:
        capacity: Initial number of rows
        max_records: Hard limit on live records, ``None`` for unlimited
    """

    def __init__(self, capacity: int = 64, max_records: Optional[int] = None):
        self.capacity = capacity
        self.max_records = max_records
        self.count = 0  # rows ever handed out (high-water mark)
        self.live = 0

        self.parents = np.full(capacity, NO_PARENT, dtype=np.int64)
        self.depths = np.zeros(capacity, dtype=np.int64)
        self.sizes = np.zeros(capacity, dtype=np.int64)
        self.indices = np.full(capacity, -1, dtype=np.int64)
        self.records: List[Any] = [None] * capacity

        self.free_list: List[int] = []

    def allocate(self, record: Any, parent: int = NO_PARENT) -> int:
        """
        Reserve a row for ``record`` under ``parent`` and return its handle.

        Raises:
            ArenaExhaustedError: If ``max_records`` records are already live
        """
        if self.max_records is not None and self.live >= self.max_records:
            raise ArenaExhaustedError(
                f"SuperGroup arena limit of {self.max_records} groups reached"
            )

        if self.free_list:
            handle = self.free_list.pop()
        else:
            if self.count >= self.capacity:
                self._grow()
            handle = self.count
            self.count += 1

        self.parents[handle] = parent
        self.depths[handle] = -1 if parent == NO_PARENT else self.depths[parent] + 1
        self.sizes[handle] = 0
        self.indices[handle] = -1
        self.records[handle] = record
        self.live += 1

        return handle

    def free(self, handle: int) -> None:
        """Release a row for reuse."""
        if self.records[handle] is None:
            raise InvariantViolation(f"SuperGroup handle {handle} freed twice")

        self.records[handle] = None
        self.parents[handle] = NO_PARENT
        self.sizes[handle] = 0
        self.indices[handle] = -1
        self.free_list.append(handle)
        self.live -= 1

    def _grow(self) -> None:
        new_capacity = self.capacity * 2
        extra = new_capacity - self.capacity

        self.parents = np.concatenate(
            [self.parents, np.full(extra, NO_PARENT, dtype=np.int64)]
        )
        self.depths = np.concatenate([self.depths, np.zeros(extra, dtype=np.int64)])
        self.sizes = np.concatenate([self.sizes, np.zeros(extra, dtype=np.int64)])
        self.indices = np.concatenate(
            [self.indices, np.full(extra, -1, dtype=np.int64)]
        )
        self.records.extend([None] * extra)
        self.capacity = new_capacity

    def record(self, handle: int) -> Any:
        if handle == NO_PARENT:
            return None
        return self.records[handle]

    def ancestors(self, handle: int) -> List[int]:
        """Handles from ``handle`` up to and including the root."""
        chain = []
        parents = self.parents
        while handle != NO_PARENT:
            chain.append(handle)
            handle = int(parents[handle])
        return chain

    def bubble_size(self, handle: int, diff: int) -> None:
        """Add ``diff`` to the size of ``handle`` and of all its ancestors."""
        self.sizes[self.ancestors(handle)] += diff

    def sum_sizes(self, handles: List[int]) -> int:
        if not handles:
            return 0
        return int(self.sizes[handles].sum())

    def __len__(self) -> int:
        return self.live

    def __repr__(self) -> str:
        return f"SuperGroupArena(live={self.live}, capacity={self.capacity})"
