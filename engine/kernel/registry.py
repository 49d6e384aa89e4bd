"""
Quipli Kernel: Item Arena

Content items live here as ItemRecords addressed by a stable integer
handle. Records are removed explicitly when their node is seen detached;
nothing relies on garbage collection to forget an item.
"""

from __future__ import annotations

import itertools
import logging

from engine.kernel.dom import Node
from engine.kernel.types import ItemRecord

logger = logging.getLogger(__name__)


class ItemRegistry:
    """Arena of item records plus the processed-set."""

    def __init__(self) -> None:
        self._records: dict[int, ItemRecord] = {}
        self._by_node: dict[Node, int] = {}
        self._processed: set[int] = set()
        self._handles = itertools.count(1)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records.values()))

    def register(self, node: Node) -> tuple[ItemRecord, bool]:
        """Return the record for ``node`` and whether it was created now."""
        handle = self._by_node.get(node)
        if handle is not None:
            return self._records[handle], False
        record = ItemRecord(handle=next(self._handles), node=node)
        self._records[record.handle] = record
        self._by_node[node] = record.handle
        return record, True

    def get(self, handle: int) -> ItemRecord | None:
        return self._records.get(handle)

    def lookup(self, node: Node) -> ItemRecord | None:
        handle = self._by_node.get(node)
        return self._records.get(handle) if handle is not None else None

    def mark_processed(self, handle: int) -> bool:
        """Add to the processed-set. False if it was already there."""
        if handle in self._processed:
            return False
        self._processed.add(handle)
        return True

    def is_processed(self, handle: int) -> bool:
        return handle in self._processed

    def is_attached(self, handle: int) -> bool:
        record = self._records.get(handle)
        return record is not None and record.attached

    def remove(self, handle: int) -> ItemRecord | None:
        record = self._records.pop(handle, None)
        if record is None:
            return None
        self._by_node.pop(record.node, None)
        self._processed.discard(handle)
        for timer in record.timers:
            timer.cancel()
        record.timers.clear()
        logger.debug("registry: removed item %d (%s)", handle, record.state.value)
        return record

    def sweep_detached(self) -> list[ItemRecord]:
        """Remove every record whose node is no longer in the tree."""
        removed = []
        for record in list(self._records.values()):
            if not record.attached:
                self.remove(record.handle)
                removed.append(record)
        return removed
