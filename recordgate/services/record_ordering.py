"""Ordering Engine — next position, compaction and relative moves inside a partition.

Invariants:
    - Every operation raises UnsupportedOperationError on tables without an ordering column
    - reorder() only writes rows whose position changes
    - move(0) issues no query; a move with no neighbor re-writes the row's own ordering
    - move() swaps exactly two ordering values when a neighbor exists

Design Decisions:
    - The plan (which rows get which position) is computed in core/ordering.py;
      this module only selects rows and issues the updates
"""

import logging
from typing import Any

from sqlalchemy import func, select

from recordgate.core.domain_types import ORDERING_COLUMN
from recordgate.core.errors import UnsupportedOperationError
from recordgate.core.ordering import next_order, plan_compaction
from recordgate.core.primary_keys import key_matches
from recordgate.services.record_base import Filter, RecordBase

logger = logging.getLogger(__name__)


class OrderingMixin(RecordBase):
    """Positional ordering maintenance."""

    def _require_ordering(self, operation: str) -> None:
        if not self._descriptor.has_ordering_column:
            raise UnsupportedOperationError(
                self.get_table_name(), operation, ORDERING_COLUMN,
            )

    def _set_ordering(self, pk: dict, value: int) -> None:
        self._driver.execute(
            self._table.update()
            .where(*self._key_clause(pk))
            .values({ORDERING_COLUMN: int(value)})
        )

    def get_next_order(self, where: Filter = None) -> int:
        """MAX(ordering) + 1 within the partition; places a new row last."""
        self._require_ordering("get_next_order")
        ordering = self._table.c[ORDERING_COLUMN]
        stmt = (
            select(func.max(ordering))
            .select_from(self._table)
            .where(*self._filter_clause(where))
        )
        return next_order(self._driver.load_scalar(stmt))

    def reorder(self, where: Filter = None) -> bool:
        """Compact orderings in the partition to 1..N."""
        self._require_ordering("reorder")
        keys = self._descriptor.keys
        ordering = self._table.c[ORDERING_COLUMN]
        stmt = (
            select(*(self._table.c[k] for k in keys), ordering)
            .where(ordering >= 0)
            .where(*self._filter_clause(where))
            .order_by(ordering)
        )
        rows = self._driver.load_rows(stmt)
        updates = plan_compaction(rows, keys)
        for planned in updates:
            self._set_ordering(planned.key, planned.new)
            if key_matches(keys, self._fields, planned.key):
                self._fields[ORDERING_COLUMN] = planned.new

        logger.debug(
            f"Reordered {self.get_table_name()}: {len(updates)} of {len(rows)} rows moved",
            extra={"table_name": self.get_table_name(), "operation": "reorder"},
        )
        return True

    def move(self, delta: int, where: Filter = None) -> bool:
        """Swap places with the nearest row above (delta < 0) or below (delta > 0)."""
        self._require_ordering("move")
        if not delta:
            return True

        keys = self._descriptor.keys
        ordering = self._table.c[ORDERING_COLUMN]
        current = int(self._fields.get(ORDERING_COLUMN) or 0)

        stmt = select(*(self._table.c[k] for k in keys), ordering)
        if delta < 0:
            stmt = stmt.where(ordering < current).order_by(ordering.desc())
        else:
            stmt = stmt.where(ordering > current).order_by(ordering.asc())
        stmt = stmt.where(*self._filter_clause(where)).limit(1)

        neighbor: dict[str, Any] | None = self._driver.load_single_row(stmt)
        own_key = self._current_key()
        if neighbor:
            self._set_ordering(own_key, neighbor[ORDERING_COLUMN])
            self._set_ordering({k: neighbor[k] for k in keys}, current)
            self._fields[ORDERING_COLUMN] = int(neighbor[ORDERING_COLUMN])
        else:
            self._set_ordering(own_key, current)
        return True
