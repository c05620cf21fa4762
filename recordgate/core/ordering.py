"""Ordering Planner — pure computations behind reorder() and get_next_order().

Invariants:
    - plan_compaction() assigns 1..N to rows with non-negative ordering, stable on ties
    - Only rows whose position actually changes appear in the plan (write minimization)
    - Rows with negative ordering are never renumbered

Design Decisions:
    - Sorting done here with sorted() even though SQL already orders: SQL ORDER BY is
      not stable, Python's sort is, so ties keep result order
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from recordgate.core.domain_types import ORDERING_COLUMN


@dataclass(frozen=True)
class OrderingUpdate:
    """One planned write: the row's key and its new ordering value."""
    key: dict
    old: int
    new: int


def plan_compaction(
    rows: Sequence[Mapping[str, Any]], keys: Sequence[str],
) -> list[OrderingUpdate]:
    """Compute the writes that make orderings contiguous from 1."""
    candidates = [r for r in rows if int(r[ORDERING_COLUMN]) >= 0]
    ranked = sorted(candidates, key=lambda r: int(r[ORDERING_COLUMN]))
    updates = []
    for position, row in enumerate(ranked, start=1):
        current = int(row[ORDERING_COLUMN])
        if current != position:
            updates.append(OrderingUpdate(
                key={k: row[k] for k in keys}, old=current, new=position,
            ))
    return updates


def next_order(max_ordering: Any) -> int:
    """MAX(ordering) + 1, treating an empty partition as 0."""
    return int(max_ordering or 0) + 1
