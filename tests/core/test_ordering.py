"""Ordering Planner — tests for compaction plans and next-order arithmetic."""

import pytest

from recordgate.core.ordering import next_order, plan_compaction


def _rows(orderings):
    return [{"id": i + 1, "ordering": o} for i, o in enumerate(orderings)]


def _apply(rows, updates):
    final = {r["id"]: r["ordering"] for r in rows}
    for u in updates:
        final[u.key["id"]] = u.new
    return final


def test_ties_keep_result_order():
    rows = _rows([5, 1, 1, 4])
    final = _apply(rows, plan_compaction(rows, ["id"]))
    assert final == {1: 4, 2: 1, 3: 2, 4: 3}


def test_only_changed_rows_are_planned():
    rows = _rows([5, 1, 1, 4])
    updates = plan_compaction(rows, ["id"])
    assert [(u.key["id"], u.old, u.new) for u in updates] == [
        (3, 1, 2), (4, 4, 3), (1, 5, 4),
    ]


def test_contiguous_partition_needs_no_writes():
    assert plan_compaction(_rows([1, 2, 3]), ["id"]) == []


def test_negative_orderings_are_left_alone():
    rows = _rows([-1, 3, 7])
    updates = plan_compaction(rows, ["id"])
    assert _apply(rows, updates) == {1: -1, 2: 1, 3: 2}


@pytest.mark.parametrize("orderings", [
    [0, 0, 0],
    [10, 20, 30, 40],
    [3, 3, 1, 2, 2],
    [9],
])
def test_result_is_contiguous_from_one(orderings):
    rows = _rows(orderings)
    final = _apply(rows, plan_compaction(rows, ["id"]))
    assert sorted(final.values()) == list(range(1, len(orderings) + 1))


def test_composite_keys_are_carried_into_plan():
    rows = [{"a": 1, "b": 2, "ordering": 4}]
    (update,) = plan_compaction(rows, ["a", "b"])
    assert update.key == {"a": 1, "b": 2}


def test_next_order():
    assert next_order(None) == 1
    assert next_order(0) == 1
    assert next_order(7) == 8
