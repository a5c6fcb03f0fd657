"""Tests for zenfocus/partition.py: ordered, densely indexed id sets."""

import pytest

from zenfocus.partition import OrderedPartitionSet, clamp


def test_clamp():
    assert clamp(-3, 0, 4) == 0
    assert clamp(9, 0, 4) == 4
    assert clamp(2, 0, 4) == 2


def test_init_preserves_order_and_is_dense():
    s = OrderedPartitionSet("today", ["a", "b", "c"])
    assert s.ids() == ("a", "b", "c")
    assert s.order_indices() == [0, 1, 2]
    assert s.is_dense()


def test_init_drops_duplicates_keeping_last_position():
    s = OrderedPartitionSet("today", ["a", "b", "a"])
    assert s.ids() == ("b", "a")


def test_append_existing_moves_to_end():
    s = OrderedPartitionSet("today", ["a", "b", "c"])
    s.append("a")
    assert s.ids() == ("b", "c", "a")
    assert s.is_dense()


@pytest.mark.parametrize(
    "index,expected_index,expected",
    [
        (0, 0, ("x", "a", "b")),
        (1, 1, ("a", "x", "b")),
        (2, 2, ("a", "b", "x")),
        (5, 2, ("a", "b", "x")),
        (-4, 0, ("x", "a", "b")),
    ],
)
def test_insert_clamps(index, expected_index, expected):
    s = OrderedPartitionSet("today", ["a", "b"])
    assert s.insert("x", index) == expected_index
    assert s.ids() == expected


def test_insert_into_empty_at_large_index():
    s = OrderedPartitionSet("today")
    assert s.insert("x", 5) == 0
    assert s.ids() == ("x",)


def test_insert_existing_member_repositions():
    s = OrderedPartitionSet("today", ["a", "b", "c"])
    s.insert("c", 0)
    assert s.ids() == ("c", "a", "b")
    assert len(s) == 3


def test_remove():
    s = OrderedPartitionSet("someday", ["a", "b", "c"])
    assert s.remove("b") is True
    assert s.ids() == ("a", "c")
    assert s.index_of("c") == 1
    assert s.remove("missing") is False


def test_move_to_front():
    s = OrderedPartitionSet("today", ["A", "B", "C"])
    assert s.move(2, 0) is True
    assert s.ids() == ("C", "A", "B")
    assert s.order_indices() == [0, 1, 2]


def test_move_clamps_both_indices():
    s = OrderedPartitionSet("today", ["A", "B", "C"])
    assert s.move(10, -10) is True
    assert s.ids() == ("C", "A", "B")


def test_move_same_index_is_noop():
    s = OrderedPartitionSet("today", ["A", "B", "C"])
    assert s.move(1, 1) is False
    assert s.move(7, 2) is False  # both clamp to 2
    assert s.ids() == ("A", "B", "C")


def test_move_on_empty_is_noop():
    s = OrderedPartitionSet("today")
    assert s.move(0, 3) is False
    assert len(s) == 0


def test_clear():
    s = OrderedPartitionSet("today", ["a", "b"])
    s.clear()
    assert len(s) == 0
    assert "a" not in s


def test_iteration_is_a_snapshot():
    s = OrderedPartitionSet("today", ["a", "b", "c"])
    seen = []
    for task_id in s:
        seen.append(task_id)
        s.remove(task_id)
    assert seen == ["a", "b", "c"]
    assert len(s) == 0


def test_density_holds_across_mixed_operations():
    s = OrderedPartitionSet("today")
    ops = [
        ("append", "a"), ("append", "b"), ("insert", "c", 1), ("move", 0, 2),
        ("remove", "b"), ("insert", "d", 99), ("append", "c"), ("move", 3, -1),
        ("remove", "zzz"), ("insert", "e", -5),
    ]
    for op in ops:
        getattr(s, op[0])(*op[1:])
        assert s.is_dense(), f"not dense after {op}"
        assert len(set(s.ids())) == len(s)
