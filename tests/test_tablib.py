import random

import pytest

from lunarkit.api import LuaError
from lunarkit.table import LuaTable
from lunarkit.tablib import concat, insert, pack, remove, sort, unpack


def make(values):
    t = LuaTable()
    for k, v in enumerate(values, start=1):
        t.set(k, v)
    return t


def contents(t):
    return [t.get(k) for k in range(1, t.length() + 1)]


def test_insert_appends():
    t = make(["a", "b"])
    insert(t, "c")
    assert contents(t) == ["a", "b", "c"]


def test_insert_at_position_shifts():
    t = make(["a", "b", "c"])
    insert(t, 1, "z")
    assert contents(t) == ["z", "a", "b", "c"]


def test_insert_wrong_arguments():
    with pytest.raises(LuaError, match="wrong number of arguments to 'insert'"):
        insert(make([]), 1, 2, 3)


def test_insert_requires_table():
    with pytest.raises(LuaError, match="table expected"):
        insert([1, 2], 3)


def test_remove_last_by_default():
    t = make(["a", "b", "c"])
    assert remove(t) == "c"
    assert contents(t) == ["a", "b"]


def test_remove_middle_shifts_down():
    t = make(["a", "b", "c"])
    assert remove(t, 1) == "a"
    assert contents(t) == ["b", "c"]


def test_remove_out_of_range():
    t = make(["a"])
    assert remove(t, 5) is None
    assert contents(t) == ["a"]


def test_concat_matches_join():
    items = ["x", "y", "z"]
    assert concat(make(items), ", ") == ", ".join(items)


def test_concat_range_and_numbers():
    t = make(["a", 2, "c", "d"])
    assert concat(t, "-", 2, 3) == "2-c"


def test_concat_empty_range():
    assert concat(make(["a"]), ",", 3, 2) == ""


def test_concat_invalid_value():
    t = make(["a", True])
    with pytest.raises(LuaError, match=r"invalid value \(boolean\) at index 2"):
        concat(t)


def test_pack_and_unpack_round_trip():
    args = ("p", 4, None, "q")
    t = pack(*args)
    assert t.get("n") == len(args)
    assert unpack(t, 1, t.get("n")) == args


def test_unpack_default_and_empty():
    t = make([1, 2, 3])
    assert unpack(t) == (1, 2, 3)
    assert unpack(t, 3, 1) == ()


def test_sort_numbers_matches_sorted():
    rng = random.Random(7)
    values = [rng.randint(-500, 500) for _ in range(200)]
    t = make(values)
    sort(t)
    assert contents(t) == sorted(values)


def test_sort_with_comparator_descending():
    values = ["pear", "apple", "fig", "kiwi", "banana"]
    t = make(values)
    sort(t, lambda a, b: a > b)
    assert contents(t) == sorted(values, reverse=True)


def test_sort_mixed_types_fails():
    with pytest.raises(LuaError, match="attempt to compare"):
        sort(make([1, "a", 2]))


def test_sort_invalid_order_function():
    with pytest.raises(LuaError, match="invalid order function for sorting"):
        sort(make([5, 4, 3, 2, 1, 0]), lambda a, b: True)


def test_sort_rejects_non_function():
    with pytest.raises(LuaError, match="function expected"):
        sort(make([2, 1]), 5)