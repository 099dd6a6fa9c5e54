import math

import pytest

from lunarkit.api import LuaError
from lunarkit.table import LuaTable


def test_missing_key_is_nil():
    t = LuaTable()
    assert t.get("absent") is None
    assert t.get(None) is None


def test_set_and_get_round_trip_mixed_keys():
    t = LuaTable()
    obj = object()
    keys = ["a", "b", 1, 2, 3.5, -7, True, False, obj, b"raw"]
    for idx, key in enumerate(keys):
        t.set(key, idx)
    for idx, key in enumerate(keys):
        assert t.get(key) == idx


def test_sequential_integer_keys_go_to_array_part():
    t = LuaTable()
    for i in range(1, 5):
        t.set(i, i * 10)
    assert t.array_size() == 4
    assert t.hash_size() == 0
    assert t.length() == 4


def test_float_integral_key_equals_int_key():
    t = LuaTable()
    t.set(1.0, "one")
    assert t.get(1) == "one"
    assert t.next(None) == (1, "one")


def test_bool_key_distinct_from_number():
    t = LuaTable()
    t.set(True, "yes")
    t.set(1, "one")
    assert t.get(True) == "yes"
    assert t.get(1) == "one"


def test_nil_key_raises():
    t = LuaTable()
    with pytest.raises(LuaError, match="table index is nil"):
        t.set(None, 1)


def test_nan_key_raises():
    t = LuaTable()
    with pytest.raises(LuaError, match="table index is NaN"):
        t.set(math.nan, 1)


def test_overwrite_and_erase():
    t = LuaTable()
    t.set("k", 1)
    t.set("k", 2)
    assert t.get("k") == 2
    t.set("k", None)
    assert t.get("k") is None
    assert "k" not in dict(t.items())


def test_false_value_is_kept():
    t = LuaTable()
    t.set("flag", False)
    assert t.get("flag") is False
    assert dict(t.items()) == {"flag": False}


def test_traversal_visits_every_pair_once():
    t = LuaTable()
    expected = {}
    for i in range(1, 40):
        t.set(i, i)
        expected[i] = i
        t.set(f"s{i}", -i)
        expected[f"s{i}"] = -i
    seen = list(t.items())
    assert len(seen) == len(expected)
    assert dict(seen) == expected


def test_next_on_empty_table_ends():
    t = LuaTable()
    assert t.next(None) is None


def test_next_with_unknown_key_raises():
    t = LuaTable()
    t.set("a", 1)
    with pytest.raises(LuaError, match="invalid key to 'next'"):
        t.next("zzz")


def test_hash_size_is_power_of_two_and_keys_survive_growth():
    t = LuaTable()
    for i in range(100):
        t.set(f"key{i}", i)
    size = t.hash_size()
    assert size >= 100
    assert size & (size - 1) == 0
    assert all(t.get(f"key{i}") == i for i in range(100))


def test_length_is_a_border_with_holes():
    t = LuaTable()
    for i in range(1, 11):
        t.set(i, i)
    t.set(5, None)
    n = t.length()
    assert n in (4, 10)
    assert t.get(n) == n
    assert t.get(n + 1) is None


def test_length_of_empty_table():
    t = LuaTable()
    assert t.length() == 0


def test_length_searches_hash_part():
    t = LuaTable()
    t.resize(0, 8)
    for i in range(1, 4):
        t.set(i, "x")
    assert t.array_size() == 0
    assert t.length() == 3


def test_resize_rounds_hash_to_power_of_two():
    t = LuaTable()
    t.resize(8, 3)
    assert t.array_size() == 8
    assert t.hash_size() == 4


def test_resize_shrinking_array_keeps_values():
    t = LuaTable()
    for i in range(1, 9):
        t.set(i, str(i))
    t.set("name", "n")
    t.resize(2, 8)
    assert t.array_size() == 2
    assert all(t.get(i) == str(i) for i in range(1, 9))
    assert t.get("name") == "n"


def test_resize_negative_raises():
    t = LuaTable()
    with pytest.raises(ValueError):
        t.resize(-1, 0)


def test_resize_too_large_hash_overflows():
    t = LuaTable()
    with pytest.raises(LuaError, match="table overflow"):
        t.resize(0, 2**31)


def test_reinsert_after_many_deletions():
    t = LuaTable()
    for i in range(50):
        t.set(f"k{i}", i)
    for i in range(50):
        t.set(f"k{i}", None)
    for i in range(50, 100):
        t.set(f"k{i}", i)
    assert dict(t.items()) == {f"k{i}": i for i in range(50, 100)}


def test_fresh_table_flags_and_set_invalidates():
    t = LuaTable()
    assert t.flags == 0xFF
    t.set("x", 1)
    assert t.flags == 0