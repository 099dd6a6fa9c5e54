import pytest

from lunarkit.api import LuaType
from lunarkit.table import LuaTable
from lunarkit.tagmethods import (
    TM_N,
    TYPENAMES,
    TagMethod,
    get_tag_method,
    tag_method_of,
    type_name,
)

EVENT_NAMES = [
    "__index", "__newindex",
    "__gc", "__mode", "__len", "__eq",
    "__add", "__sub", "__mul", "__div", "__mod",
    "__pow", "__unm", "__lt", "__le",
    "__concat", "__call",
]


def test_event_names_in_order():
    mt = LuaTable()
    for pos, name in enumerate(EVENT_NAMES):
        mt.set(name, pos)
    found = [get_tag_method(mt, tm) for tm in TagMethod]
    assert found == list(range(len(EVENT_NAMES)))
    assert TM_N == len(EVENT_NAMES)


def test_fast_events_end_at_eq():
    mt = LuaTable()
    mt.set("other", 1)
    mt.flags = 0
    for tm in TagMethod:
        assert get_tag_method(mt, tm) is None
    cached = [tm for tm in TagMethod if mt.flags & (1 << tm)]
    assert cached[-1] is TagMethod.EQ
    assert cached == [tm for tm in TagMethod if tm <= TagMethod.EQ]


def test_typenames_indexed_by_tag():
    assert type_name(None) == TYPENAMES[LuaType.NIL + 1]
    assert type_name("s") == TYPENAMES[LuaType.STRING + 1]
    assert TYPENAMES[LuaType.NONE + 1] == "no value"


def test_get_tag_method_without_metatable():
    assert get_tag_method(None, TagMethod.INDEX) is None


def test_get_tag_method_finds_handler():
    def handler(*args):
        return args

    mt = LuaTable()
    mt.set("__index", handler)
    assert get_tag_method(mt, TagMethod.INDEX) is handler


def test_absent_fast_event_is_cached_then_invalidated():
    def length_handler(*args):
        return 0

    mt = LuaTable()
    mt.set("__index", "x")
    assert get_tag_method(mt, TagMethod.LEN) is None
    assert mt.flags & (1 << TagMethod.LEN)
    mt.set("__len", length_handler)
    assert get_tag_method(mt, TagMethod.LEN) is length_handler


def test_absent_slow_event_is_not_cached():
    mt = LuaTable()
    mt.set("__index", "x")
    before = mt.flags
    assert get_tag_method(mt, TagMethod.ADD) is None
    assert mt.flags == before


def test_cached_absence_hides_raw_value():
    mt = LuaTable()
    mt.set("other", 1)
    assert get_tag_method(mt, TagMethod.EQ) is None
    assert mt.flags & (1 << TagMethod.EQ)
    assert get_tag_method(mt, int(TagMethod.EQ)) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "nil"),
        (True, "boolean"),
        (3, "number"),
        (2.5, "number"),
        ("s", "string"),
        (LuaTable(), "table"),
        (len, "function"),
        (object(), "userdata"),
    ],
)
def test_type_name(value, expected):
    assert type_name(value) == expected


def test_tag_method_of_table_uses_own_metatable():
    mt = LuaTable()
    mt.set("__call", "called")
    t = LuaTable()
    t.metatable = mt
    assert tag_method_of(t, TagMethod.CALL) == "called"
    assert tag_method_of(LuaTable(), TagMethod.CALL) is None


def test_tag_method_of_other_types_uses_type_metatables():
    mt = LuaTable()
    mt.set("__add", "adder")
    registry = {LuaType.NUMBER: mt}
    assert tag_method_of(5, TagMethod.ADD, registry) == "adder"
    assert tag_method_of("s", TagMethod.ADD, registry) is None
    assert tag_method_of(5, TagMethod.ADD) is None