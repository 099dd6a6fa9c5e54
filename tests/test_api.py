import pytest

from lunarkit.api import (
    LuaError,
    LuaSyntaxError,
    LuaType,
    Status,
    VERSION,
    version_string,
)


def test_version_string_is_release():
    assert version_string() == "Lua 5.2.0"


def test_version_string_extends_version():
    assert version_string().startswith(VERSION + ".")


@pytest.mark.parametrize(
    "tp, expected",
    [
        (LuaType.NONE, True),
        (LuaType.NIL, True),
        (LuaType.BOOLEAN, False),
        (LuaType.STRING, False),
        (LuaType.THREAD, False),
    ],
)
def test_is_none_or_nil(tp, expected):
    assert tp.is_none_or_nil is expected


def test_type_lookup_by_code():
    assert LuaType(4) is LuaType.STRING
    assert LuaType(-1) is LuaType.NONE


def test_lua_error_defaults_to_runtime_status():
    err = LuaError("boom")
    assert err.status is Status.ERRRUN
    assert str(err) == "boom"


def test_lua_error_explicit_status():
    err = LuaError("out of memory", Status.ERRMEM)
    assert err.status is Status.ERRMEM


def test_lua_error_without_message():
    assert str(LuaError()) == "(error object is not a string)"


def test_syntax_error_is_lua_error():
    err = LuaSyntaxError("unexpected symbol")
    assert isinstance(err, LuaError)
    assert err.status is Status.ERRSYNTAX
    assert str(err) == "unexpected symbol"