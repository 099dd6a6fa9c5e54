"""Table library: insert, remove, concat, pack, unpack and sort."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from lunarkit.api import LuaError
from lunarkit.patterns import _is_number, _num2str
from lunarkit.strlib import _check_int
from lunarkit.table import LuaTable
from lunarkit.tagmethods import TagMethod, get_tag_method, tag_method_of, type_name

# Most values unpack() will return at once.
_MAXRESULTS = 1_000_000


def _check_table(t: object, arg: int, fname: str) -> LuaTable:
    if not isinstance(t, LuaTable):
        raise LuaError(
            f"bad argument #{arg} to '{fname}' (table expected, got {type_name(t)})"
        )
    return t


def _length(t: LuaTable) -> int:
    """Length of ``t``, honouring a '__len' metamethod."""
    tm = get_tag_method(t.metatable, TagMethod.LEN)
    if tm is None:
        return t.length()
    n = tm(t)
    if not _is_number(n) or (isinstance(n, float) and not math.isfinite(n)):
        raise LuaError("object length is not a number")
    return math.trunc(n)


def _getn(t: object, fname: str) -> int:
    return _length(_check_table(t, 1, fname))


def insert(t: LuaTable, *args: Any) -> None:
    """Insert a value at the end, or at a position shifting later elements up.

    Called as ``insert(t, value)`` or ``insert(t, pos, value)``.
    """
    e = _getn(t, "insert") + 1
    if len(args) == 1:
        pos = e
        value = args[0]
    elif len(args) == 2:
        pos = _check_int(args[0], 2, "insert")
        value = args[1]
        e = max(e, pos)
        for i in range(e, pos, -1):
            t.set(i, t.get(i - 1))
    else:
        raise LuaError("wrong number of arguments to 'insert'")
    t.set(pos, value)


def remove(t: LuaTable, pos: int | None = None) -> Any:
    """Remove and return the element at ``pos`` (default: the last one).

    Returns None when ``pos`` lies outside 1..#t.
    """
    e = _getn(t, "remove")
    pos = e if pos is None else _check_int(pos, 2, "remove")
    if not 1 <= pos <= e:
        return None
    result = t.get(pos)
    for i in range(pos, e):
        t.set(i, t.get(i + 1))
    t.set(e, None)
    return result


def _field(t: LuaTable, i: int) -> str:
    value = t.get(i)
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _num2str(value)
    raise LuaError(
        f"invalid value ({type_name(value)}) at index {i} in table for 'concat'"
    )


def concat(t: LuaTable, sep: str = "", i: int = 1, j: int | None = None) -> str:
    """Join the strings or numbers ``t[i]..t[j]`` with ``sep``."""
    if _is_number(sep):
        sep = _num2str(sep)
    elif not isinstance(sep, str):
        raise LuaError(
            f"bad argument #2 to 'concat' (string expected, got {type_name(sep)})"
        )
    _check_table(t, 1, "concat")
    first = _check_int(i, 3, "concat")
    last = _length(t) if j is None else _check_int(j, 4, "concat")
    return sep.join(_field(t, k) for k in range(first, last + 1))


def pack(*args: Any) -> LuaTable:
    """Return a table holding the arguments at 1..n and their count in 'n'."""
    t = LuaTable()
    t.resize(len(args), 1)
    t.set("n", len(args))
    for k, value in enumerate(args, start=1):
        t.set(k, value)
    return t


def unpack(t: LuaTable, i: int = 1, j: int | None = None) -> tuple:
    """Return ``t[i]..t[j]`` as a tuple; ``j`` defaults to the length of ``t``."""
    _check_table(t, 1, "unpack")
    first = _check_int(i, 2, "unpack")
    last = _length(t) if j is None else _check_int(j, 3, "unpack")
    if first > last:
        return ()
    if last - first + 1 >= _MAXRESULTS:
        raise LuaError("too many results to unpack")
    return tuple(t.get(k) for k in range(first, last + 1))


def _less_than(a: Any, b: Any) -> bool:
    if _is_number(a) and _is_number(b):
        return a < b
    if (isinstance(a, str) and isinstance(b, str)) or (
        isinstance(a, bytes) and isinstance(b, bytes)
    ):
        return a < b
    tm = tag_method_of(a, TagMethod.LT)
    if tm is None:
        tm = tag_method_of(b, TagMethod.LT)
    if tm is None:
        ta, tb = type_name(a), type_name(b)
        if ta == tb:
            raise LuaError(f"attempt to compare two {ta} values")
        raise LuaError(f"attempt to compare {ta} with {tb}")
    result = tm(a, b)
    return result is not None and result is not False


def _auxsort(t: LuaTable, lt: Callable[[Any, Any], bool], lo: int, up: int) -> None:
    while lo < up:
        a_lo, a_up = t.get(lo), t.get(up)
        if lt(a_up, a_lo):
            t.set(lo, a_up)
            t.set(up, a_lo)
        if up - lo == 1:
            break
        i = (lo + up) // 2
        a_i, a_lo = t.get(i), t.get(lo)
        if lt(a_i, a_lo):
            t.set(i, a_lo)
            t.set(lo, a_i)
        else:
            a_up = t.get(up)
            if lt(a_up, a_i):
                t.set(i, a_up)
                t.set(up, a_i)
        if up - lo == 2:
            break
        pivot = t.get(i)
        t.set(i, t.get(up - 1))
        t.set(up - 1, pivot)
        # a[lo] <= P == a[up-1] <= a[up]: only lo+1 .. up-2 remain
        i, j = lo, up - 1
        while True:
            while True:
                i += 1
                a_i = t.get(i)
                if not lt(a_i, pivot):
                    break
                if i >= up:
                    raise LuaError("invalid order function for sorting")
            while True:
                j -= 1
                a_j = t.get(j)
                if not lt(pivot, a_j):
                    break
                if j <= lo:
                    raise LuaError("invalid order function for sorting")
            if j < i:
                break
            t.set(i, a_j)
            t.set(j, a_i)
        a_pivot, a_i = t.get(up - 1), t.get(i)
        t.set(up - 1, a_i)
        t.set(i, a_pivot)
        # recurse into the smaller half, loop over the larger one
        if i - lo < up - i:
            j, i, lo = lo, i - 1, i + 1
        else:
            j, i, up = i + 1, up, i - 1
        _auxsort(t, lt, j, i)


def sort(t: LuaTable, comp: Callable[[Any, Any], Any] | None = None) -> None:
    """Sort ``t[1..#t]`` in place using ``comp`` as a less-than test."""
    n = _getn(t, "sort")
    if comp is None:
        lt = _less_than
    elif callable(comp):
        def lt(a: Any, b: Any) -> bool:
            result = comp(a, b)
            return result is not None and result is not False
    else:
        raise LuaError(
            f"bad argument #2 to 'sort' (function expected, got {type_name(comp)})"
        )
    _auxsort(t, lt, 1, n)