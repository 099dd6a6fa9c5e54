"""Tables with an array part and a hash part using chained scatter with Brent's variation."""

from __future__ import annotations

import math
from collections.abc import Iterator
from typing import Any

from lunarkit.api import LuaError, LuaType
from lunarkit.limits import INT_MAX, INT_MIN, MAX_INT, hash_number
from lunarkit.strtable import string_hash

# Maximum size of the array part is 2**MAXBITS.
MAXBITS = 30
MAXASIZE = 1 << MAXBITS

_MASK32 = 0xFFFFFFFF


def _value_type(value: object) -> LuaType:
    """Return the basic type of a Python value seen as a table key or value."""
    if value is None:
        return LuaType.NIL
    if isinstance(value, bool):
        return LuaType.BOOLEAN
    if isinstance(value, (int, float)):
        return LuaType.NUMBER
    if isinstance(value, (str, bytes)):
        return LuaType.STRING
    if isinstance(value, LuaTable):
        return LuaType.TABLE
    if callable(value):
        return LuaType.FUNCTION
    return LuaType.USERDATA


def _normalize_key(key: Any) -> Any:
    """Give numbers one canonical form: integral values become ints."""
    if _value_type(key) is not LuaType.NUMBER:
        return key
    if isinstance(key, float):
        if not math.isfinite(key):
            return key
        f = key
    else:
        try:
            f = float(key)
        except OverflowError:
            return math.copysign(math.inf, key)
    return int(f) if f.is_integer() else f


def _rawequal(a: object, b: object) -> bool:
    ta = _value_type(a)
    if ta is not _value_type(b):
        return False
    if ta in (LuaType.NIL, LuaType.BOOLEAN, LuaType.NUMBER, LuaType.STRING):
        return a == b
    return a is b


def _arrayindex(key: object) -> int | None:
    """Return ``key`` as an int if it is an integral number in int range."""
    if _value_type(key) is not LuaType.NUMBER:
        return None
    if isinstance(key, float):
        if not key.is_integer():
            return None
        key = int(key)
    return key if INT_MIN <= key <= INT_MAX else None


def _ceillog2(x: int) -> int:
    return (x - 1).bit_length()


def _hashnum(n: float) -> int:
    i = hash_number(float(n))
    if i < 0:
        i = 0 if i == INT_MIN else -i
    return i


def _hashstr(key: str | bytes) -> int:
    data = key if isinstance(key, bytes) else key.encode("utf-8", "surrogatepass")
    return string_hash(data)


def _countint(key: object, nums: list[int]) -> int:
    k = _arrayindex(key)
    if k is not None and 0 < k <= MAXASIZE:
        nums[_ceillog2(k)] += 1
        return 1
    return 0


def _computesizes(nums: list[int], narray: int) -> tuple[int, int]:
    """Return (elements going to the array part, optimal array size)."""
    a = 0
    na = 0
    n = 0
    i = 0
    twotoi = 1
    while twotoi // 2 < narray:
        if nums[i] > 0:
            a += nums[i]
            if a > twotoi // 2:
                n = twotoi
                na = a
        if a == narray:
            break
        i += 1
        twotoi *= 2
    return na, n


class _Node:
    __slots__ = ("key", "val", "next")

    def __init__(self) -> None:
        self.key: Any = None
        self.val: Any = None
        self.next: int | None = None


_Slot = tuple[bool, int]


class LuaTable:
    """An associative table; ``None`` is nil and cannot be a key."""

    def __init__(self) -> None:
        self.metatable: LuaTable | None = None
        # One bit per fast tag method known to be absent from this table.
        self.flags = 0xFF
        self._array: list[Any] = []
        self._node: list[_Node] = []
        self._dummy = True
        self._lastfree = 0
        self._setnodevector(0)

    # -- sizes -------------------------------------------------------------

    def array_size(self) -> int:
        """Number of slots in the array part."""
        return len(self._array)

    def hash_size(self) -> int:
        """Number of nodes in the hash part (0 when it is empty)."""
        return 0 if self._dummy else len(self._node)

    def _setnodevector(self, size: int) -> None:
        if size == 0:
            self._node = [_Node()]
            self._dummy = True
            self._lastfree = 0
            return
        lsize = _ceillog2(size)
        if lsize > MAXBITS:
            raise LuaError("table overflow")
        size = 1 << lsize
        self._node = [_Node() for _ in range(size)]
        self._dummy = False
        self._lastfree = size

    def resize(self, nasize: int, nhsize: int) -> None:
        """Give the table an array part of ``nasize`` and room for ``nhsize`` hashed keys."""
        if nasize < 0 or nhsize < 0:
            raise ValueError("table sizes must not be negative")
        oldasize = len(self._array)
        old_nodes = self._node
        if nasize > oldasize:
            self._array.extend([None] * (nasize - oldasize))
        self._setnodevector(nhsize)
        if nasize < oldasize:
            vanishing = self._array[nasize:]
            del self._array[nasize:]
            for k, value in enumerate(vanishing, start=nasize + 1):
                if value is not None:
                    self._setint(k, value)
        for old in reversed(old_nodes):
            if old.val is not None:
                self._store(self._set_slot(old.key), old.val)

    def _numusearray(self, nums: list[int]) -> int:
        size = len(self._array)
        ause = 0
        i = 1
        ttlg = 1
        for lg in range(MAXBITS + 1):
            lim = ttlg
            if lim > size:
                lim = size
                if i > lim:
                    break
            lc = sum(1 for v in self._array[i - 1:lim] if v is not None)
            i = max(i, lim + 1)
            nums[lg] += lc
            ause += lc
            ttlg *= 2
        return ause

    def _numusehash(self, nums: list[int]) -> tuple[int, int]:
        totaluse = 0
        ause = 0
        for node in reversed(self._node):
            if node.val is not None:
                ause += _countint(node.key, nums)
                totaluse += 1
        return totaluse, ause

    def _rehash(self, extra_key: object) -> None:
        nums = [0] * (MAXBITS + 1)
        nasize = self._numusearray(nums)
        totaluse = nasize
        hashed, ause = self._numusehash(nums)
        totaluse += hashed
        nasize += ause
        nasize += _countint(extra_key, nums)
        totaluse += 1
        na, nasize = _computesizes(nums, nasize)
        self.resize(nasize, totaluse - na)

    # -- hashing -----------------------------------------------------------

    def _mainposition(self, key: object) -> int:
        size = len(self._node)
        tag = _value_type(key)
        if tag is LuaType.NUMBER:
            return _hashnum(key) % ((size - 1) | 1)
        if tag is LuaType.STRING:
            return _hashstr(key) & (size - 1)
        if tag is LuaType.BOOLEAN:
            return int(key) & (size - 1)
        return (id(key) & _MASK32) % ((size - 1) | 1)

    def _getfreepos(self) -> int | None:
        while self._lastfree > 0:
            self._lastfree -= 1
            if self._node[self._lastfree].key is None:
                return self._lastfree
        return None

    def _newkey(self, key: object) -> _Slot:
        tag = _value_type(key)
        if tag is LuaType.NIL:
            raise LuaError("table index is nil")
        if tag is LuaType.NUMBER and isinstance(key, float) and math.isnan(key):
            raise LuaError("table index is NaN")
        nodes = self._node
        mp = self._mainposition(key)
        if nodes[mp].val is not None or self._dummy:
            free = self._getfreepos()
            if free is None:
                self._rehash(key)
                return self._set_slot(key)
            othern = self._mainposition(nodes[mp].key)
            if othern != mp:
                while nodes[othern].next != mp:
                    othern = nodes[othern].next
                nodes[othern].next = free
                moved, colliding = nodes[free], nodes[mp]
                moved.key, moved.val, moved.next = colliding.key, colliding.val, colliding.next
                colliding.next = None
                colliding.val = None
            else:
                nodes[free].next = nodes[mp].next
                nodes[mp].next = free
                mp = free
        nodes[mp].key = key
        return (False, mp)

    # -- lookup ------------------------------------------------------------

    def _find_int(self, k: int) -> _Slot | None:
        if 1 <= k <= len(self._array):
            return (True, k - 1)
        idx: int | None = self._mainposition(k)
        while idx is not None:
            node = self._node[idx]
            if _value_type(node.key) is LuaType.NUMBER and node.key == k:
                return (False, idx)
            idx = node.next
        return None

    def _find(self, key: object) -> _Slot | None:
        tag = _value_type(key)
        if tag is LuaType.NIL:
            return None
        if tag is LuaType.NUMBER:
            k = _arrayindex(key)
            if k is not None:
                return self._find_int(k)
        idx: int | None = self._mainposition(key)
        while idx is not None:
            node = self._node[idx]
            if _rawequal(node.key, key):
                return (False, idx)
            idx = node.next
        return None

    def _read(self, slot: _Slot | None) -> Any:
        if slot is None:
            return None
        in_array, i = slot
        return self._array[i] if in_array else self._node[i].val

    def _store(self, slot: _Slot, value: Any) -> None:
        in_array, i = slot
        if in_array:
            self._array[i] = value
        else:
            self._node[i].val = value

    def _set_slot(self, key: object) -> _Slot:
        slot = self._find(key)
        return slot if slot is not None else self._newkey(key)

    def _setint(self, k: int, value: Any) -> None:
        slot = self._find_int(k)
        if slot is None:
            slot = self._newkey(k)
        self._store(slot, value)

    def _getint(self, k: int) -> Any:
        return self._read(self._find_int(k))

    # -- public operations -------------------------------------------------

    def get(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None."""
        return self._read(self._find(_normalize_key(key)))

    def set(self, key: Any, value: Any) -> None:
        """Store ``value`` under ``key``; a None value erases the entry."""
        key = _normalize_key(key)
        self._store(self._set_slot(key), value)
        self.flags = 0

    def _findindex(self, key: object) -> int:
        if key is None:
            return -1
        k = _arrayindex(key)
        if k is not None and 0 < k <= len(self._array):
            return k - 1
        idx: int | None = self._mainposition(key)
        while idx is not None:
            node = self._node[idx]
            if _rawequal(node.key, key):
                return idx + len(self._array)
            idx = node.next
        raise LuaError("invalid key to 'next'")

    def next(self, key: Any = None) -> tuple[Any, Any] | None:
        """Return the (key, value) pair after ``key``; None starts, and ends, a traversal."""
        i = self._findindex(_normalize_key(key)) + 1
        size = len(self._array)
        for j in range(i, size):
            if self._array[j] is not None:
                return (j + 1, self._array[j])
        for j in range(max(i, size) - size, len(self._node)):
            node = self._node[j]
            if node.val is not None:
                return (node.key, node.val)
        return None

    def items(self) -> Iterator[tuple[Any, Any]]:
        """Yield every (key, value) pair in traversal order."""
        pair = self.next(None)
        while pair is not None:
            yield pair
            pair = self.next(pair[0])

    def _unbound_search(self, j: int) -> int:
        i = j
        j += 1
        while self._getint(j) is not None:
            i = j
            j *= 2
            if j > MAX_INT:
                i = 1
                while self._getint(i) is not None:
                    i += 1
                return i - 1
        while j - i > 1:
            m = (i + j) // 2
            if self._getint(m) is None:
                j = m
            else:
                i = m
        return i

    def length(self) -> int:
        """Return a border: an index n with t[n] non-nil and t[n+1] nil (0 if t[1] is nil)."""
        j = len(self._array)
        if j > 0 and self._array[j - 1] is None:
            i = 0
            while j - i > 1:
                m = (i + j) // 2
                if self._array[m - 1] is None:
                    j = m
                else:
                    i = m
            return i
        if self._dummy:
            return j
        return self._unbound_search(j)