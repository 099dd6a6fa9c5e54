"""Pattern matching over strings: find, match, gmatch and gsub."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from lunarkit.api import LuaError, LuaType

MAXCAPTURES = 32

_CAP_UNFINISHED = -1
_CAP_POSITION = -2

_L_ESC = "%"
_SPECIALS = frozenset("^$*+?.([%-")
_DIGITS = frozenset("0123456789")


class PatternError(LuaError):
    """A malformed pattern or an invalid use of captures."""


def _isalpha(c: int) -> bool:
    return 65 <= c <= 90 or 97 <= c <= 122


def _isdigit(c: int) -> bool:
    return 48 <= c <= 57


def _isalnum(c: int) -> bool:
    return _isalpha(c) or _isdigit(c)


def _isgraph(c: int) -> bool:
    return 33 <= c <= 126


_CLASSES: dict[str, Callable[[int], bool]] = {
    "a": _isalpha,
    "c": lambda c: 0 <= c <= 31 or c == 127,
    "d": _isdigit,
    "g": _isgraph,
    "l": lambda c: 97 <= c <= 122,
    "p": lambda c: _isgraph(c) and not _isalnum(c),
    "s": lambda c: 9 <= c <= 13 or c == 32,
    "u": lambda c: 65 <= c <= 90,
    "w": _isalnum,
    "x": lambda c: _isdigit(c) or 65 <= c <= 70 or 97 <= c <= 102,
    "z": lambda c: c == 0,
}


def _match_class(c: int, cl: str) -> bool:
    lowered = cl.lower()
    test = _CLASSES.get(lowered)
    if test is None:
        return ord(cl) == c
    res = test(c)
    return res if cl == lowered else not res


def _num2str(n: float) -> str:
    return "%.14g" % n


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _type_name(v: object) -> str:
    if v is None:
        return LuaType.NIL.name.lower()
    if isinstance(v, bool):
        return LuaType.BOOLEAN.name.lower()
    if _is_number(v):
        return LuaType.NUMBER.name.lower()
    if isinstance(v, str):
        return LuaType.STRING.name.lower()
    if isinstance(v, Mapping):
        return LuaType.TABLE.name.lower()
    if callable(v):
        return LuaType.FUNCTION.name.lower()
    return LuaType.USERDATA.name.lower()


def _posrelat(pos: int, length: int) -> int:
    if pos >= 0:
        return pos
    if -pos > length:
        return 0
    return length + pos + 1


class _MatchState:
    """State of one matching attempt of a pattern against a subject."""

    def __init__(self, src: str, pat: str) -> None:
        self.src = src
        self.src_end = len(src)
        self.pat = pat
        self.p_end = len(pat)
        self.capture: list[list[int]] = []

    def reset(self) -> None:
        self.capture = []

    def _pc(self, i: int) -> str:
        return self.pat[i] if i < self.p_end else "\0"

    def _sc(self, i: int) -> int:
        return ord(self.src[i]) if i < self.src_end else 0

    def _class_end(self, p: int) -> int:
        pat = self.pat
        ch = pat[p]
        p += 1
        if ch == _L_ESC:
            if p >= self.p_end:
                raise PatternError("malformed pattern (ends with '%')")
            return p + 1
        if ch == "[":
            if self._pc(p) == "^":
                p += 1
            while True:
                if p >= self.p_end:
                    raise PatternError("malformed pattern (missing ']')")
                c = pat[p]
                p += 1
                if c == _L_ESC and p < self.p_end:
                    p += 1
                if self._pc(p) == "]":
                    break
            return p + 1
        return p

    def _match_bracket_class(self, c: int, p: int, ec: int) -> bool:
        pat = self.pat
        sig = True
        if pat[p + 1] == "^":
            sig = False
            p += 1
        p += 1
        while p < ec:
            ch = pat[p]
            if ch == _L_ESC:
                p += 1
                if _match_class(c, pat[p]):
                    return sig
            elif self._pc(p + 1) == "-" and p + 2 < ec:
                p += 2
                if ord(pat[p - 2]) <= c <= ord(pat[p]):
                    return sig
            elif ord(ch) == c:
                return sig
            p += 1
        return not sig

    def _single_match(self, c: int, p: int, ep: int) -> bool:
        ch = self.pat[p]
        if ch == ".":
            return True
        if ch == _L_ESC:
            return _match_class(c, self.pat[p + 1])
        if ch == "[":
            return self._match_bracket_class(c, p, ep - 1)
        return ord(ch) == c

    def _match_balance(self, s: int, p: int) -> int | None:
        if p >= self.p_end - 1:
            raise PatternError("malformed pattern (missing arguments to '%b')")
        if self._sc(s) != ord(self.pat[p]):
            return None
        begin, end = self.pat[p], self.pat[p + 1]
        cont = 1
        s += 1
        while s < self.src_end:
            ch = self.src[s]
            if ch == end:
                cont -= 1
                if cont == 0:
                    return s + 1
            elif ch == begin:
                cont += 1
            s += 1
        return None

    def _max_expand(self, s: int, p: int, ep: int) -> int | None:
        i = 0
        while s + i < self.src_end and self._single_match(ord(self.src[s + i]), p, ep):
            i += 1
        while i >= 0:
            res = self.match(s + i, ep + 1)
            if res is not None:
                return res
            i -= 1
        return None

    def _min_expand(self, s: int, p: int, ep: int) -> int | None:
        while True:
            res = self.match(s, ep + 1)
            if res is not None:
                return res
            if s < self.src_end and self._single_match(ord(self.src[s]), p, ep):
                s += 1
            else:
                return None

    def _start_capture(self, s: int, p: int, what: int) -> int | None:
        if len(self.capture) >= MAXCAPTURES:
            raise PatternError("too many captures")
        self.capture.append([s, what])
        res = self.match(s, p)
        if res is None:
            self.capture.pop()
        return res

    def _capture_to_close(self) -> int:
        for level in range(len(self.capture) - 1, -1, -1):
            if self.capture[level][1] == _CAP_UNFINISHED:
                return level
        raise PatternError("invalid pattern capture")

    def _end_capture(self, s: int, p: int) -> int | None:
        level = self._capture_to_close()
        cap = self.capture[level]
        cap[1] = s - cap[0]
        res = self.match(s, p)
        if res is None:
            cap[1] = _CAP_UNFINISHED
        return res

    def _match_capture(self, s: int, digit: str) -> int | None:
        index = ord(digit) - ord("1")
        if (index < 0 or index >= len(self.capture)
                or self.capture[index][1] == _CAP_UNFINISHED):
            raise PatternError(f"invalid capture index %{index + 1}")
        init, length = self.capture[index]
        if length < 0 or self.src_end - s < length:
            return None
        if self.src[init:init + length] == self.src[s:s + length]:
            return s + length
        return None

    def match(self, s: int, p: int) -> int | None:
        """Match the pattern from ``p`` at subject position ``s``; return the end."""
        pat = self.pat
        while True:
            if p == self.p_end:
                return s
            ch = pat[p]
            if ch == "(":
                if self._pc(p + 1) == ")":
                    return self._start_capture(s, p + 2, _CAP_POSITION)
                return self._start_capture(s, p + 1, _CAP_UNFINISHED)
            if ch == ")":
                return self._end_capture(s, p + 1)
            if ch == "$" and p + 1 == self.p_end:
                return s if s == self.src_end else None
            if ch == _L_ESC:
                nxt = self._pc(p + 1)
                if nxt == "b":
                    found = self._match_balance(s, p + 2)
                    if found is None:
                        return None
                    s = found
                    p += 4
                    continue
                if nxt == "f":
                    p += 2
                    if self._pc(p) != "[":
                        raise PatternError("missing '[' after '%f' in pattern")
                    ep = self._class_end(p)
                    previous = 0 if s == 0 else ord(self.src[s - 1])
                    if (self._match_bracket_class(previous, p, ep - 1)
                            or not self._match_bracket_class(self._sc(s), p, ep - 1)):
                        return None
                    p = ep
                    continue
                if nxt in _DIGITS:
                    found = self._match_capture(s, nxt)
                    if found is None:
                        return None
                    s = found
                    p += 2
                    continue
            ep = self._class_end(p)
            m = s < self.src_end and self._single_match(ord(self.src[s]), p, ep)
            suffix = self._pc(ep)
            if suffix == "?":
                if m:
                    res = self.match(s + 1, ep + 1)
                    if res is not None:
                        return res
                p = ep + 1
                continue
            if suffix == "*":
                return self._max_expand(s, p, ep)
            if suffix == "+":
                return self._max_expand(s + 1, p, ep) if m else None
            if suffix == "-":
                return self._min_expand(s, p, ep)
            if not m:
                return None
            s += 1
            p = ep

    def get_capture(self, i: int, s: int, e: int) -> str | int:
        """Return capture ``i``; with no captures, capture 0 is the whole match."""
        if i >= len(self.capture):
            if i == 0:
                return self.src[s:e]
            raise PatternError("invalid capture index")
        init, length = self.capture[i]
        if length == _CAP_UNFINISHED:
            raise PatternError("unfinished capture")
        if length == _CAP_POSITION:
            return init + 1
        return self.src[init:init + length]

    def captures(self, s: int, e: int, whole: bool = True) -> tuple:
        nlevels = 1 if not self.capture and whole else len(self.capture)
        return tuple(self.get_capture(i, s, e) for i in range(nlevels))


def _single_or_tuple(values: tuple) -> Any:
    return values[0] if len(values) == 1 else values


def _scan(s: str, pattern: str, init: int) -> tuple[_MatchState, int, int] | None:
    anchor = pattern.startswith("^")
    if anchor:
        pattern = pattern[1:]
    ms = _MatchState(s, pattern)
    s1 = init - 1
    while True:
        ms.reset()
        e = ms.match(s1, 0)
        if e is not None:
            return ms, s1, e
        if anchor or s1 >= ms.src_end:
            return None
        s1 += 1


def _start_index(s: str, init: int) -> int | None:
    init = _posrelat(init, len(s))
    if init < 1:
        return 1
    if init > len(s) + 1:
        return None
    return init


def find(s: str, pattern: str, init: int = 1, plain: bool = False) -> tuple | None:
    """Return (start, end, *captures) of the first match, 1-based, or None."""
    start = _start_index(s, init)
    if start is None:
        return None
    if plain or not any(ch in _SPECIALS for ch in pattern):
        idx = s.find(pattern, start - 1)
        if idx < 0:
            return None
        return (idx + 1, idx + len(pattern))
    found = _scan(s, pattern, start)
    if found is None:
        return None
    ms, s1, e = found
    return (s1 + 1, e) + ms.captures(s1, e, whole=False)


def match(s: str, pattern: str, init: int = 1) -> Any:
    """Return the captures of the first match, or the whole match, or None.

    A single capture is returned as itself; several come as a tuple.
    """
    start = _start_index(s, init)
    if start is None:
        return None
    found = _scan(s, pattern, start)
    if found is None:
        return None
    ms, s1, e = found
    return _single_or_tuple(ms.captures(s1, e))


def gmatch(s: str, pattern: str) -> Iterator[Any]:
    """Yield the captures of each successive match of ``pattern`` in ``s``."""
    ms = _MatchState(s, pattern)
    start = 0
    while start <= ms.src_end:
        for src in range(start, ms.src_end + 1):
            ms.reset()
            e = ms.match(src, 0)
            if e is not None:
                start = e + 1 if e == src else e
                yield _single_or_tuple(ms.captures(src, e))
                break
        else:
            return


def _expand_replacement(ms: _MatchState, news: str, s: int, e: int) -> str:
    out: list[str] = []
    i = 0
    while i < len(news):
        ch = news[i]
        if ch != _L_ESC:
            out.append(ch)
        else:
            i += 1
            d = news[i] if i < len(news) else "\0"
            if d not in _DIGITS:
                if d != _L_ESC:
                    raise PatternError("invalid use of '%' in replacement string")
                out.append(d)
            elif d == "0":
                out.append(ms.src[s:e])
            else:
                value = ms.get_capture(ord(d) - ord("1"), s, e)
                out.append(value if isinstance(value, str) else _num2str(value))
        i += 1
    return "".join(out)


def _replacement(ms: _MatchState, repl: Any, s: int, e: int) -> str:
    if isinstance(repl, str):
        return _expand_replacement(ms, repl, s, e)
    if _is_number(repl):
        return _expand_replacement(ms, _num2str(repl), s, e)
    if isinstance(repl, Mapping):
        value = repl.get(ms.get_capture(0, s, e))
    else:
        value = repl(*ms.captures(s, e))
    if value is None or value is False:
        return ms.src[s:e]
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _num2str(value)
    raise PatternError(f"invalid replacement value (a {_type_name(value)})")


def gsub(s: str, pattern: str, repl: Any, n: int | None = None) -> tuple[str, int]:
    """Replace matches of ``pattern``; return the new string and the count.

    ``repl`` may be a string (with %0-%9 references), a number, a mapping
    looked up by the first capture, or a callable given all captures.
    A negative ``n`` places no limit on the number of replacements.
    """
    if not (isinstance(repl, str) or _is_number(repl)
            or isinstance(repl, Mapping) or callable(repl)):
        raise TypeError("bad argument #3 to 'gsub' (string/function/table expected)")
    max_s = len(s) + 1 if n is None else n
    anchor = pattern.startswith("^")
    if anchor:
        pattern = pattern[1:]
    ms = _MatchState(s, pattern)
    out: list[str] = []
    src = 0
    count = 0
    while max_s < 0 or count < max_s:
        ms.reset()
        e = ms.match(src, 0)
        if e is not None:
            count += 1
            out.append(_replacement(ms, repl, src, e))
        if e is not None and e > src:
            src = e
        elif src < ms.src_end:
            out.append(s[src])
            src += 1
        else:
            break
        if anchor:
            break
    out.append(s[src:])
    return "".join(out), count