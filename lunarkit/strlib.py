"""String library: length, slicing, case, repetition, bytes and formatting."""

from __future__ import annotations

import math
import re
import string
import struct
from dataclasses import dataclass

from lunarkit.api import LuaError
from lunarkit.limits import INT_MAX, INT_MIN
from lunarkit.patterns import _is_number, _num2str, _posrelat, _type_name

# Reasonable limit to avoid arithmetic overflow in rep().
_MAXSIZE = ((1 << (8 * struct.calcsize("P"))) - 1) >> 1

# Integer conversions in format() use the platform's long.
_INTFRM_BITS = 8 * struct.calcsize("l")
_MAX_UINTFRM = float((1 << _INTFRM_BITS) - 1)
_MAX_INTFRM = float(((1 << _INTFRM_BITS) - 1) // 2)
_MIN_INTFRM = -float(((1 << _INTFRM_BITS) - 1) // 2) - 1

# Longest item kept unformatted when '%s' has no precision.
_MAX_PLAIN_S = 100

_FLAGS = "-+ #0"
_DIGITS = "0123456789"

_TO_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_TO_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)

_DEC_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_RE = re.compile(r"[+-]?0[xX][0-9a-fA-F]+")
_SPACES = " \t\n\v\f\r"


def _arg_error(arg: int, fname: str, msg: str) -> LuaError:
    return LuaError(f"bad argument #{arg} to '{fname}' ({msg})")


def _str2number(text: str) -> float | None:
    t = text.strip(_SPACES)
    if _DEC_RE.fullmatch(t):
        return float(t)
    if _HEX_RE.fullmatch(t):
        return float(int(t, 16))
    return None


def _check_number(value: object, arg: int, fname: str) -> float | int:
    if _is_number(value):
        return value
    if isinstance(value, str):
        n = _str2number(value)
        if n is not None:
            return n
    raise _arg_error(arg, fname, f"number expected, got {_type_name(value)}")


def _check_integer(value: object, arg: int, fname: str) -> int:
    n = _check_number(value, arg, fname)
    if isinstance(n, float) and not math.isfinite(n):
        raise _arg_error(arg, fname, "number has no integer representation")
    return math.trunc(n)


def _check_int(value: object, arg: int, fname: str) -> int:
    n = _check_integer(value, arg, fname)
    if not INT_MIN <= n <= INT_MAX:
        raise _arg_error(arg, fname, "number out of int range")
    return n


def _check_string(value: object, arg: int, fname: str) -> str:
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _num2str(value)
    raise _arg_error(arg, fname, f"string expected, got {_type_name(value)}")


def _tolstring(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return _num2str(value)
    if isinstance(value, str):
        return value
    return f"{_type_name(value)}: 0x{id(value):08x}"


def length(s: str) -> int:
    """Return the length of ``s``."""
    return len(_check_string(s, 1, "len"))


def sub(s: str, i: int, j: int = -1) -> str:
    """Return the substring from ``i`` to ``j`` (1-based, negative from the end)."""
    s = _check_string(s, 1, "sub")
    size = len(s)
    start = max(_posrelat(_check_integer(i, 2, "sub"), size), 1)
    end = min(_posrelat(_check_integer(j, 3, "sub"), size), size)
    return s[start - 1:end] if start <= end else ""


def reverse(s: str) -> str:
    """Return ``s`` reversed."""
    return _check_string(s, 1, "reverse")[::-1]


def lower(s: str) -> str:
    """Return ``s`` with ASCII upper-case letters made lower case."""
    return _check_string(s, 1, "lower").translate(_TO_LOWER)


def upper(s: str) -> str:
    """Return ``s`` with ASCII lower-case letters made upper case."""
    return _check_string(s, 1, "upper").translate(_TO_UPPER)


def rep(s: str, n: int, sep: str = "") -> str:
    """Return ``n`` copies of ``s`` joined by ``sep``."""
    s = _check_string(s, 1, "rep")
    count = _check_int(n, 2, "rep")
    sep = _check_string(sep, 3, "rep")
    if count <= 0:
        return ""
    if len(s) + len(sep) >= _MAXSIZE // count:
        raise LuaError("resulting string too large")
    return sep.join([s] * count)


def byte(s: str, i: int = 1, j: int | None = None) -> tuple[int, ...]:
    """Return the character codes of ``s[i..j]``; ``j`` defaults to ``i``."""
    s = _check_string(s, 1, "byte")
    size = len(s)
    posi = _posrelat(_check_integer(i, 2, "byte"), size)
    pose = posi if j is None else _posrelat(_check_integer(j, 3, "byte"), size)
    posi = max(posi, 1)
    pose = min(pose, size)
    if posi > pose:
        return ()
    return tuple(ord(c) for c in s[posi - 1:pose])


def char(*args: int) -> str:
    """Build a string from character codes in the range 0-255."""
    out = []
    for arg, value in enumerate(args, start=1):
        c = _check_int(value, arg, "char")
        if not 0 <= c <= 255:
            raise _arg_error(arg, "char", "value out of range")
        out.append(chr(c))
    return "".join(out)


@dataclass(frozen=True)
class _Spec:
    flags: str
    width: str
    precision: str | None

    @property
    def text(self) -> str:
        prec = "" if self.precision is None else "." + self.precision
        return f"%{self.flags}{self.width}{prec}"


def _scan_format(fmt: str, p: int) -> tuple[_Spec, int]:
    end = len(fmt)
    start = p
    while p < end and fmt[p] in _FLAGS:
        p += 1
    if p - start >= len(_FLAGS) + 1:
        raise LuaError("invalid format (repeated flags)")
    flags = fmt[start:p]

    def digits(p: int) -> int:
        for _ in range(2):
            if p < end and fmt[p] in _DIGITS:
                p += 1
        return p

    wstart = p
    p = digits(p)
    width = fmt[wstart:p]
    precision = None
    if p < end and fmt[p] == ".":
        pstart = p + 1
        p = digits(pstart)
        precision = fmt[pstart:p]
    if p < end and fmt[p] in _DIGITS:
        raise LuaError("invalid format (width or precision too long)")
    return _Spec(flags, width, precision), p


def _format_integer(spec: _Spec, conv: str, value: int) -> str:
    mag = abs(value)
    if conv == "o":
        digits = f"{mag:o}"
    elif conv in "xX":
        digits = f"{mag:x}" if conv == "x" else f"{mag:X}"
    else:
        digits = str(mag)
    if spec.precision is not None:
        prec = int(spec.precision or "0")
        if prec == 0 and mag == 0:
            digits = ""
        digits = digits.rjust(prec, "0")
    flags = spec.flags
    sign = ""
    if conv in "di":
        if value < 0:
            sign = "-"
        elif "+" in flags:
            sign = "+"
        elif " " in flags:
            sign = " "
    prefix = ""
    if "#" in flags:
        if conv == "o" and not digits.startswith("0"):
            digits = "0" + digits
        elif conv in "xX" and mag:
            prefix = "0" + conv
    width = int(spec.width or "0")
    head = sign + prefix
    if "-" in flags:
        return (head + digits).ljust(width)
    if "0" in flags and spec.precision is None:
        return head + digits.rjust(width - len(head), "0")
    return (head + digits).rjust(width)


def _quoted(s: str) -> str:
    out = ['"']
    for idx, ch in enumerate(s):
        code = ord(ch)
        if ch in '"\\\n':
            out.append("\\" + ch)
        elif code <= 31 or code == 127:
            nxt = s[idx + 1] if idx + 1 < len(s) else ""
            if nxt and nxt in _DIGITS:
                out.append(f"\\{code:03d}")
            else:
                out.append(f"\\{code}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _format_item(spec: _Spec, conv: str, value: object, arg: int) -> str:
    if conv == "c":
        return (spec.text + "c") % (_check_int(value, arg, "format") % 256)
    if conv in ("d", "i"):
        n = _check_number(value, arg, "format")
        if not (_MIN_INTFRM - 1 < n < _MAX_INTFRM + 1):
            raise _arg_error(arg, "format", "not a number in proper range")
        return _format_integer(spec, conv, math.trunc(n))
    if conv in ("o", "u", "x", "X"):
        n = _check_number(value, arg, "format")
        if not (0 <= n < _MAX_UINTFRM + 1):
            raise _arg_error(arg, "format", "not a non-negative number in proper range")
        return _format_integer(spec, conv, math.trunc(n))
    if conv in ("e", "E", "f", "g", "G"):
        return (spec.text + conv) % float(_check_number(value, arg, "format"))
    if conv == "q":
        return _quoted(_check_string(value, arg, "format"))
    if conv == "s":
        text = _tolstring(value)
        if spec.precision is None and len(text) >= _MAX_PLAIN_S:
            return text
        return (spec.text + "s") % text
    raise LuaError(f"invalid option '%{conv}' to 'format'")


def format(fmt: str, *args: object) -> str:
    """Format ``args`` following a printf-like format string."""
    fmt = _check_string(fmt, 1, "format")
    end = len(fmt)
    out: list[str] = []
    i = 0
    arg = 1
    while i < end:
        ch = fmt[i]
        if ch != "%":
            out.append(ch)
            i += 1
            continue
        i += 1
        if i < end and fmt[i] == "%":
            out.append("%")
            i += 1
            continue
        arg += 1
        if arg - 2 >= len(args):
            raise _arg_error(arg, "format", "no value")
        spec, i = _scan_format(fmt, i)
        conv = fmt[i] if i < end else ""
        i += 1
        out.append(_format_item(spec, conv, args[arg - 2], arg))
    return "".join(out)