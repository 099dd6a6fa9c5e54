"""Core interpreter-wide definitions: value types, thread statuses and errors."""

from __future__ import annotations

import enum

VERSION_MAJOR = "5"
VERSION_MINOR = "2"
VERSION_NUM = 502
VERSION_RELEASE = "0"

VERSION = f"Lua {VERSION_MAJOR}.{VERSION_MINOR}"
RELEASE = f"{VERSION}.{VERSION_RELEASE}"

# Mark for precompiled code ('<esc>Lua').
SIGNATURE = b"\x1bLua"

# Option for multiple returns in calls.
MULTRET = -1

# Minimum stack available to a native function.
MINSTACK = 20

# Predefined values in the registry.
RIDX_MAINTHREAD = 1
RIDX_GLOBALS = 2
RIDX_LAST = RIDX_GLOBALS

# Arithmetic operators (same order as the tag methods).
OPADD = 0
OPSUB = 1
OPMUL = 2
OPDIV = 3
OPMOD = 4
OPPOW = 5
OPUNM = 6

# Comparison operators.
OPEQ = 0
OPLT = 1
OPLE = 2


class LuaType(enum.IntEnum):
    """Basic value types."""

    NONE = -1
    NIL = 0
    BOOLEAN = 1
    LIGHTUSERDATA = 2
    NUMBER = 3
    STRING = 4
    TABLE = 5
    FUNCTION = 6
    USERDATA = 7
    THREAD = 8

    @property
    def is_none_or_nil(self) -> bool:
        """True for the absent value and for nil."""
        return self.value <= 0


NUMTAGS = 9


class Status(enum.IntEnum):
    """Thread and call status codes."""

    OK = 0
    YIELD = 1
    ERRRUN = 2
    ERRSYNTAX = 3
    ERRMEM = 4
    ERRGCMM = 5
    ERRERR = 6


class LuaError(Exception):
    """An error raised by the interpreter or its libraries."""

    status: Status = Status.ERRRUN

    def __init__(self, message: object = None, status: Status | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = Status(status)

    def __str__(self) -> str:
        if self.message is None:
            return "(error object is not a string)"
        return str(self.message)


class LuaSyntaxError(LuaError):
    """An error found while loading or parsing a chunk."""

    status = Status.ERRSYNTAX


def version_string() -> str:
    """Return the full release string, such as 'Lua 5.2.0'."""
    return RELEASE