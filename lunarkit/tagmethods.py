"""Tag methods (metamethods): event names, type names and lookups."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

from lunarkit.api import LuaType
from lunarkit.table import LuaTable, _value_type


class TagMethod(enum.IntEnum):
    """Metamethod events, in the order their names are registered."""

    INDEX = 0
    NEWINDEX = 1
    GC = 2
    MODE = 3
    LEN = 4
    EQ = 5  # last tag method with fast (cached) access
    ADD = 6
    SUB = 7
    MUL = 8
    DIV = 9
    MOD = 10
    POW = 11
    UNM = 12
    LT = 13
    LE = 14
    CONCAT = 15
    CALL = 16

    @property
    def event_name(self) -> str:
        """The metatable field holding this event's handler, such as '__index'."""
        return "__" + self.name.lower()

    @property
    def is_fast(self) -> bool:
        """True for events whose absence is cached in the metatable's flags."""
        return self <= TagMethod.EQ


TM_N = len(TagMethod)

# Type names indexed by type tag + 1 ("no value" is the absent value).
TYPENAMES = (
    "no value",
    "nil", "boolean", "userdata", "number",
    "string", "table", "function", "userdata", "thread",
    "proto", "upval",
)


def type_name(value: Any) -> str:
    """Return the type name of ``value``."""
    return TYPENAMES[_value_type(value) + 1]


def get_tag_method(metatable: LuaTable | None, event: TagMethod | int) -> Any:
    """Return the handler for ``event`` in ``metatable``, or None.

    The absence of a fast event is remembered in the metatable's flags
    until the metatable is next modified.
    """
    if metatable is None:
        return None
    event = TagMethod(event)
    bit = 1 << event
    if event.is_fast and metatable.flags & bit:
        return None
    tm = metatable.get(event.event_name)
    if tm is None:
        if event.is_fast:
            metatable.flags |= bit
        return None
    return tm


def tag_method_of(
    value: Any,
    event: TagMethod | int,
    type_metatables: Mapping[LuaType, LuaTable] | None = None,
) -> Any:
    """Return the handler for ``event`` from the metatable that ``value`` uses.

    Tables carry their own metatable; other values use the metatable
    registered for their type in ``type_metatables``.
    """
    event = TagMethod(event)
    tag = _value_type(value)
    if tag is LuaType.TABLE:
        mt = value.metatable
    else:
        mt = (type_metatables or {}).get(tag)
    if mt is None:
        return None
    return mt.get(event.event_name)