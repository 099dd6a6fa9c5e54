"""Building blocks of a Lua 5.2 runtime: patterns, string and table libraries, tables, string interning, chunk loading and slab allocation."""

__version__ = "0.1.0"

__all__ = [
    "api",
    "limits",
    "patterns",
    "slabs",
    "strlib",
    "strtable",
    "table",
    "tablib",
    "tagmethods",
    "undump",
    "zio",
]