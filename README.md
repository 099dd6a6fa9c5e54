# lunarkit

Pieces of a Lua 5.2 runtime in pure Python. It needs nothing beyond the
standard library.

## What is inside

- `lunarkit.patterns`: Lua pattern matching with `find`, `match`, `gmatch`
  and `gsub`. A malformed pattern or a bad capture raises `PatternError`, which
  is a subclass of `LuaError`. `gsub` accepts as its replacement a string with
  `%0`-`%9` references, a number, a mapping looked up by the first capture, or
  a callable that receives every capture.
- `lunarkit.strlib`: the rest of the string library. It provides `length`,
  `sub`, `reverse`, `lower`, `upper`, `rep`, `byte`, `char` and `format`, and
  follows Lua's rules for 1-based and negative positions. `format` supports
  `%c %d %i %o %u %x %X %e %E %f %g %G %q %s`.
- `lunarkit.table`: `LuaTable`, a table with an array part and a hash part.
  It offers `get`, `set` (storing `None` erases the entry), `next` traversal,
  `items()`, the border `length()`, `resize(nasize, nhsize)`, `array_size()`
  and `hash_size()`.
- `lunarkit.tablib`: the table library, with `insert`, `remove`, `concat`,
  `pack`, `unpack` and `sort`. `sort` uses an optional less-than function. It
  also honours `__lt` and `__len` handlers found in metatables.
- `lunarkit.tagmethods`: the `TagMethod` events, `type_name`, and
  `get_tag_method(metatable, event)`. The last one caches the absence of fast
  events in the metatable's `flags`. `tag_method_of` looks up a handler through
  a value's metatable.
- `lunarkit.strtable`: `StringTable`, which interns byte strings, and the
  `string_hash` function.
- `lunarkit.limits`: implementation limits and number conversions. These are
  `number_to_int`, `number_to_unsigned` and `unsigned_to_number`, plus
  `hash_number`.
- `lunarkit.zio`: `ZStream`, a buffered input stream over a reader callable.
  It provides `fill`, `getc` and `read`, and `ZStream.from_bytes` builds a
  stream from in-memory data.
- `lunarkit.undump`: `undump(data, name)` loads a precompiled chunk into
  `Proto`, `UpvalueDesc` and `LocalVar` objects. A bad or truncated chunk
  raises `LuaSyntaxError`. `header()` returns the header expected on this
  platform.
- `lunarkit.slabs`: `SlabAllocator`, a power-of-two slab allocator with
  `new_slab`, `alloc`, `free` and memcached-style `stats()`. `slab_class_id`
  gives the class for a size.
- `lunarkit.api`: the `LuaType` and `Status` enums, the `LuaError` and
  `LuaSyntaxError` exceptions, and `version_string()`.

## Installing

```
pip install .
pip install ".[test]"   # adds pytest for running the tests
```

## Examples

```python
from lunarkit import patterns, strlib, tablib
from lunarkit.table import LuaTable

patterns.find("hello world", "o w")                  # (5, 7)
patterns.match("key = value", "(%w+)%s*=%s*(%w+)")   # ("key", "value")
patterns.gsub("hello world", "o", "0")               # ("hell0 w0rld", 2)

strlib.sub("hello", 2, -2)                           # "ell"
strlib.format("%5.2f|%q", 3.14159, 'a"b')            # ' 3.14|"a\\"b"'

t = LuaTable()
for value in (3, 1, 2):
    tablib.insert(t, value)
tablib.sort(t)
tablib.concat(t, ",")                                # "1,2,3"
```

## What it does not do

This package does not run Lua code. It has no lexer, parser, compiler or
virtual machine, and no interactive interpreter or command-line tool. `undump`
reads precompiled chunks into data objects but never executes them. Nothing in
the package writes chunks, and the string library has no `dump`.

## Running the tests

```
pytest
```