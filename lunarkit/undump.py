"""Loading of precompiled chunks."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from typing import Any

from lunarkit.api import SIGNATURE, VERSION_MAJOR, VERSION_MINOR, LuaSyntaxError, LuaType
from lunarkit.zio import ZStream

# Data to catch conversion errors.
TAIL = b"\x19\x93\r\n\x1a\n"

# Size in bytes of the header of binary files.
HEADERSIZE = len(SIGNATURE) + 2 + 6 + len(TAIL)

VERSION = int(VERSION_MAJOR) * 16 + int(VERSION_MINOR)
FORMAT = 0  # the official format

_N1 = len(SIGNATURE)
_N2 = _N1 + 2
_N3 = _N2 + 6

_INT = struct.Struct("i")
_SIZE_T = struct.Struct("N")
_INSTRUCTION = struct.Struct("I")
_NUMBER = struct.Struct("d")
_CHAR = struct.Struct("b")


@dataclass
class LocalVar:
    """A local variable's name and the instruction range where it is live."""

    varname: bytes | None
    startpc: int
    endpc: int


@dataclass
class UpvalueDesc:
    """Where a closure finds an upvalue: the enclosing stack or its upvalues."""

    name: bytes | None
    instack: int
    idx: int


@dataclass
class Proto:
    """A function prototype."""

    source: bytes | None = None
    linedefined: int = 0
    lastlinedefined: int = 0
    numparams: int = 0
    is_vararg: int = 0
    maxstacksize: int = 0
    code: list[int] = field(default_factory=list)
    constants: list[Any] = field(default_factory=list)
    protos: list[Proto] = field(default_factory=list)
    upvalues: list[UpvalueDesc] = field(default_factory=list)
    lineinfo: list[int] = field(default_factory=list)
    locvars: list[LocalVar] = field(default_factory=list)


def header() -> bytes:
    """Return the header that precompiled chunks for this platform start with."""
    return b"".join([
        SIGNATURE,
        bytes([
            VERSION,
            FORMAT,
            1 if sys.byteorder == "little" else 0,
            _INT.size,
            _SIZE_T.size,
            _INSTRUCTION.size,
            _NUMBER.size,
            int(0.5 == 0),
        ]),
        TAIL,
    ])


class _Loader:
    def __init__(self, z: ZStream, name: str) -> None:
        self.z = z
        self.name = name

    def error(self, why: str) -> LuaSyntaxError:
        return LuaSyntaxError(f"{self.name}: {why} precompiled chunk")

    def block(self, size: int) -> bytes:
        data = self.z.read(size)
        if len(data) < size:
            raise self.error("truncated")
        return data

    def char(self) -> int:
        return _CHAR.unpack(self.block(1))[0]

    def byte(self) -> int:
        return self.block(1)[0]

    def int(self) -> int:
        x = _INT.unpack(self.block(_INT.size))[0]
        if x < 0:
            raise self.error("corrupted")
        return x

    def number(self) -> float:
        return _NUMBER.unpack(self.block(_NUMBER.size))[0]

    def string(self) -> bytes | None:
        size = _SIZE_T.unpack(self.block(_SIZE_T.size))[0]
        if size == 0:
            return None
        return self.block(size)[:-1]  # drop the trailing '\0'

    def header(self) -> None:
        h = header()
        s = self.block(HEADERSIZE)
        if s == h:
            return
        if s[:_N1] != h[:_N1]:
            raise self.error("not a")
        if s[:_N2] != h[:_N2]:
            raise self.error("version mismatch in")
        if s[:_N3] != h[:_N3]:
            raise self.error("incompatible")
        raise self.error("corrupted")

    def constant(self) -> Any:
        t = self.char()
        if t == LuaType.BOOLEAN:
            return bool(self.char())
        if t == LuaType.NUMBER:
            return self.number()
        if t == LuaType.STRING:
            return self.string()
        return None

    def function(self) -> Proto:
        f = Proto()
        f.linedefined = self.int()
        f.lastlinedefined = self.int()
        f.numparams = self.byte()
        f.is_vararg = self.byte()
        f.maxstacksize = self.byte()
        n = self.int()
        f.code = [_INSTRUCTION.unpack(self.block(_INSTRUCTION.size))[0] for _ in range(n)]
        f.constants = [self.constant() for _ in range(self.int())]
        f.protos = [self.function() for _ in range(self.int())]
        n = self.int()
        f.upvalues = [UpvalueDesc(None, self.byte(), self.byte()) for _ in range(n)]
        f.source = self.string()
        f.lineinfo = [_INT.unpack(self.block(_INT.size))[0] for _ in range(self.int())]
        f.locvars = [LocalVar(self.string(), self.int(), self.int())
                     for _ in range(self.int())]
        n = self.int()
        if n > len(f.upvalues):
            raise self.error("corrupted")
        for upvalue in f.upvalues[:n]:
            upvalue.name = self.string()
        return f


def _chunk_name(name: str) -> str:
    if name.startswith(("@", "=")):
        return name[1:]
    if name.startswith(chr(SIGNATURE[0])):
        return "binary string"
    return name


def undump(data: bytes | ZStream, name: str = "?") -> Proto:
    """Load a precompiled chunk and return its main function prototype."""
    z = data if isinstance(data, ZStream) else ZStream.from_bytes(data)
    loader = _Loader(z, _chunk_name(name))
    loader.header()
    return loader.function()