"""Buffered input streams fed by a reader function."""

from __future__ import annotations

from collections.abc import Callable

# End of stream.
EOZ = -1

Reader = Callable[[], "bytes | None"]


class ZStream:
    """Reads bytes from chunks handed out by ``reader``.

    ``reader`` is called with no arguments and returns the next chunk, or
    None or an empty chunk at the end of the input.
    """

    def __init__(self, reader: Reader) -> None:
        self._reader = reader
        self._buf = b""
        self._p = 0
        self._n = 0

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int | None = None) -> ZStream:
        """A stream over ``data``, handed out whole or in ``chunk_size`` pieces."""
        data = bytes(data)
        if chunk_size is None:
            chunks = iter([data])
        else:
            if chunk_size <= 0:
                raise ValueError("chunk_size must be positive")
            chunks = iter([data[i:i + chunk_size]
                           for i in range(0, len(data), chunk_size)])
        return cls(lambda: next(chunks, None))

    def fill(self) -> int:
        """Fetch a new chunk and return its first byte, or EOZ."""
        buff = self._reader()
        if not buff:
            return EOZ
        self._buf = bytes(buff)
        self._n = len(self._buf) - 1
        self._p = 1
        return self._buf[0]

    def getc(self) -> int:
        """Return the next byte, or EOZ at the end of the stream."""
        if self._n > 0:
            self._n -= 1
            c = self._buf[self._p]
            self._p += 1
            return c
        return self.fill()

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes; fewer are returned only at the end of the stream."""
        out = bytearray()
        while n:
            if self._n == 0:
                if self.fill() == EOZ:
                    break
                # fill() consumed the first byte; put it back
                self._n += 1
                self._p -= 1
            m = min(n, self._n)
            out += self._buf[self._p:self._p + m]
            self._n -= m
            self._p += m
            n -= m
        return bytes(out)