"""Slab memory allocator with power-of-two chunk classes."""

from __future__ import annotations

from dataclasses import dataclass, field

POWER_SMALLEST = 3
POWER_LARGEST = 20
POWER_BLOCK = 1048576


def slab_class_id(size: int) -> int:
    """Return the slab class for an item of ``size`` bytes, or 0 if none fits."""
    if size == 0:
        return 0
    res = max(POWER_SMALLEST, (size - 1).bit_length())
    return 0 if res > POWER_LARGEST else res


@dataclass
class _SlabClass:
    size: int
    perslab: int
    free_slots: list = field(default_factory=list)
    end_page: bytearray | None = None
    end_offset: int = 0
    end_page_free: int = 0
    pages: list = field(default_factory=list)


class SlabAllocator:
    """Hands out fixed-size chunks carved from 1 MiB pages.

    A ``limit`` of 0 means no limit on the total size of allocated pages.
    """

    def __init__(self, limit: int = 0) -> None:
        self.mem_limit = limit
        self.mem_malloced = 0
        self._classes = [
            _SlabClass(size=1 << i, perslab=POWER_BLOCK // (1 << i))
            for i in range(POWER_LARGEST + 1)
        ]

    def new_slab(self, class_id: int) -> bool:
        """Allocate a fresh page for a class; False if the limit forbids it."""
        if not 0 <= class_id <= POWER_LARGEST:
            raise ValueError(f"invalid slab class {class_id}")
        cls = self._classes[class_id]
        if self.mem_limit and self.mem_malloced + POWER_BLOCK > self.mem_limit:
            return False
        page = bytearray(POWER_BLOCK)
        cls.end_page = page
        cls.end_offset = 0
        cls.end_page_free = cls.perslab
        cls.pages.append(page)
        self.mem_malloced += POWER_BLOCK
        return True

    def alloc(self, size: int) -> memoryview:
        """Return a writable chunk able to hold ``size`` bytes."""
        class_id = slab_class_id(size)
        if not POWER_SMALLEST <= class_id <= POWER_LARGEST:
            raise ValueError(f"no slab class for size {size}")
        cls = self._classes[class_id]
        if not (cls.end_page is not None or cls.free_slots or self.new_slab(class_id)):
            raise MemoryError("slab memory limit reached")
        if cls.free_slots:
            return cls.free_slots.pop()
        start = cls.end_offset
        chunk = memoryview(cls.end_page)[start:start + cls.size]
        cls.end_page_free -= 1
        if cls.end_page_free:
            cls.end_offset += cls.size
        else:
            cls.end_page = None
        return chunk

    def free(self, chunk: memoryview, size: int) -> None:
        """Return a chunk obtained for ``size`` bytes to its class's free list."""
        class_id = slab_class_id(size)
        if not POWER_SMALLEST <= class_id <= POWER_LARGEST:
            return
        self._classes[class_id].free_slots.append(chunk)

    def stats(self) -> str:
        """Report per-class usage in the memcached STAT text format."""
        lines = []
        active = 0
        for i in range(POWER_SMALLEST, POWER_LARGEST + 1):
            cls = self._classes[i]
            slabs = len(cls.pages)
            if not slabs:
                continue
            total = slabs * cls.perslab
            lines += [
                f"STAT {i}:chunk_size {cls.size}",
                f"STAT {i}:chunks_per_page {cls.perslab}",
                f"STAT {i}:total_pages {slabs}",
                f"STAT {i}:total_chunks {total}",
                f"STAT {i}:used_chunks {total - len(cls.free_slots)}",
                f"STAT {i}:free_chunks {len(cls.free_slots)}",
                f"STAT {i}:free_chunks_end {cls.end_page_free}",
            ]
            active += 1
        lines.append(f"STAT active_slabs {active}")
        lines.append(f"STAT total_malloced {self.mem_malloced}")
        return "\r\n".join(lines)