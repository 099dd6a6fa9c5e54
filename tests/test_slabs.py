import pytest

from lunarkit.slabs import (
    POWER_BLOCK,
    POWER_LARGEST,
    POWER_SMALLEST,
    SlabAllocator,
    slab_class_id,
)


def test_class_id_zero_size():
    assert slab_class_id(0) == 0


@pytest.mark.parametrize("size", [1, 2, 8])
def test_small_sizes_use_smallest_class(size):
    assert slab_class_id(size) == POWER_SMALLEST


def test_largest_class_and_beyond():
    assert slab_class_id(POWER_BLOCK) == POWER_LARGEST
    assert slab_class_id(POWER_BLOCK + 1) == 0


@pytest.mark.parametrize("size", [9, 16, 17, 100, 1000, 4097, 65536, 500000])
def test_class_fits_size(size):
    cid = slab_class_id(size)
    assert 2 ** (cid - 1) < size <= 2 ** cid


def test_alloc_returns_chunk_of_class_size():
    alloc = SlabAllocator()
    chunk = alloc.alloc(100)
    assert len(chunk) == 2 ** slab_class_id(100)


def test_chunks_do_not_overlap():
    alloc = SlabAllocator()
    a = alloc.alloc(16)
    b = alloc.alloc(16)
    a[:] = b"a" * len(a)
    b[:] = b"b" * len(b)
    assert bytes(a) == b"a" * len(a)
    assert bytes(b) == b"b" * len(b)


def test_freed_chunk_is_reused():
    alloc = SlabAllocator()
    chunk = alloc.alloc(32)
    alloc.free(chunk, 32)
    assert alloc.alloc(32) is chunk


def test_unsupported_size_raises():
    alloc = SlabAllocator()
    with pytest.raises(ValueError):
        alloc.alloc(POWER_BLOCK + 1)
    with pytest.raises(ValueError):
        alloc.alloc(0)


def test_limit_blocks_second_page():
    alloc = SlabAllocator(limit=POWER_BLOCK)
    alloc.alloc(POWER_BLOCK)
    with pytest.raises(MemoryError):
        alloc.alloc(POWER_BLOCK)
    assert alloc.mem_malloced == POWER_BLOCK


def test_new_slab_reports_limit():
    alloc = SlabAllocator(limit=POWER_BLOCK)
    assert alloc.new_slab(POWER_SMALLEST) is True
    assert alloc.new_slab(POWER_SMALLEST) is False


def test_largest_class_needs_page_per_item():
    alloc = SlabAllocator()
    alloc.alloc(POWER_BLOCK)
    alloc.alloc(POWER_BLOCK)
    assert alloc.mem_malloced == 2 * POWER_BLOCK


def test_stats_empty():
    alloc = SlabAllocator()
    assert alloc.stats() == "STAT active_slabs 0\r\nSTAT total_malloced 0"


def test_stats_after_allocation():
    alloc = SlabAllocator()
    chunk = alloc.alloc(POWER_BLOCK // 2)
    alloc.free(chunk, POWER_BLOCK // 2)
    cid = slab_class_id(POWER_BLOCK // 2)
    lines = alloc.stats().split("\r\n")
    assert f"STAT {cid}:chunk_size {POWER_BLOCK // 2}" in lines
    assert f"STAT {cid}:total_pages 1" in lines
    assert f"STAT {cid}:free_chunks 1" in lines
    assert lines[-2] == "STAT active_slabs 1"
    assert lines[-1] == f"STAT total_malloced {POWER_BLOCK}"