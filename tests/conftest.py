import pytest
from cachesim.config import CacheGeometry
from cachesim.trace.access import AccessKind, MemoryAccess


@pytest.fixture
def direct_mapped_geometry():
    """1-way, 4B lines, 16B total -> 4 sets (2 offset bits, 2 index bits)."""
    return CacheGeometry(total_size_bytes=16, line_size_bytes=4, associativity=1)


@pytest.fixture
def two_way_geometry():
    """2-way, 4B lines, 32B total -> 4 sets."""
    return CacheGeometry(total_size_bytes=32, line_size_bytes=4, associativity=2)


@pytest.fixture
def make_trace():
    """Builds a trace of reads from a list of addresses."""
    def _make(addresses, kind=AccessKind.READ):
        return [MemoryAccess(sequence_number=i, kind=kind, size_bytes=4, address=a)
                for i, a in enumerate(addresses)]
    return _make
