from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List

from ..config import CacheGeometry
from ..trace.access import MemoryAccess
from ..utils.logging import get_logger
from .cache import AccessOutcome, CacheStats, CacheTable

logger = get_logger(__name__)


@dataclass
class ReplayResult:
    """Ordered outcome log and final counters of one replay."""
    outcomes: List[AccessOutcome] = field(default_factory=list)
    stats: CacheStats = field(default_factory=CacheStats)


class TraceReplayer:
    """Replays a trace, one access at a time and in trace order, against a fresh cache."""

    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry

    def replay(self, trace: Iterable[MemoryAccess]) -> ReplayResult:
        table = CacheTable(self.geometry)
        outcomes: List[AccessOutcome] = []
        for access in trace:
            outcomes.append(table.access(access))

        stats = table.stats()
        logger.debug("Replayed %d accesses: %d hits, %d misses",
                     stats.accesses, stats.hits, stats.misses)
        return ReplayResult(outcomes=outcomes, stats=stats)


def run(trace: Iterable[MemoryAccess], geometry: CacheGeometry) -> ReplayResult:
    """
    Runs the simulation for a given trace and cache geometry.

    This is the main entry point for the runtime simulation.
    """
    logger.info(
        "Running simulation: %dB cache, %dB lines, %d-way, %d sets",
        geometry.total_size_bytes, geometry.line_size_bytes,
        geometry.associativity, geometry.num_sets,
    )
    return TraceReplayer(geometry).replay(trace)
