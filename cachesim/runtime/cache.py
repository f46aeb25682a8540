from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List

from ..config import CacheGeometry
from ..errors import ConfigurationError
from ..trace.access import MemoryAccess
from .decoder import AddressDecoder, AddressFields


class CacheLine:
    """Represents a single occupied line in a cache set."""
    def __init__(self, tag: int):
        self.tag = tag
        self.age = 0  # 0 = most recently used

    def __repr__(self) -> str:
        return f"CacheLine(tag={self.tag:#x}, age={self.age})"


class CacheSet:
    """Represents a set of cache lines, implementing LRU replacement.

    Recency is tracked with relative ages: every access to the set makes the
    touched line age 0 and ages every other occupied line by exactly one.
    """
    def __init__(self, index: int, associativity: int):
        self.index = index
        self.associativity = associativity
        self.lines: List[CacheLine] = []
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self.lines)

    def is_full(self) -> bool:
        return len(self.lines) >= self.associativity

    def tags(self) -> List[int]:
        """Resident tags in slot order."""
        return [line.tag for line in self.lines]

    def _touch(self, target: CacheLine):
        for line in self.lines:
            if line is not target:
                line.age += 1
        target.age = 0

    def lookup(self, tag: int) -> bool:
        """Finds a line with a given tag. If found, makes it the MRU line."""
        for line in self.lines:
            if line.tag == tag:
                self._touch(line)
                return True
        return False

    def find_lru_line(self) -> CacheLine:
        """Returns the oldest line; on equal ages the earliest slot wins."""
        if not self.lines:
            raise ValueError(f"Set {self.index} is empty, nothing to evict.")
        victim = self.lines[0]
        for line in self.lines[1:]:
            if line.age > victim.age:
                victim = line
        return victim

    def insert(self, tag: int) -> int | None:
        """Places a tag after a miss. Returns the evicted tag, if any."""
        if any(line.tag == tag for line in self.lines):
            raise ValueError(f"Tag {tag:#x} is already resident in set {self.index}.")

        if not self.is_full():
            line = CacheLine(tag)
            self.lines.append(line)
            self._touch(line)
            return None

        victim = self.find_lru_line()
        evicted = victim.tag
        victim.tag = tag
        self._touch(victim)
        return evicted


@dataclass(frozen=True)
class AccessOutcome:
    """The result of replaying one trace record."""
    access: MemoryAccess
    fields: AddressFields
    hit: bool
    evicted_tag: int | None = None


@dataclass
class CacheStats:
    """Counter snapshot of a cache table."""
    hits: int = 0
    misses: int = 0
    accesses: int = 0
    per_set: Dict[int, Dict[str, int]] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float | None:
        """Hits / accesses, undefined (None) before the first access."""
        return self.hits / self.accesses if self.accesses else None

    @property
    def miss_rate(self) -> float | None:
        return self.misses / self.accesses if self.accesses else None


class CacheTable:
    """
    The whole set-associative cache.
    It owns one CacheSet per index value and keeps running hit/miss counters.
    """
    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry
        self.decoder = AddressDecoder(geometry)
        self.sets = [CacheSet(i, geometry.associativity) for i in range(geometry.num_sets)]

        self.total_hits = 0
        self.total_misses = 0
        self.total_accesses = 0

    def get_set(self, index: int) -> CacheSet:
        if not 0 <= index < len(self.sets):
            raise ConfigurationError(f"Set index {index} is out of range (0-{len(self.sets) - 1}).")
        return self.sets[index]

    def access(self, memory_access: MemoryAccess) -> AccessOutcome:
        """Classifies one access as a hit or miss and updates the cache."""
        fields = self.decoder.decode(memory_access.address)
        cache_set = self.get_set(fields.index)

        evicted = None
        hit = cache_set.lookup(fields.tag)
        if hit:
            self.total_hits += 1
            cache_set.hits += 1
        else:
            self.total_misses += 1
            cache_set.misses += 1
            evicted = cache_set.insert(fields.tag)
        self.total_accesses += 1

        return AccessOutcome(access=memory_access, fields=fields, hit=hit, evicted_tag=evicted)

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self.total_hits,
            misses=self.total_misses,
            accesses=self.total_accesses,
            per_set={s.index: {"hits": s.hits, "misses": s.misses} for s in self.sets},
        )
