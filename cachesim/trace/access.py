from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class AccessKind(str, Enum):
    """Direction of a memory access, keyed by its trace token."""

    READ = "R"
    WRITE = "W"

    @property
    def label(self) -> str:
        return "Read" if self is AccessKind.READ else "Write"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MemoryAccess:
    """A single record of the memory trace."""
    sequence_number: int
    kind: AccessKind
    size_bytes: int
    address: int
    line_number: int | None = None  # 1-based source line, diagnostics only
