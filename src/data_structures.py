from dataclasses import dataclass
from typing import List, Optional

import numpy as np


EMPTY_ARRAY = np.zeros(0, dtype=np.uint8)


@dataclass
class FASTQRecord:
    index: int
    header: bytes
    sequence: np.ndarray
    quality: Optional[np.ndarray] = None  # None for FASTA input

    @property
    def has_quality(self) -> bool:
        return self.quality is not None


@dataclass
class ResolvedSegment:
    """Concrete extent of one geometry segment inside a raw read buffer."""
    offset: int
    length: int
    degenerate: bool = False  # unanchored range, length assumed


@dataclass
class NormalizedRead:
    header: bytes
    sequence: np.ndarray
    quality: Optional[np.ndarray] = None


@dataclass
class NormalizedReadPair:
    read1: NormalizedRead
    read2: NormalizedRead


@dataclass
class MateResolution:
    """Per-mate outcome of resolving one read, handed to the stats collector."""
    segments: List[ResolvedSegment]

    @property
    def observed_lengths(self) -> List[int]:
        return [s.length for s in self.segments]

    @property
    def degenerate_count(self) -> int:
        # discard ranges count too, their assumed length places every later segment
        return sum(1 for s in self.segments if s.degenerate)
