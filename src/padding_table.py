import functools
from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

import numpy as np

from geometry import BOUNDED_RANGE_LIMIT
from xform_errors import GeometryError, LengthOutOfWindow


# Final base of the suffix for max, max-1, ... max-4. Every entry is distinct,
# so the last byte of an encoded segment alone identifies its original length.
SUFFIX_TERMINALS = b"ACGTN"
SUFFIX_FILL = b"A"


@dataclass(frozen=True)
class PaddingTable:
    min_len: int
    max_len: int
    suffixes: Dict[int, bytes]
    suffix_arrays: Dict[int, np.ndarray] = field(compare=False, repr=False)
    length_by_terminal: Dict[int, int] = field(compare=False, repr=False)

    @property
    def output_length(self) -> int:
        return self.max_len + 1

    def suffix_for(self, length: int) -> bytes:
        try:
            return self.suffixes[length]
        except KeyError:
            raise LengthOutOfWindow(
                f"Length {length} has no padding entry in window [{self.min_len}, {self.max_len}]"
            ) from None

    def suffix_array_for(self, length: int) -> np.ndarray:
        try:
            return self.suffix_arrays[length]
        except KeyError:
            raise LengthOutOfWindow(
                f"Length {length} has no padding entry in window [{self.min_len}, {self.max_len}]"
            ) from None

    def decode_length(self, encoded: bytes) -> int:
        """Recover the original segment length from the trailing byte of an encoded segment."""
        if len(encoded) != self.output_length:
            raise LengthOutOfWindow(
                f"Encoded segment has width {len(encoded)}, expected {self.output_length}"
            )
        terminal = encoded[-1]
        if terminal not in self.length_by_terminal:
            raise LengthOutOfWindow(
                f"Trailing base {chr(terminal)!r} does not identify a length in "
                f"window [{self.min_len}, {self.max_len}]"
            )
        return self.length_by_terminal[terminal]

    def strip(self, encoded: bytes) -> bytes:
        """Return the original content of an encoded segment."""
        return encoded[:self.decode_length(encoded)]


@functools.lru_cache(maxsize=None)
def build_padding_table(min_len: int, max_len: int) -> PaddingTable:
    """
    Build the suffix table for window [min_len, max_len].
    The suffix for max_len - k is k fill bases followed by SUFFIX_TERMINALS[k],
    so content + suffix always has width max_len + 1.
    Cached: windows with equal bounds share one read-only table.
    """
    if max_len < min_len:
        raise GeometryError(f"Padding window [{min_len}, {max_len}] has max < min")
    if min_len < 0:
        raise GeometryError(f"Padding window [{min_len}, {max_len}] has negative min")
    if max_len - min_len > BOUNDED_RANGE_LIMIT:
        raise GeometryError(
            f"Padding window [{min_len}, {max_len}] is wider than the supported "
            f"variable width {BOUNDED_RANGE_LIMIT}"
        )

    suffixes = {}
    suffix_arrays = {}
    length_by_terminal = {}
    for k, length in enumerate(range(max_len, min_len - 1, -1)):
        suffix = SUFFIX_FILL * k + SUFFIX_TERMINALS[k:k + 1]
        suffixes[length] = suffix
        suffix_arrays[length] = np.frombuffer(suffix, dtype=np.uint8)
        length_by_terminal[SUFFIX_TERMINALS[k]] = length

    return PaddingTable(min_len, max_len, suffixes, suffix_arrays, length_by_terminal)


def build_padding_tables(windows: Iterable[Tuple[int, int]]) -> Dict[Tuple[int, int], PaddingTable]:
    """Build every table a run needs, once, before the main loop."""
    return {window: build_padding_table(*window) for window in sorted(windows)}
