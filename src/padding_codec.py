from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from data_structures import EMPTY_ARRAY, ResolvedSegment
from geometry import MateGeometry, SegmentSpec, emits_output, is_variable
from padding_table import PaddingTable
from xform_errors import LengthOutOfWindow


def encode_segment(spec: SegmentSpec, segment: ResolvedSegment, read: np.ndarray,
                   table: Optional[PaddingTable] = None) -> np.ndarray:
    """
    Encode one resolved segment.
    Fixed and unbounded segments are copied verbatim, variable segments get the
    suffix for their observed length, non-emitting segments produce nothing.
    """
    if not emits_output(spec):
        return EMPTY_ARRAY

    content = read[segment.offset:segment.offset + segment.length]
    if not is_variable(spec):
        return content

    if table is None:
        raise LengthOutOfWindow(f"No padding table supplied for window [{spec.min_len}, {spec.max_len}]")
    encoded = np.concatenate((content, table.suffix_array_for(segment.length)))
    if encoded.shape[0] != table.output_length:
        raise LengthOutOfWindow(
            f"Encoded width {encoded.shape[0]} differs from {table.output_length} "
            f"for observed length {segment.length}"
        )
    return encoded


def encode_segment_quality(spec: SegmentSpec, segment: ResolvedSegment, quality: np.ndarray,
                           table: Optional[PaddingTable], pad_quality: int) -> np.ndarray:
    """Quality counterpart of encode_segment: padding bases get `pad_quality`."""
    if not emits_output(spec):
        return EMPTY_ARRAY

    content = quality[segment.offset:segment.offset + segment.length]
    if not is_variable(spec):
        return content

    if table is None:
        raise LengthOutOfWindow(f"No padding table supplied for window [{spec.min_len}, {spec.max_len}]")
    pad = np.full(table.output_length - segment.length, pad_quality, dtype=np.uint8)
    return np.concatenate((content, pad))


def _table_for(spec: SegmentSpec, tables: Dict[Tuple[int, int], PaddingTable]) -> Optional[PaddingTable]:
    if not (is_variable(spec) and emits_output(spec)):
        return None
    try:
        return tables[(spec.min_len, spec.max_len)]
    except KeyError:
        raise LengthOutOfWindow(
            f"No padding table was built for window [{spec.min_len}, {spec.max_len}]"
        ) from None


def encode_mate(geometry: MateGeometry, resolved: Sequence[ResolvedSegment], read: np.ndarray,
                tables: Dict[Tuple[int, int], PaddingTable], quality: Optional[np.ndarray] = None,
                pad_quality: int = ord("I")) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Assemble the normalized sequence (and quality, when given) of one mate
    by concatenating its encoded segments in geometry order.
    """
    seq_parts: List[np.ndarray] = []
    qual_parts: List[np.ndarray] = []

    for i, (spec, segment) in enumerate(zip(geometry, resolved)):
        try:
            table = _table_for(spec, tables)
            seq_parts.append(encode_segment(spec, segment, read, table))
            if quality is not None:
                qual_parts.append(encode_segment_quality(spec, segment, quality, table, pad_quality))
        except LengthOutOfWindow as e:
            raise e.add_context(segment_index=i)

    sequence = np.concatenate(seq_parts) if seq_parts else EMPTY_ARRAY
    if quality is None:
        return sequence, None
    return sequence, (np.concatenate(qual_parts) if qual_parts else EMPTY_ARRAY)
