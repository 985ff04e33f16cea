import functools
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np
from numba import njit

from data_structures import ResolvedSegment
from geometry import (AnchoredRange, BoundedRange, FixedLength, MateGeometry,
                      NonFunctional, UnboundedToEnd, fixed_span, min_span)
from xform_errors import AnchorNotFound, GeometryMismatch, TruncatedRead


@njit
def find_anchor(read, anchor, first, last, prefer_longest):
    """
    Exact search for `anchor` starting anywhere in read[first..last] (inclusive).
    Returns the start position, or -1 when no admissible position matches.

    WARNING: This function is JIT-compiled with @njit. Only uint8 arrays and
    integer/bool scalars may be passed in.
    """
    m = anchor.shape[0]
    limit = read.shape[0] - m
    if last > limit:
        last = limit
    if first < 0:
        first = 0
    if first > last:
        return -1

    if prefer_longest:
        start = last
        stop = first - 1
        step = -1
    else:
        start = first
        stop = last + 1
        step = 1

    for pos in range(start, stop, step):
        matched = True
        for j in range(m):
            if read[pos + j] != anchor[j]:
                matched = False
                break
        if matched:
            return pos
    return -1


@functools.lru_cache(maxsize=None)
def _anchor_array(anchor: bytes) -> np.ndarray:
    return np.frombuffer(anchor, dtype=np.uint8)


@functools.lru_cache(maxsize=None)
def _tail_profile(geometry: MateGeometry) -> Tuple[Tuple[Optional[int], int], ...]:
    """
    For every segment index i: (length of the segments after i when all of
    them are fixed, else None; minimum number of bytes they need).
    """
    profile = []
    for i in range(len(geometry)):
        tail = geometry[i + 1:]
        spans = [fixed_span(spec) for spec in tail]
        rigid = None if (not tail or any(s is None for s in spans)) else sum(spans)
        profile.append((rigid, sum(min_span(spec) for spec in tail)))
    return tuple(profile)


def _resolve_bounded(spec: BoundedRange, index: int, cursor: int, remaining: int,
                     rigid_tail: Optional[int], min_tail: int) -> ResolvedSegment:
    # bases left over after a rigid tail are trailing discard, as for fixed-only geometries
    length = min(spec.max_len, remaining - min_tail)
    if length >= spec.min_len:
        return ResolvedSegment(cursor, length, degenerate=rigid_tail is None)

    if rigid_tail is not None:
        raise GeometryMismatch(
            f"Inferred length {remaining - rigid_tail} is below window [{spec.min_len}, {spec.max_len}] "
            f"({remaining} bases remain, {rigid_tail} needed by later segments)",
            segment_index=index,
        )
    raise TruncatedRead(
        f"Only {remaining} bases remain but the range needs at least {spec.min_len} "
        f"plus {min_tail} for later segments",
        segment_index=index,
    )


def _anchor_positions(read: np.ndarray, anchor: np.ndarray, first: int, last: int,
                      prefer_longest: bool) -> Iterator[int]:
    """Every admissible anchor start in read[first..last], most preferred first."""
    while first <= last:
        pos = find_anchor(read, anchor, first, last, prefer_longest)
        if pos < 0:
            return
        yield pos
        if prefer_longest:
            last = pos - 1
        else:
            first = pos + 1


def _resolve_anchored(geometry: MateGeometry, index: int, read: np.ndarray, cursor: int,
                      tails, prefer_longest: bool) -> List[ResolvedSegment]:
    """
    Resolve the anchored range at `index` together with everything after it.
    When the rest of the read does not fit behind the preferred anchor hit,
    the next admissible hit is tried; the first failure is raised once all
    of them are exhausted.
    """
    spec = geometry[index]
    first_error = None
    for pos in _anchor_positions(read, _anchor_array(spec.anchor), cursor + spec.min_len,
                                 cursor + spec.max_len, prefer_longest):
        try:
            rest = _resolve_from(geometry, read, index + 1, pos, tails, prefer_longest)
        except (TruncatedRead, GeometryMismatch, AnchorNotFound) as e:
            if first_error is None:
                first_error = e
            continue
        return [ResolvedSegment(cursor, pos - cursor)] + rest

    if first_error is not None:
        raise first_error
    raise AnchorNotFound(
        f"Anchor {spec.anchor.decode('ascii')} not found {spec.min_len}-{spec.max_len} "
        f"bases after offset {cursor}",
        segment_index=index,
    )


def _resolve_from(geometry: MateGeometry, read: np.ndarray, start: int, cursor: int,
                  tails, prefer_longest: bool) -> List[ResolvedSegment]:
    n = read.shape[0]
    resolved = []

    for i in range(start, len(geometry)):
        spec = geometry[i]
        remaining = n - cursor

        if isinstance(spec, FixedLength):
            if remaining < spec.length:
                raise TruncatedRead(
                    f"Fixed segment needs {spec.length} bases but only {remaining} remain",
                    segment_index=i,
                )
            segment = ResolvedSegment(cursor, spec.length)

        elif isinstance(spec, NonFunctional):
            span = spec.span
            if spec.anchor is not None:
                if read[cursor:cursor + span].tobytes() != spec.anchor:
                    raise AnchorNotFound(
                        f"Anchor {spec.anchor.decode('ascii')} expected at offset {cursor}",
                        segment_index=i,
                    )
            elif remaining < span:
                raise TruncatedRead(
                    f"Spacer needs {span} bases but only {remaining} remain",
                    segment_index=i,
                )
            segment = ResolvedSegment(cursor, span)

        elif isinstance(spec, AnchoredRange):
            return resolved + _resolve_anchored(geometry, i, read, cursor, tails, prefer_longest)

        elif isinstance(spec, BoundedRange):
            rigid_tail, min_tail = tails[i]
            segment = _resolve_bounded(spec, i, cursor, remaining, rigid_tail, min_tail)

        elif isinstance(spec, UnboundedToEnd):
            if remaining < 1:
                raise TruncatedRead("No bases remain for the unbounded segment", segment_index=i)
            segment = ResolvedSegment(cursor, remaining)

        else:
            raise TypeError(f"Unknown segment spec: {spec!r}")

        resolved.append(segment)
        cursor = segment.offset + segment.length

    return resolved


def resolve_segments(geometry: MateGeometry, read: Union[np.ndarray, bytes],
                     prefer_longest: bool = True) -> List[ResolvedSegment]:
    """
    Compute the (offset, length) of every segment of `geometry` in `read`,
    left to right. Raises TruncatedRead, GeometryMismatch or AnchorNotFound;
    the read buffer is never modified.
    """
    if isinstance(read, (bytes, bytearray)):
        read = np.frombuffer(bytes(read), dtype=np.uint8)

    geometry = tuple(geometry)
    return _resolve_from(geometry, read, 0, 0, _tail_profile(geometry), prefer_longest)
