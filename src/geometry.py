"""
Structured read geometry and the descriptor grammar that produces it.

A descriptor looks like  1{b[9-10]f[CAGAGC]u[8]b[10]}2{r:}  where each mate
block lists pieces in read order:
    b / u / r / x   barcode, UMI, biological read, discard
    [n]             fixed length
    [l-h]           bounded length range (h - l <= 4)
    :               unbounded, runs to the end of the read
    f[SEQ]          fixed anchor sequence
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple, Union

from xform_errors import GeometryError

logger = logging.getLogger(__name__)

# Widest variable window the padding scheme can encode (max - min)
BOUNDED_RANGE_LIMIT = 4

PIECE_TAGS = ("b", "u", "r", "x")
DISCARD_TAG = "x"


@dataclass(frozen=True)
class FixedLength:
    length: int
    tag: str = "r"


@dataclass(frozen=True)
class BoundedRange:
    min_len: int
    max_len: int
    tag: str = "b"


@dataclass(frozen=True)
class AnchoredRange:
    anchor: bytes
    min_len: int
    max_len: int
    tag: str = "b"


@dataclass(frozen=True)
class UnboundedToEnd:
    tag: str = "r"


@dataclass(frozen=True)
class NonFunctional:
    """Anchor (matched exactly) or fixed-length spacer; never part of the output."""
    anchor: Optional[bytes] = None
    length: int = 0

    @property
    def span(self) -> int:
        return len(self.anchor) if self.anchor is not None else self.length


SegmentSpec = Union[FixedLength, BoundedRange, AnchoredRange, UnboundedToEnd, NonFunctional]
MateGeometry = Tuple[SegmentSpec, ...]


@dataclass(frozen=True)
class FragmentGeometry:
    read1: MateGeometry
    read2: MateGeometry

    def mate(self, mate_index: int) -> MateGeometry:
        return self.read1 if mate_index == 1 else self.read2


def is_variable(spec: SegmentSpec) -> bool:
    return isinstance(spec, (BoundedRange, AnchoredRange))


def emits_output(spec: SegmentSpec) -> bool:
    if isinstance(spec, NonFunctional):
        return False
    return spec.tag != DISCARD_TAG


def fixed_span(spec: SegmentSpec) -> Optional[int]:
    """Known length of a segment, or None when it is only known per read."""
    if isinstance(spec, FixedLength):
        return spec.length
    if isinstance(spec, NonFunctional):
        return spec.span
    return None


def min_span(spec: SegmentSpec) -> int:
    if isinstance(spec, (BoundedRange, AnchoredRange)):
        return spec.min_len
    if isinstance(spec, UnboundedToEnd):
        return 1
    return fixed_span(spec)


def describe_segment(spec: SegmentSpec) -> str:
    """Descriptor-grammar rendering of a single segment."""
    if isinstance(spec, FixedLength):
        return f"{spec.tag}[{spec.length}]"
    if isinstance(spec, (BoundedRange, AnchoredRange)):
        return f"{spec.tag}[{spec.min_len}-{spec.max_len}]"
    if isinstance(spec, UnboundedToEnd):
        return f"{spec.tag}:"
    if isinstance(spec, NonFunctional):
        if spec.anchor is not None:
            return f"f[{spec.anchor.decode('ascii')}]"
        return f"x[{spec.length}]"
    raise TypeError(f"Unknown segment spec: {spec!r}")


def padding_windows(geometry: FragmentGeometry) -> Set[Tuple[int, int]]:
    """Distinct (min, max) windows of emitted variable segments across both mates."""
    windows = set()
    for mate in (geometry.read1, geometry.read2):
        for spec in mate:
            if is_variable(spec) and emits_output(spec):
                windows.add((spec.min_len, spec.max_len))
    return windows


def _simplified_mate(mate: MateGeometry) -> str:
    rep = ""
    for spec in mate:
        if not emits_output(spec):
            continue
        if isinstance(spec, FixedLength):
            rep += f"{spec.tag}[{spec.length}]"
        elif is_variable(spec):
            # padded width is always max + 1
            rep += f"{spec.tag}[{spec.max_len + 1}]"
        elif isinstance(spec, UnboundedToEnd):
            rep += f"{spec.tag}:"
    return rep


def simplified_description(geometry: FragmentGeometry) -> str:
    """
    Fixed-layout descriptor matching the normalized output reads.
    Non-emitting pieces are left out because they are not written.
    """
    rep = ""
    if geometry.read1:
        rep += f"1{{{_simplified_mate(geometry.read1)}}}"
    if geometry.read2:
        rep += f"2{{{_simplified_mate(geometry.read2)}}}"
    return rep


MATE_BLOCK_PATTERN = re.compile(r"([12])\{([^{}]*)\}")
PIECE_PATTERN = re.compile(
    r"(?P<tag>[burx])(?:\[(?P<lo>\d+)(?:-(?P<hi>\d+))?\]|(?P<unbounded>:))"
    r"|f\[(?P<anchor>[ACGTN]+)\]"
)


def _tokenize_mate(body: str, mate_index: int) -> List[Dict]:
    pieces = []
    pos = 0
    while pos < len(body):
        match = PIECE_PATTERN.match(body, pos)
        if not match:
            raise GeometryError(
                f"Could not parse read {mate_index} geometry '{body}' at position {pos}: '{body[pos:]}'"
            )
        pieces.append(match.groupdict())
        pos = match.end()
    return pieces


def _lower_mate(body: str, mate_index: int) -> MateGeometry:
    pieces = _tokenize_mate(body, mate_index)
    specs: List[SegmentSpec] = []

    for i, piece in enumerate(pieces):
        if piece["anchor"] is not None:
            specs.append(NonFunctional(anchor=piece["anchor"].encode("ascii")))
            continue

        tag = piece["tag"]
        if piece["unbounded"]:
            if i != len(pieces) - 1:
                raise GeometryError(
                    f"Unbounded piece '{tag}:' must be the last piece of read {mate_index} geometry"
                )
            specs.append(UnboundedToEnd(tag=tag))
            continue

        lo = int(piece["lo"])
        if piece["hi"] is None:
            if lo == 0:
                raise GeometryError(f"Zero-length piece '{tag}[0]' in read {mate_index} geometry")
            if tag == DISCARD_TAG:
                specs.append(NonFunctional(length=lo))
            else:
                specs.append(FixedLength(lo, tag=tag))
            continue

        hi = int(piece["hi"])
        if hi < lo:
            raise GeometryError(f"Range '{tag}[{lo}-{hi}]' has max < min in read {mate_index} geometry")
        if hi - lo > BOUNDED_RANGE_LIMIT:
            raise GeometryError(
                f"Bounded range can have variable width at most {BOUNDED_RANGE_LIMIT} "
                f"but '{tag}[{lo}-{hi}]' has variable width {hi - lo}"
            )
        following = pieces[i + 1] if i + 1 < len(pieces) else None
        if following is not None and following["anchor"] is not None:
            specs.append(AnchoredRange(following["anchor"].encode("ascii"), lo, hi, tag=tag))
        else:
            specs.append(BoundedRange(lo, hi, tag=tag))

    return tuple(specs)


def parse_geometry(text: str) -> FragmentGeometry:
    """Parse a descriptor such as '1{b[16]u[12]x:}2{r:}' into a FragmentGeometry."""
    text = text.strip()
    mates: Dict[int, MateGeometry] = {}
    pos = 0
    while pos < len(text):
        match = MATE_BLOCK_PATTERN.match(text, pos)
        if not match:
            raise GeometryError(f"Could not parse geometry '{text}' at position {pos}")
        mate_index = int(match.group(1))
        if mate_index in mates:
            raise GeometryError(f"Read {mate_index} is described more than once in '{text}'")
        mates[mate_index] = _lower_mate(match.group(2), mate_index)
        pos = match.end()

    if not mates:
        raise GeometryError(f"Geometry '{text}' describes neither read 1 nor read 2")

    geometry = FragmentGeometry(read1=mates.get(1, ()), read2=mates.get(2, ()))
    logger.debug(f"Parsed geometry {text} -> {geometry}")
    return geometry
