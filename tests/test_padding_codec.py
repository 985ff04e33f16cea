import numpy as np
import pytest

from conftest import SCISEQ3_READS, as_array
from data_structures import ResolvedSegment
from geometry import (AnchoredRange, BoundedRange, FixedLength, NonFunctional,
                      UnboundedToEnd, padding_windows, parse_geometry)
from padding_codec import encode_mate, encode_segment, encode_segment_quality
from padding_table import build_padding_table, build_padding_tables
from segment_resolver import resolve_segments
from xform_errors import LengthOutOfWindow

READ = as_array("GATTACAGTCCAGAGCTTTT")


class TestEncodeSegment:

    def test_fixed_segment_is_copied_verbatim(self):
        encoded = encode_segment(FixedLength(6, "b"), ResolvedSegment(2, 6), READ)
        assert encoded.tobytes() == b"TTACAG"

    def test_unbounded_segment_is_copied_verbatim(self):
        encoded = encode_segment(UnboundedToEnd("r"), ResolvedSegment(16, 4), READ)
        assert encoded.tobytes() == b"TTTT"

    @pytest.mark.parametrize("length,expected", [
        (10, b"GATTACAGTC" + b"A"),
        (9, b"GATTACAGT" + b"AC"),
        (8, b"GATTACAG" + b"AAG"),
    ])
    def test_variable_segment_is_padded_to_max_plus_one(self, length, expected):
        table = build_padding_table(8, 10)
        spec = AnchoredRange(b"CAGAGC", 8, 10, "b")
        encoded = encode_segment(spec, ResolvedSegment(0, length), READ, table)
        assert encoded.tobytes() == expected
        assert len(encoded) == 11

    def test_non_functional_segments_emit_nothing(self):
        assert len(encode_segment(NonFunctional(anchor=b"CAGAGC"), ResolvedSegment(10, 6), READ)) == 0
        assert len(encode_segment(UnboundedToEnd("x"), ResolvedSegment(10, 10), READ)) == 0

    def test_length_without_table_entry_is_invariant_violation(self):
        table = build_padding_table(8, 10)
        with pytest.raises(LengthOutOfWindow):
            encode_segment(BoundedRange(8, 10, "b"), ResolvedSegment(0, 7), READ, table)

    def test_variable_segment_requires_table(self):
        with pytest.raises(LengthOutOfWindow):
            encode_segment(BoundedRange(8, 10, "b"), ResolvedSegment(0, 9), READ)

    def test_quality_padding(self):
        table = build_padding_table(8, 10)
        quality = as_array("#" * 20)
        encoded = encode_segment_quality(BoundedRange(8, 10, "b"), ResolvedSegment(0, 8), quality,
                                         table, ord("I"))
        assert encoded.tobytes() == b"########III"


class TestEncodeMate:

    @pytest.mark.parametrize("read,should_parse,barcode_len",
                             [r for r in SCISEQ3_READS if r[1]])
    def test_sciseq3_reads(self, sciseq3_geometry, read, should_parse, barcode_len):
        geometry = sciseq3_geometry.read1
        tables = build_padding_tables(padding_windows(sciseq3_geometry))
        arr = as_array(read)
        sequence, quality = encode_mate(geometry, resolve_segments(geometry, arr), arr, tables)
        suffix = {10: "A", 9: "AC"}[barcode_len]
        umi_start = barcode_len + 6
        expected = read[:barcode_len] + suffix + read[umi_start:umi_start + 18]
        assert sequence.tobytes().decode() == expected
        assert len(sequence) == 29
        assert quality is None

    def test_anchor_and_spacer_never_in_output(self):
        geometry = parse_geometry("1{b[4]x[3]u[2-3]f[GGGG]r[2]}").read1
        read = as_array("ACGTTTTCAGGGGAT")
        tables = build_padding_tables({(2, 3)})
        sequence, _ = encode_mate(geometry, resolve_segments(geometry, read), read, tables)
        assert sequence.tobytes() == b"ACGT" + b"CA" + b"AC" + b"AT"

    def test_quality_follows_sequence_layout(self):
        geometry = parse_geometry("1{b[2-3]f[GG]r:}").read1
        read = as_array("ACGGTTT")
        quality = as_array("ABCDEFG")
        tables = build_padding_tables({(2, 3)})
        sequence, out_quality = encode_mate(geometry, resolve_segments(geometry, read), read, tables,
                                            quality, ord("!"))
        assert sequence.tobytes() == b"ACAC" + b"TTT"
        assert out_quality.tobytes() == b"AB!!" + b"EFG"

    def test_missing_table_reports_segment(self):
        geometry = parse_geometry("1{b[4]u[2-3]}").read1
        read = as_array("ACGTCA")
        with pytest.raises(LengthOutOfWindow) as excinfo:
            encode_mate(geometry, resolve_segments(geometry, read), read, {})
        assert excinfo.value.segment_index == 1

    def test_encoding_is_deterministic(self, sciseq3_geometry):
        geometry = sciseq3_geometry.read1
        tables = build_padding_tables(padding_windows(sciseq3_geometry))
        arr = as_array(SCISEQ3_READS[0][0])
        first, _ = encode_mate(geometry, resolve_segments(geometry, arr), arr, tables)
        second, _ = encode_mate(geometry, resolve_segments(geometry, arr), arr, tables)
        assert np.array_equal(first, second)

    def test_empty_geometry_gives_empty_read(self):
        sequence, quality = encode_mate((), [], as_array("ACGT"), {}, as_array("IIII"))
        assert len(sequence) == 0
        assert len(quality) == 0
