import pytest

from padding_table import build_padding_table, build_padding_tables
from xform_errors import GeometryError, LengthOutOfWindow

WINDOWS = [(lo, lo + width) for lo in (0, 1, 8, 16) for width in range(5)]


class TestPaddingTable:

    def test_boundary_recovery_for_8_to_10(self):
        table = build_padding_table(8, 10)
        assert table.output_length == 11
        assert table.suffix_for(10) == b"A"
        assert table.suffix_for(9) == b"AC"
        assert table.suffix_for(8) == b"AAG"

    def test_widest_window_uses_five_terminals(self):
        table = build_padding_table(5, 9)
        assert [table.suffix_for(n) for n in range(9, 4, -1)] == [b"A", b"AC", b"AAG", b"AAAT", b"AAAAN"]

    @pytest.mark.parametrize("lo,hi", WINDOWS)
    def test_every_length_pads_to_max_plus_one(self, lo, hi):
        table = build_padding_table(lo, hi)
        for length in range(lo, hi + 1):
            assert length + len(table.suffix_for(length)) == hi + 1

    @pytest.mark.parametrize("lo,hi", WINDOWS)
    def test_suffixes_differ_in_final_base(self, lo, hi):
        table = build_padding_table(lo, hi)
        terminals = [table.suffix_for(n)[-1] for n in range(lo, hi + 1)]
        assert len(set(terminals)) == len(terminals)

    @pytest.mark.parametrize("lo,hi", WINDOWS)
    def test_suffixes_use_sequence_bases_only(self, lo, hi):
        table = build_padding_table(lo, hi)
        for suffix in table.suffixes.values():
            assert set(suffix) <= set(b"ACGTN")

    def test_construction_is_idempotent(self):
        first = build_padding_table(12, 15)
        build_padding_table.cache_clear()
        second = build_padding_table(12, 15)
        assert first is not second
        assert first.suffixes == second.suffixes
        assert first == second

    def test_equal_windows_share_a_table(self):
        assert build_padding_table(3, 6) is build_padding_table(3, 6)

    def test_max_below_min_is_rejected(self):
        with pytest.raises(GeometryError):
            build_padding_table(10, 8)

    def test_window_wider_than_four_is_rejected(self):
        with pytest.raises(GeometryError):
            build_padding_table(8, 13)

    def test_length_outside_window_has_no_suffix(self):
        table = build_padding_table(8, 10)
        with pytest.raises(LengthOutOfWindow):
            table.suffix_for(7)
        with pytest.raises(LengthOutOfWindow):
            table.suffix_array_for(11)

    def test_suffix_arrays_match_bytes(self):
        table = build_padding_table(8, 10)
        for length, suffix in table.suffixes.items():
            assert table.suffix_array_for(length).tobytes() == suffix


class TestPaddingDecode:

    @pytest.mark.parametrize("length", [8, 9, 10])
    def test_trailing_base_recovers_length(self, length):
        table = build_padding_table(8, 10)
        content = b"GATTACAGTC"[:length]
        encoded = content + table.suffix_for(length)
        assert table.decode_length(encoded) == length
        assert table.strip(encoded) == content

    def test_content_ending_in_a_does_not_confuse_decoding(self):
        table = build_padding_table(8, 10)
        encoded = b"AAAAAAAA" + table.suffix_for(8)
        assert table.decode_length(encoded) == 8

    def test_wrong_width_is_rejected(self):
        table = build_padding_table(8, 10)
        with pytest.raises(LengthOutOfWindow):
            table.decode_length(b"ACGTACGTA")

    def test_unknown_terminal_is_rejected(self):
        table = build_padding_table(8, 10)
        with pytest.raises(LengthOutOfWindow):
            table.decode_length(b"ACGTACGTACT")


def test_build_padding_tables_keys_by_window():
    tables = build_padding_tables({(8, 10), (4, 6)})
    assert sorted(tables) == [(4, 6), (8, 10)]
    assert tables[(4, 6)].output_length == 7
