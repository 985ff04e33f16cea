import pytest

from xform_config import XformConfig
from xform_errors import AnchorNotFound, XformError


class TestXformConfig:

    def test_defaults(self):
        config = XformConfig()
        assert config.output_format == "fasta"
        assert config.prefer_longest
        assert config.pad_quality_value == ord("I")
        assert config.buffer_bytes == 8 * 1024 * 1024

    def test_shortest_anchor_preference(self):
        assert not XformConfig(anchor_preference="shortest").prefer_longest

    @pytest.mark.parametrize("kwargs", [
        {"output_format": "bam"},
        {"pad_quality": ""},
        {"pad_quality": "II"},
        {"pad_quality": " "},
        {"anchor_preference": "fuzzy"},
        {"buffer_mb": 0},
        {"progress_interval": 0},
    ])
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            XformConfig(**kwargs)


def test_error_rendering():
    err = AnchorNotFound("Anchor CAGAGC not found")
    assert str(err) == "AnchorNotFound: Anchor CAGAGC not found"
    err.add_context(record_index=12345, mate=2, segment_index=0)
    assert str(err) == "AnchorNotFound (record 12,345, mate 2, segment 0): Anchor CAGAGC not found"
    assert isinstance(err, XformError)
