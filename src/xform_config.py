from dataclasses import dataclass

from fastq_writer import OUTPUT_FORMATS

ANCHOR_PREFERENCES = ("longest", "shortest")


@dataclass(frozen=True)
class XformConfig:
    """
    Options for one transform run.

    anchor_preference picks among several exact anchor hits inside a
    variable window: "longest" keeps the hit furthest from the cursor,
    "shortest" the nearest one. Anchors are always matched exactly.
    """
    output_format: str = "fasta"
    pad_quality: str = "I"
    anchor_preference: str = "longest"
    buffer_mb: int = 8
    progress_interval: int = 100_000

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")
        if len(self.pad_quality) != 1 or not (33 <= ord(self.pad_quality) <= 126):
            raise ValueError(f"pad_quality must be a single printable ASCII character, got {self.pad_quality!r}")
        if self.anchor_preference not in ANCHOR_PREFERENCES:
            raise ValueError(
                f"anchor_preference must be one of {ANCHOR_PREFERENCES}, got {self.anchor_preference!r}"
            )
        if self.buffer_mb < 1:
            raise ValueError(f"buffer_mb must be at least 1, got {self.buffer_mb}")
        if self.progress_interval < 1:
            raise ValueError(f"progress_interval must be at least 1, got {self.progress_interval}")

    @property
    def prefer_longest(self) -> bool:
        return self.anchor_preference == "longest"

    @property
    def pad_quality_value(self) -> int:
        return ord(self.pad_quality)

    @property
    def buffer_bytes(self) -> int:
        return self.buffer_mb * 1024 * 1024
