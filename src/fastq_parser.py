import gzip
import logging
from typing import Iterator, List, Optional

import numpy as np

from data_structures import FASTQRecord

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def open_sequence_file(path: str, buffer_size: int = 1024 * 1024):
    """Open a FASTA/FASTQ file for binary reading, transparently decompressing gzip."""
    with open(path, "rb") as probe:
        magic = probe.read(2)
    if magic == GZIP_MAGIC:
        logger.debug(f"Reading gzip-compressed input {path}")
        return gzip.open(path, "rb")
    return open(path, "rb", buffering=buffer_size)


def _next_nonblank(lines: Iterator[bytes]) -> Optional[bytes]:
    for line in lines:
        if line:
            return line
    return None


def _parse_fastq(lines: Iterator[bytes], header: bytes, path: str) -> Iterator[FASTQRecord]:
    index = 0
    while header is not None:
        if not header.startswith(b"@"):
            raise ValueError(f"{path}: record {index:,} does not start with '@': {header[:50]!r}")

        seq = next(lines, None)
        plus = next(lines, None)
        qual = next(lines, None)
        if qual is None:
            raise ValueError(f"{path}: record {index:,} is truncated")
        if not plus.startswith(b"+"):
            raise ValueError(f"{path}: record {index:,} is missing the '+' separator line")
        if len(qual) != len(seq):
            raise ValueError(
                f"{path}: record {index:,} has {len(seq)} bases but {len(qual)} quality values"
            )

        yield FASTQRecord(
            index=index,
            header=header[1:],
            sequence=np.frombuffer(seq, dtype=np.uint8),
            quality=np.frombuffer(qual, dtype=np.uint8),
        )
        index += 1
        header = _next_nonblank(lines)


def _parse_fasta(lines: Iterator[bytes], header: bytes, path: str) -> Iterator[FASTQRecord]:
    index = 0
    seq_lines: List[bytes] = []
    for line in lines:
        if line.startswith(b">"):
            yield FASTQRecord(index, header[1:], np.frombuffer(b"".join(seq_lines), dtype=np.uint8))
            index += 1
            header = line
            seq_lines = []
        elif line:
            seq_lines.append(line)
    yield FASTQRecord(index, header[1:], np.frombuffer(b"".join(seq_lines), dtype=np.uint8))


def read_fastx_records(path: str, buffer_size: int = 1024 * 1024) -> Iterator[FASTQRecord]:
    """
    Stream records from a FASTA or FASTQ file (optionally gzipped) in file order.
    Format is detected from the first record marker. FASTA records carry no quality (None).
    """
    with open_sequence_file(path, buffer_size) as infile:
        lines = (line.rstrip(b"\r\n") for line in infile)
        first = _next_nonblank(lines)
        if first is None:
            logger.warning(f"Input file {path} contains no records")
            return
        if first.startswith(b"@"):
            yield from _parse_fastq(lines, first, path)
        elif first.startswith(b">"):
            yield from _parse_fasta(lines, first, path)
        else:
            raise ValueError(f"{path}: not a FASTA or FASTQ file (starts with {first[:20]!r})")
