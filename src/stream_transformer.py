"""
Single-pass, strictly ordered transform of paired reads into a fixed geometry.

Output pair i always corresponds to input pair i. Any per-record failure
aborts the run; nothing is skipped, so the two output files can never
drift out of step.
"""
import logging
import tempfile
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import closing
from dataclasses import dataclass
from itertools import zip_longest
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from data_structures import (FASTQRecord, MateResolution, NormalizedRead,
                             NormalizedReadPair)
from fastq_parser import read_fastx_records
from fastq_writer import write_read_pair
from geometry import FragmentGeometry, MateGeometry, padding_windows
from output_sinks import make_fifo_pair, open_sink_pair
from padding_codec import encode_mate
from padding_table import PaddingTable, build_padding_tables
from segment_resolver import resolve_segments
from xform_config import XformConfig
from xform_errors import DesyncError, XformError
from xform_stats import XformStats

logger = logging.getLogger(__name__)

PaddingTables = Dict[Tuple[int, int], PaddingTable]


def transform_mate(geometry: MateGeometry, record: FASTQRecord, tables: PaddingTables,
                   config: XformConfig, mate_index: int) -> Tuple[NormalizedRead, MateResolution]:
    """Resolve and encode one mate. XformErrors leave with the mate attached."""
    quality = None
    if config.output_format == "fastq":
        if not record.has_quality:
            raise ValueError(
                f"FASTQ output requested but read {mate_index} input has no quality values "
                f"(record {record.header[:50]!r})"
            )
        quality = record.quality

    try:
        resolved = resolve_segments(geometry, record.sequence, config.prefer_longest)
        sequence, out_quality = encode_mate(geometry, resolved, record.sequence, tables,
                                            quality, config.pad_quality_value)
    except XformError as e:
        raise e.add_context(mate=mate_index)

    return NormalizedRead(record.header, sequence, out_quality), MateResolution(resolved)


def transform_read_pair(geometry: FragmentGeometry, record1: FASTQRecord, record2: FASTQRecord,
                        tables: PaddingTables, config: XformConfig
                        ) -> Tuple[NormalizedReadPair, MateResolution, MateResolution]:
    read1, resolution1 = transform_mate(geometry.read1, record1, tables, config, 1)
    read2, resolution2 = transform_mate(geometry.read2, record2, tables, config, 2)
    return NormalizedReadPair(read1, read2), resolution1, resolution2


def run_transform(mate1_geometry: MateGeometry, mate2_geometry: MateGeometry,
                  input1: Iterable[FASTQRecord], input2: Iterable[FASTQRecord],
                  output1, output2, config: Optional[XformConfig] = None,
                  stats: Optional[XformStats] = None, tables: Optional[PaddingTables] = None,
                  first_record_index: int = 0) -> XformStats:
    """
    Pull record pairs from `input1`/`input2` in lockstep, normalize both mates
    and write them to the binary streams `output1`/`output2`.

    Raises DesyncError when one input ends before the other. Padding tables
    are built here when not supplied and are read-only afterwards.
    """
    config = config or XformConfig()
    geometry = FragmentGeometry(tuple(mate1_geometry), tuple(mate2_geometry))
    if stats is None:
        stats = XformStats(geometry)
    if tables is None:
        tables = build_padding_tables(padding_windows(geometry))

    record_index = first_record_index
    for record1, record2 in zip_longest(input1, input2):
        if record1 is None or record2 is None:
            ended, running = (1, 2) if record1 is None else (2, 1)
            raise DesyncError(
                f"Read {ended} input ended while read {running} input still has records; "
                f"mate inputs must contain the same number of records in matching order",
                record_index=record_index,
            )

        try:
            pair, resolution1, resolution2 = transform_read_pair(geometry, record1, record2,
                                                                 tables, config)
        except XformError as e:
            raise e.add_context(record_index=record_index)

        write_read_pair(output1, output2, pair, config.output_format)
        stats.record_pair(resolution1.observed_lengths, resolution2.observed_lengths,
                          resolution1.degenerate_count, resolution2.degenerate_count)

        record_index += 1
        if record_index % config.progress_interval == 0:
            logger.info(f"Processed {record_index:,} read pairs...")

    return stats


def _check_file_lists(r1: Sequence[str], r2: Sequence[str]):
    if len(r1) != len(r2):
        raise DesyncError(
            f"The number of R1 files ({len(r1)}) must match the number of R2 files ({len(r2)})"
        )


def xform_read_pairs_to_file(geometry: FragmentGeometry, r1: Sequence[str], r2: Sequence[str],
                             r1_ofile: str, r2_ofile: str, config: Optional[XformConfig] = None,
                             stats: Optional[XformStats] = None) -> XformStats:
    """
    Transform every pair of input files (file i of R1 with file i of R2, in
    order) and write the normalized reads to `r1_ofile` and `r2_ofile`.
    Either output may be an existing named pipe, in which case opening it
    blocks until a reader attaches. Outputs are closed on every exit path.
    """
    config = config or XformConfig()
    _check_file_lists(r1, r2)
    stats = stats if stats is not None else XformStats(geometry)
    tables = build_padding_tables(padding_windows(geometry))
    for window, table in tables.items():
        logger.debug(f"Padding table {window}: {table.suffixes}")

    start_time = time.perf_counter()
    with open_sink_pair(r1_ofile, r2_ofile, config.buffer_bytes) as (out1, out2):
        for filename1, filename2 in zip(r1, r2):
            logger.info(f"Transforming {filename1} / {filename2}")
            with closing(read_fastx_records(filename1)) as reader1, \
                    closing(read_fastx_records(filename2)) as reader2:
                run_transform(geometry.read1, geometry.read2, reader1, reader2, out1, out2,
                              config=config, stats=stats, tables=tables,
                              first_record_index=stats.total_fragments)

    elapsed = time.perf_counter() - start_time
    logger.info(f"Transformed {stats.total_fragments:,} read pairs in {elapsed:.2f} seconds")
    return stats


@dataclass
class FifoXformData:
    r1_fifo: str
    r2_fifo: str
    future: Future


def xform_read_pairs_to_fifo(geometry: FragmentGeometry, r1: List[str], r2: List[str],
                             config: Optional[XformConfig] = None) -> FifoXformData:
    """
    Create two named pipes in a private temporary directory and start the
    transform writing into them on one background thread.

    The consumer must open r1_fifo before r2_fifo (the producer opens them in
    that order and blocks on each). future.result() returns the XformStats or
    re-raises the error that ended the run. The directory is removed when the
    run finishes.
    """
    _check_file_lists(r1, r2)
    tmp_dir = tempfile.TemporaryDirectory(prefix="seq_xform_")
    try:
        r1_fifo, r2_fifo = make_fifo_pair(tmp_dir.name)
    except OSError:
        tmp_dir.cleanup()
        raise

    def _produce() -> XformStats:
        try:
            return xform_read_pairs_to_file(geometry, r1, r2, r1_fifo, r2_fifo, config)
        finally:
            tmp_dir.cleanup()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="seq_xform")
    future = executor.submit(_produce)
    executor.shutdown(wait=False)
    return FifoXformData(r1_fifo, r2_fifo, future)
