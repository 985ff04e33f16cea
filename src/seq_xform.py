import argparse
import cProfile
import logging
import os
import pstats
import sys
import time
from io import StringIO
from typing import List, Optional

from geometry import parse_geometry, simplified_description
from stream_transformer import xform_read_pairs_to_file
from xform_config import XformConfig
from xform_errors import GeometryError, XformError
from xform_stats import XformStats

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def split_file_list(value: str) -> List[str]:
    """Split a comma-delimited list of input files, checking that each one exists."""
    files = [f.strip() for f in value.split(",") if f.strip()]
    if not files:
        raise FileNotFoundError(f"No input files given in '{value}'")
    for f in files:
        if not os.path.isfile(f):
            raise FileNotFoundError(f"Input file not found: {f}")
    return files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Normalize variable-length read geometries into fixed geometries.\n"
                    "Variable segments are padded so their original length stays recoverable.",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    # Positional Arguments
    parser.add_argument("geometry", metavar="GEOM",
                        help="Geometry descriptor, e.g. '1{b[9-10]f[CAGAGC]u[8]b[10]}2{r:}'")
    parser.add_argument("read1", metavar="R1", nargs="?",
                        help="Comma-delimited read 1 FASTA/FASTQ files (optionally gzipped)")
    parser.add_argument("read2", metavar="R2", nargs="?",
                        help="Comma-delimited read 2 FASTA/FASTQ files (optionally gzipped)")
    parser.add_argument("out1", metavar="OUT1", nargs="?",
                        help="Read 1 output path (regular file or existing named pipe)")
    parser.add_argument("out2", metavar="OUT2", nargs="?",
                        help="Read 2 output path (regular file or existing named pipe)")

    # Geometry Group
    geom_group = parser.add_argument_group("GEOMETRY")
    geom_group.add_argument("--print_geom", type=int, default=0, metavar="INT", choices=[0, 1],
                            help="Print the simplified (fixed) geometry descriptor and exit (0/1) [0]")

    # Output Group
    output_group = parser.add_argument_group("OUTPUT FORMAT")
    output_group.add_argument("--out_format", type=str, default="fasta", metavar="STR",
                              choices=["fasta", "fastq"],
                              help="Output record format. Available options: {'fasta', 'fastq'} [fasta]")
    output_group.add_argument("--pad_qual", type=str, default="I", metavar="CHAR",
                              help="Quality character given to padding bases in FASTQ output [I]")

    # Anchor Group
    anchor_group = parser.add_argument_group("ANCHORS")
    anchor_group.add_argument("--anchor_pref", type=str, default="longest", metavar="STR",
                              choices=["longest", "shortest"],
                              help="Which exact anchor hit wins when several fit a variable window.\n"
                                   "Available options: {'longest', 'shortest'} [longest]")

    # Performance Group
    perf_group = parser.add_argument_group("PERFORMANCE")
    perf_group.add_argument("--buffer_mb", type=int, default=8, metavar="INT",
                            help="Write buffer size in MB for regular output files [8]")
    perf_group.add_argument("--verbose", type=int, default=0, metavar="INT", choices=[0, 1],
                            help="Enable verbose logging (0/1) [0]")
    perf_group.add_argument("--profile", type=int, default=0, metavar="INT", choices=[0, 1],
                            help="Enable cProfile profiling (0/1) [0]")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose == 1:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)

    try:
        geometry = parse_geometry(args.geometry)
    except GeometryError as e:
        logger.error(f"Invalid geometry: {e}")
        return 1

    simplified = simplified_description(geometry)
    if args.print_geom == 1:
        print(simplified)
        return 0

    if None in (args.read1, args.read2, args.out1, args.out2):
        parser.error("R1, R2, OUT1 and OUT2 are required unless --print_geom 1 is given")

    try:
        config = XformConfig(
            output_format=args.out_format,
            pad_quality=args.pad_qual,
            anchor_preference=args.anchor_pref,
            buffer_mb=args.buffer_mb,
        )
        r1 = split_file_list(args.read1)
        r2 = split_file_list(args.read2)
    except (ValueError, OSError) as e:
        logger.error(f"{e}")
        return 1

    logger.info(f"Geometry {args.geometry} -> simplified geometry {simplified}")

    profiler = None
    if args.profile == 1:
        profiler = cProfile.Profile()
        profiler.enable()
        logger.info("Profiling enabled...")

    start_time = time.perf_counter()
    stats = XformStats(geometry)
    exit_code = 0
    try:
        xform_read_pairs_to_file(geometry, r1, r2, args.out1, args.out2, config, stats)
    except (XformError, ValueError, OSError) as e:
        logger.error(f"Transform aborted: {e}")
        exit_code = 1
    except KeyboardInterrupt:
        logger.warning("Interrupted, outputs were closed; partial statistics follow")
        logger.info(f"\n{stats.summarize()}")
        return 130

    if profiler is not None:
        profiler.disable()
        s = StringIO()
        ps = pstats.Stats(profiler, stream=s).sort_stats("cumulative")
        ps.print_stats(20)
        print("\n" + "=" * 80)
        print("Profiling Results:")
        print("=" * 80)
        print(s.getvalue())

    if exit_code != 0:
        return exit_code

    logger.info(f"\n{stats.summarize()}")
    logger.info(f"Task completed in {time.perf_counter() - start_time:.4f} seconds")
    logger.info(f"Use simplified geometry {simplified} for the normalized reads")
    return 0


if __name__ == "__main__":
    sys.exit(main())
