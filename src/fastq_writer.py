from data_structures import NormalizedRead, NormalizedReadPair

OUTPUT_FORMATS = ("fasta", "fastq")


def write_normalized_read(outfile, read: NormalizedRead, output_format: str = "fasta"):
    """
    Write one normalized read as a FASTA or FASTQ record.
    FASTQ output requires the read to carry quality values.
    """
    if output_format == "fastq":
        if read.quality is None:
            raise ValueError(
                f"FASTQ output requested but read {read.header[:50]!r} has no quality values"
            )
        outfile.write(b"@")
        outfile.write(read.header)
        outfile.write(b"\n")
        outfile.write(read.sequence.tobytes())
        outfile.write(b"\n+\n")
        outfile.write(read.quality.tobytes())
        outfile.write(b"\n")
    elif output_format == "fasta":
        outfile.write(b">")
        outfile.write(read.header)
        outfile.write(b"\n")
        outfile.write(read.sequence.tobytes())
        outfile.write(b"\n")
    else:
        raise ValueError(f"Unknown output format: {output_format}")


def write_read_pair(outfile1, outfile2, pair: NormalizedReadPair, output_format: str = "fasta"):
    write_normalized_read(outfile1, pair.read1, output_format)
    write_normalized_read(outfile2, pair.read2, output_format)
