import numpy as np
import pytest


def as_array(seq: str) -> np.ndarray:
    return np.frombuffer(seq.encode("ascii"), dtype=np.uint8)


def write_fastq(path, reads, qual_char="F"):
    """Write (header, sequence) pairs as a 4-line FASTQ file."""
    with open(path, "w") as f:
        for header, seq in reads:
            f.write(f"@{header}\n{seq}\n+\n{qual_char * len(seq)}\n")
    return str(path)


def write_fasta(path, reads):
    with open(path, "w") as f:
        for header, seq in reads:
            f.write(f">{header}\n{seq}\n")
    return str(path)


def read_fasta_records(path):
    """Return [(header, sequence)] from a single-line FASTA file."""
    with open(path) as f:
        lines = [line.rstrip("\n") for line in f]
    return [(lines[i][1:], lines[i + 1]) for i in range(0, len(lines), 2)]


# sci-RNA-seq3 style technical reads: (read, should parse, length of the barcode before the anchor)
SCISEQ3_READS = [
    ("TNGCGCATTCAGAGCGCCACTTTCGGAAGATATTTT", True, 9),
    ("TNTATACCTTCAGAGCGTGAGGATGTCCTAGAGGTT", True, 10),
    ("AGAGATGAATCAGAGCTGTGCCGGGCTAACCTCATT", True, 10),
    ("TGAACGCGTTTTTTTTTTTTTTTTTTTTTTTTTTTT", False, 0),
    ("AAACTCCAATCAGAGCTCCGAGACAACCATTGGATT", True, 10),
    ("ACGAGGTTTCTGAGCCGATAAAGTGATGGCCTTTTT", False, 0),
    ("GCTCTTAGTCAGAGCCGTTTTGGGCGACGCCTTTTT", True, 9),
    ("TCCGTATGTCAGAGCGACTGATGTTATAGCAGATTT", True, 9),
    ("TCTCTCCATCAGAGCAAAAGATTCATTCAATCATTC", True, 9),
    ("AGAACTCCTCTGAGCAATGTCGCTTATTCTGAGTTT", False, 0),
    ("AAGTATTGGTCAGAGCTACGCATTACGCAACTCCTT", True, 10),
    ("TGTCCTTATTCAGAGCCCATTTACGCCACGCAGCTC", True, 10),
]

SCISEQ3_GEOMETRY = "1{b[9-10]f[CAGAGC]u[8]b[10]}2{r:}"


@pytest.fixture
def sciseq3_geometry():
    from geometry import parse_geometry
    return parse_geometry(SCISEQ3_GEOMETRY)
