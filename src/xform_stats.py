from collections import Counter
from typing import Dict, Iterable, Optional, Tuple

from geometry import FragmentGeometry, NonFunctional, describe_segment

UNANCHORED_MAX_ASSUMED = "unanchored-max-assumed"


class XformStats:
    """
    Run-scoped accumulator for the transform. Written once per read pair by the
    stream transformer; only the final summary is read back.
    """

    def __init__(self, geometry: Optional[FragmentGeometry] = None):
        self.total_fragments = 0
        self.anomalies: Counter = Counter()
        self.length_histograms: Dict[Tuple[int, int], Counter] = {}
        self.segment_labels: Dict[Tuple[int, int], str] = {}
        if geometry is not None:
            for mate_index, mate in ((1, geometry.read1), (2, geometry.read2)):
                for i, spec in enumerate(mate):
                    if not isinstance(spec, NonFunctional):
                        self.segment_labels[(mate_index, i)] = f"R{mate_index}:{i}:{describe_segment(spec)}"

    @property
    def degenerate_resolutions(self) -> int:
        return self.anomalies[UNANCHORED_MAX_ASSUMED]

    def record(self, mate_index: int, observed_lengths: Iterable[int],
               anomalies: Optional[Dict[str, int]] = None):
        for i, length in enumerate(observed_lengths):
            key = (mate_index, i)
            if self.segment_labels and key not in self.segment_labels:
                continue
            self.length_histograms.setdefault(key, Counter())[length] += 1
        if anomalies:
            for name, count in anomalies.items():
                if count:
                    self.anomalies[name] += count

    def record_pair(self, mate1_lengths: Iterable[int], mate2_lengths: Iterable[int],
                    mate1_degenerate: int = 0, mate2_degenerate: int = 0):
        self.total_fragments += 1
        self.record(1, mate1_lengths, {UNANCHORED_MAX_ASSUMED: mate1_degenerate})
        self.record(2, mate2_lengths, {UNANCHORED_MAX_ASSUMED: mate2_degenerate})

    def _label(self, key: Tuple[int, int]) -> str:
        return self.segment_labels.get(key, f"R{key[0]}:{key[1]}")

    def as_dict(self) -> Dict:
        return {
            "total_fragments": self.total_fragments,
            "degenerate_resolutions": self.degenerate_resolutions,
            "anomalies": dict(self.anomalies),
            "length_histograms": {
                self._label(key): dict(sorted(hist.items()))
                for key, hist in sorted(self.length_histograms.items())
            },
        }

    def summarize(self) -> str:
        lines = [
            "XformStats {",
            f"    total fragments: {self.total_fragments:,},",
            f"    {UNANCHORED_MAX_ASSUMED} resolutions: {self.degenerate_resolutions:,},",
        ]
        other_anomalies = {k: v for k, v in self.anomalies.items() if k != UNANCHORED_MAX_ASSUMED}
        for name, count in sorted(other_anomalies.items()):
            lines.append(f"    {name}: {count:,},")

        lines.append("    segment length distributions:")
        for key, hist in sorted(self.length_histograms.items()):
            total = sum(hist.values())
            parts = [
                f"{length}: {count:,} ({100.0 * count / total:.2f}%)"
                for length, count in sorted(hist.items())
            ]
            lines.append(f"        {self._label(key)}  " + ", ".join(parts))
        lines.append("}")
        return "\n".join(lines)

    def __str__(self):
        return self.summarize()
