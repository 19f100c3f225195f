"""
Frequency sweep over candidate tempos.

== How the sweep works ==

For every integer BPM in the candidate range, correlate the onset signal
against a cosine and a sine at that tempo's beat frequency:

    theta   = 2*pi * (bpm / 60) / frames_per_second      (radians per frame)
    cos_sum = sum_n w(n) * cos(theta * n) * onset[n] / sample_count
    sin_sum = sum_n w(n) * sin(theta * n) * onset[n] / sample_count

w is a periodic Hann taper over the onset length. The magnitude
sqrt(cos_sum^2 + sin_sum^2) says how strongly the onsets repeat at that tempo,
and atan2(sin_sum, cos_sum) says where in the beat period they land.

This is a single-frequency (Goertzel-style) probe per candidate, not a full
transform: only the integer BPMs of interest are evaluated, O(n_bpm * L).

sample_count is the analyzed frame count. It equals the onset length for
everything loudness_envelope produces but is passed separately so the
normalizer stays the frame count even if the two ever diverge.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

MIN_BPM = 60
MAX_BPM = 240


@dataclass(frozen=True)
class FrequencyBin:
    bpm: int
    cos_sum: float
    sin_sum: float
    magnitude: float


class MagnitudeCurve:
    """Sweep result for a contiguous integer BPM range.

    Index i holds the bin for bpm = min_bpm + i.
    """

    def __init__(self, min_bpm: int, cos_sums: np.ndarray, sin_sums: np.ndarray):
        self.min_bpm = int(min_bpm)
        self.cos_sums = np.array(cos_sums, dtype=np.float64)
        self.sin_sums = np.array(sin_sums, dtype=np.float64)
        self.magnitudes = np.sqrt(self.cos_sums ** 2 + self.sin_sums ** 2)
        for arr in (self.cos_sums, self.sin_sums, self.magnitudes):
            arr.flags.writeable = False

    def __len__(self):
        return len(self.magnitudes)

    def __getitem__(self, i) -> FrequencyBin:
        if i < 0:
            i += len(self)
        if not 0 <= i < len(self):
            raise IndexError(f"bin {i} out of range for {len(self)} bins")
        return FrequencyBin(
            bpm=self.min_bpm + i,
            cos_sum=float(self.cos_sums[i]),
            sin_sum=float(self.sin_sums[i]),
            magnitude=float(self.magnitudes[i]),
        )

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    @property
    def bpms(self) -> np.ndarray:
        return np.arange(self.min_bpm, self.min_bpm + len(self))

    @property
    def max_bpm(self) -> int:
        return self.min_bpm + len(self) - 1

    def index_of(self, bpm: int) -> int:
        i = int(bpm) - self.min_bpm
        if not 0 <= i < len(self):
            raise KeyError(f"{bpm} BPM is outside {self.min_bpm}-{self.max_bpm}")
        return i


def hann_window(n: int) -> np.ndarray:
    """Periodic Hann taper: 0.5 - 0.5 * cos(2*pi*k / n) for k in [0, n)."""
    if n <= 0:
        return np.zeros(0, dtype=np.float64)
    k = np.arange(n, dtype=np.float64)
    return 0.5 - 0.5 * np.cos(2.0 * np.pi * k / n)


def frequency_sweep(onset: np.ndarray, frames_per_second: float, sample_count: int,
                    min_bpm: int = MIN_BPM, max_bpm: int = MAX_BPM) -> MagnitudeCurve:
    """Correlate the onset signal against every integer BPM in [min_bpm, max_bpm].

    Args:
        onset: onset signal, one value per analyzed frame.
        frames_per_second: sample_rate / frame_size.
        sample_count: normalizer for both sums (the analyzed frame count).
        min_bpm, max_bpm: inclusive candidate range.

    Returns:
        MagnitudeCurve with max_bpm - min_bpm + 1 bins. Empty onset (or a zero
        normalizer) gives all-zero bins.
    """
    if max_bpm < min_bpm:
        raise ValueError(f"max_bpm {max_bpm} is below min_bpm {min_bpm}")
    if frames_per_second <= 0:
        raise ValueError(f"frames_per_second must be positive, got {frames_per_second}")

    onset = np.asarray(onset, dtype=np.float64)
    n_bins = max_bpm - min_bpm + 1
    cos_sums = np.zeros(n_bins, dtype=np.float64)
    sin_sums = np.zeros(n_bins, dtype=np.float64)

    if len(onset) == 0 or sample_count == 0:
        logger.debug("sweep: nothing to analyze, %d zero bins", n_bins)
        return MagnitudeCurve(min_bpm, cos_sums, sin_sums)

    n = np.arange(len(onset), dtype=np.float64)
    weighted = hann_window(len(onset)) * onset

    for i, bpm in enumerate(range(min_bpm, max_bpm + 1)):
        freq = bpm / 60.0
        theta = 2.0 * np.pi * freq / frames_per_second
        cos_sums[i] = np.dot(weighted, np.cos(theta * n)) / sample_count
        sin_sums[i] = np.dot(weighted, np.sin(theta * n)) / sample_count

    logger.debug("sweep: %d bins (%d-%d BPM) over %d frames at %.2f fps",
                 n_bins, min_bpm, max_bpm, len(onset), frames_per_second)
    return MagnitudeCurve(min_bpm, cos_sums, sin_sums)
