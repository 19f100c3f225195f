"""
Peak picking on the sweep's magnitude curve, and beat phase for each peak.
"""

import logging
import math
from dataclasses import dataclass, asdict

import numpy as np

from .sweep import MagnitudeCurve

logger = logging.getLogger(__name__)

PEAK_COUNT = 3


@dataclass(frozen=True)
class PeakCandidate:
    rank: int
    bpm: int
    magnitude: float
    phase: float            # radians, [0, 2*pi)
    first_beat_time: float  # seconds
    first_beat: float       # fraction of one beat, [0, 1)

    def to_dict(self) -> dict:
        return asdict(self)


def find_peaks(magnitudes, count: int = PEAK_COUNT) -> list:
    """Indices of the strongest local maxima, strongest first.

    Index i qualifies when the curve rose into it and does not rise after it:
    m[i] - m[i-1] > 0 and m[i+1] - m[i] <= 0. The rise into index 0 counts
    as 0, so index 0 never qualifies, and the last index is never examined.
    Equal magnitudes keep their curve order.
    """
    m = np.asarray(magnitudes, dtype=np.float64)
    found = []
    for i in range(len(m) - 1):
        rise = 0.0 if i == 0 else m[i] - m[i - 1]
        if m[i + 1] - m[i] <= 0 and rise > 0:
            found.append(i)

    # sorted() is stable, including with reverse=True
    ranked = sorted(found, key=lambda i: m[i], reverse=True)
    return ranked[:max(0, count)]


def beat_phase(cos_sum: float, sin_sum: float, bpm: float):
    """Phase of a tempo component and where the first beat falls.

    Returns:
        (phase, first_beat_time, first_beat): phase in [0, 2*pi), the first
        beat's time in seconds, and its position as a fraction of a beat.
    """
    phase = math.atan2(sin_sum, cos_sum)
    if phase < 0:
        phase += 2.0 * math.pi
    peak_freq = bpm / 60.0
    first_beat_time = phase / (2.0 * math.pi * peak_freq)
    first_beat = phase / (2.0 * math.pi)
    return phase, first_beat_time, first_beat


def build_candidates(curve: MagnitudeCurve, count: int = PEAK_COUNT) -> list:
    """Ranked PeakCandidates for the top `count` peaks of a sweep."""
    candidates = []
    for rank, i in enumerate(find_peaks(curve.magnitudes, count), start=1):
        b = curve[i]
        phase, start_time, start_beat = beat_phase(b.cos_sum, b.sin_sum, b.bpm)
        candidates.append(PeakCandidate(
            rank=rank,
            bpm=b.bpm,
            magnitude=b.magnitude,
            phase=phase,
            first_beat_time=start_time,
            first_beat=start_beat,
        ))
    logger.debug("peaks: %s", [c.bpm for c in candidates])
    return candidates


def format_candidates(candidates) -> str:
    """Plain-text report, one block per candidate in ranked order."""
    lines = []
    for c in candidates:
        lines.append(f"[{c.rank}]")
        lines.append(f"Peak BPM: {c.bpm}")
        lines.append(f"First beat time: {c.first_beat_time} sec")
        lines.append(f"First beat: {c.first_beat} beat")
    return '\n'.join(lines)
