"""
End-to-end tempo analysis of one WAV file.

    read_wav -> loudness_envelope -> onset_signal -> frequency_sweep -> peaks

Each stage consumes the previous stage's output. The raw sample buffer is the
largest allocation and is dropped as soon as the envelope exists.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .config import AnalysisConfig
from .peaks import PeakCandidate, build_candidates
from .riff import read_wav
from .signals import loudness_envelope, onset_signal
from .sweep import MagnitudeCurve, frequency_sweep

logger = logging.getLogger(__name__)


@dataclass
class TempoAnalysisResult:
    sample_rate: int
    channels: int
    frame_count: int
    frames_per_second: float
    curve: MagnitudeCurve
    peaks: List[PeakCandidate] = field(default_factory=list)

    @property
    def best(self) -> Optional[PeakCandidate]:
        return self.peaks[0] if self.peaks else None

    def to_dict(self) -> dict:
        return {
            'sample_rate': self.sample_rate,
            'channels': self.channels,
            'frames': self.frame_count,
            'peaks': [p.to_dict() for p in self.peaks],
        }


class TempoAnalyzer:
    """Runs the sweep pipeline with one AnalysisConfig."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def analyze_samples(self, samples: np.ndarray, sample_rate: int,
                        channels: int = 1) -> TempoAnalysisResult:
        """Analyze raw interleaved int16 samples."""
        envelope = loudness_envelope(samples, self.config.frame_size)
        return self._analyze_envelope(envelope, sample_rate, channels)

    def analyze_file(self, source) -> TempoAnalysisResult:
        """Analyze a WAV file (path, file object or bytes)."""
        stream = read_wav(source)
        sample_rate, channels = stream.sample_rate, stream.channels
        logger.debug("%.2fs of audio, %d Hz, %d ch", stream.duration, sample_rate, channels)

        envelope = loudness_envelope(stream.samples, self.config.frame_size)
        del stream
        return self._analyze_envelope(envelope, sample_rate, channels)

    def _analyze_envelope(self, envelope, sample_rate, channels):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        cfg = self.config

        onset = onset_signal(envelope)
        sample_count = len(envelope)
        fps = cfg.frames_per_second(sample_rate)

        curve = frequency_sweep(onset, fps, sample_count, cfg.min_bpm, cfg.max_bpm)
        peaks = build_candidates(curve, cfg.peak_count)

        return TempoAnalysisResult(
            sample_rate=sample_rate,
            channels=channels,
            frame_count=sample_count,
            frames_per_second=fps,
            curve=curve,
            peaks=peaks,
        )


def analyze_file(source, config: Optional[AnalysisConfig] = None) -> TempoAnalysisResult:
    return TempoAnalyzer(config).analyze_file(source)
