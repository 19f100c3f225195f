"""
Analysis settings.

Defaults are 1024-sample frames, a 60-240 BPM sweep and the top 3 peaks.
A YAML file can override any of them:

    frame_size: 1024
    min_bpm: 60
    max_bpm: 240
    peak_count: 3
"""

from dataclasses import dataclass, fields, replace

import yaml

from .peaks import PEAK_COUNT
from .signals import FRAME_SIZE
from .sweep import MAX_BPM, MIN_BPM


@dataclass(frozen=True)
class AnalysisConfig:
    frame_size: int = FRAME_SIZE
    min_bpm: int = MIN_BPM
    max_bpm: int = MAX_BPM
    peak_count: int = PEAK_COUNT

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer, got {value!r}")
        if self.frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {self.frame_size}")
        if self.peak_count <= 0:
            raise ValueError(f"peak_count must be positive, got {self.peak_count}")
        if self.min_bpm <= 0:
            raise ValueError(f"min_bpm must be positive, got {self.min_bpm}")
        if self.min_bpm > self.max_bpm:
            raise ValueError(f"min_bpm {self.min_bpm} is above max_bpm {self.max_bpm}")

    @property
    def n_candidates(self) -> int:
        return self.max_bpm - self.min_bpm + 1

    def frames_per_second(self, sample_rate: int) -> float:
        return sample_rate / self.frame_size

    def override(self, **kwargs) -> 'AnalysisConfig':
        """Copy with every non-None keyword applied."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, data: dict) -> 'AnalysisConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path) -> 'AnalysisConfig':
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping of settings")
        return cls.from_dict(data)
