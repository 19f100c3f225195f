"""
Tempo estimation for PCM WAV files by a windowed frequency sweep over
candidate BPMs.

    from bpm_sweep import analyze_file
    result = analyze_file('song.wav')
    for peak in result.peaks:
        print(peak.rank, peak.bpm, peak.first_beat_time)
"""

from .analyzer import TempoAnalysisResult, TempoAnalyzer, analyze_file
from .config import AnalysisConfig
from .errors import MalformedHeader, TruncatedFile, WavFormatError
from .peaks import PeakCandidate, beat_phase, build_candidates, find_peaks, format_candidates
from .riff import AudioStream, DataChunk, FormatChunk, RiffHeader, parse_wav, read_wav
from .signals import frame_count, loudness_envelope, onset_signal
from .sweep import FrequencyBin, MagnitudeCurve, frequency_sweep, hann_window

__version__ = '0.1.0'

__all__ = [
    'AnalysisConfig',
    'AudioStream',
    'DataChunk',
    'FormatChunk',
    'FrequencyBin',
    'MagnitudeCurve',
    'MalformedHeader',
    'PeakCandidate',
    'RiffHeader',
    'TempoAnalysisResult',
    'TempoAnalyzer',
    'TruncatedFile',
    'WavFormatError',
    'analyze_file',
    'beat_phase',
    'build_candidates',
    'find_peaks',
    'format_candidates',
    'frame_count',
    'frequency_sweep',
    'hann_window',
    'loudness_envelope',
    'onset_signal',
    'parse_wav',
    'read_wav',
]
