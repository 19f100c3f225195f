"""
Loudness envelope and onset signal.

  loudness_envelope: per-frame RMS of the raw int16 sample stream
  onset_signal:      half-wave rectified first difference of the envelope

The envelope walks the interleaved stream in fixed frames of frame_size raw
samples and analyzes floor(n / frame_size / 2) of them. The halving treats the
stream as sample pairs and is kept as-is: it fixes the number of frames and
therefore the time axis every later stage uses (frames per second is always
sample_rate / frame_size). For a mono file that covers the first half of the
recording; for a stereo file it covers the first half of the interleaved data.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

FRAME_SIZE = 1024


def frame_count(n_samples: int, frame_size: int = FRAME_SIZE) -> int:
    """Number of frames the envelope analyzes for n_samples raw samples."""
    return n_samples // frame_size // 2


def loudness_envelope(samples: np.ndarray, frame_size: int = FRAME_SIZE) -> np.ndarray:
    """RMS loudness of each analyzed frame.

    Args:
        samples: raw interleaved int16 samples (not modified).
        frame_size: raw samples per frame.

    Returns:
        float64 array of length frame_count(len(samples), frame_size).
        Silent frames are exactly 0. Fewer samples than two frames gives an
        empty array.
    """
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")

    n_frames = frame_count(len(samples), frame_size)
    if n_frames == 0:
        return np.zeros(0, dtype=np.float64)

    # Frame k starts at k * frame_size in the raw (un-halved) index space
    frames = np.asarray(samples[:n_frames * frame_size], dtype=np.float64)
    frames = frames.reshape(n_frames, frame_size)
    envelope = np.sqrt(np.mean(frames ** 2, axis=1))

    logger.debug("envelope: %d frames of %d samples", n_frames, frame_size)
    return envelope


def onset_signal(envelope: np.ndarray) -> np.ndarray:
    """Positive part of the frame-to-frame loudness change.

    onset[i] = max(0, envelope[i] - envelope[i - 1]) with envelope[-1] = 0,
    so the first value is the first frame's loudness.
    """
    envelope = np.asarray(envelope, dtype=np.float64)
    if len(envelope) == 0:
        return np.zeros(0, dtype=np.float64)
    rms_deriv = np.diff(envelope, prepend=0.0)
    return np.maximum(0.0, rms_deriv)
