"""
Synthetic WAV fixtures.

make_wav builds container bytes field by field so tests control every
declared size and tag. Click tracks are built frame-aligned so the loudness
envelope, and therefore the onset signal, is an exact spike train.
"""

import struct

import numpy as np
import pytest

FRAME = 1024


def make_wav(samples, sample_rate=44100, channels=1, bits=16, format_tag=1,
             riff_id=b'RIFF', wave_id=b'WAVE', fmt_id=b'fmt ', fmt_extra=b'',
             chunks_before_data=(), data_size=None, payload=None):
    """Assemble a WAV file. data_size overrides the declared payload length."""
    if payload is None:
        payload = np.asarray(samples, dtype='<i2').tobytes()
    if data_size is None:
        data_size = len(payload)

    block_align = channels * bits // 8
    fmt_body = struct.pack('<hHIIHH', format_tag, channels, sample_rate,
                           sample_rate * block_align, block_align, bits) + fmt_extra
    fmt = fmt_id + struct.pack('<i', len(fmt_body)) + fmt_body

    extra = b''
    for chunk_id, body in chunks_before_data:
        extra += chunk_id + struct.pack('<i', len(body)) + body
        if len(body) & 1:
            extra += b'\x00'

    data = b'data' + struct.pack('<i', data_size) + payload
    body = wave_id + fmt + extra + data
    return riff_id + struct.pack('<I', len(body)) + body


def click_track(sample_rate=20480, bpm=120, first_frame=3, n_frames=400,
                amplitude=12000, channels=1):
    """Interleaved int16 samples with one loud frame per beat.

    With sample_rate 20480 and 1024-sample frames there are 20 frames per
    second, so 120 BPM is exactly one loud frame every 10 frames.
    """
    fps = sample_rate / FRAME
    period = fps * 60.0 / bpm
    samples = np.zeros(n_frames * FRAME, dtype=np.int16)
    k = 0
    while True:
        frame = int(round(first_frame + k * period))
        if frame >= n_frames:
            break
        t = np.arange(FRAME)
        burst = amplitude * np.sin(2 * np.pi * 1000.0 * t / sample_rate)
        samples[frame * FRAME:(frame + 1) * FRAME] = burst.astype(np.int16)
        k += 1
    if channels > 1:
        samples = np.repeat(samples, channels)
    return samples


@pytest.fixture
def wav_bytes():
    return make_wav


@pytest.fixture
def clicks():
    return click_track


@pytest.fixture
def write_wav(tmp_path):
    def _write(name, data):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write


@pytest.fixture
def click_wav(write_wav):
    """20 s mono click track at 120 BPM, first beat at frame 3 (0.15 s)."""
    return write_wav('clicks_120.wav', make_wav(click_track(), sample_rate=20480))
