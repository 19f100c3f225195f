import io
import struct

import numpy as np
import pytest

from bpm_sweep import MalformedHeader, TruncatedFile, WavFormatError, parse_wav, read_wav

PCM_GUID_TAIL = b'\x00\x00\x00\x00\x10\x00\x80\x00\x00\xaa\x00\x38\x9b\x71'


def extensible_extra(sub_format, bits=16, mask=0x3):
    return struct.pack('<HHI', 22, bits, mask) + struct.pack('<H', sub_format) + PCM_GUID_TAIL


def test_round_trip_mono(wav_bytes):
    samples = np.array([0, 1, -1, 32767, -32768, 1234, -4321], dtype=np.int16)
    stream = parse_wav(wav_bytes(samples, sample_rate=22050))

    assert stream.sample_rate == 22050
    assert stream.channels == 1
    assert stream.bits_per_sample == 16
    assert stream.riff.id == 'RIFF'
    assert stream.riff.format == 'WAVE'
    assert stream.fmt.id == 'fmt '
    assert stream.data.size == samples.nbytes
    np.testing.assert_array_equal(stream.samples, samples)
    assert stream.samples.dtype == np.int16


def test_round_trip_stereo_stays_interleaved(wav_bytes):
    left = np.arange(0, 100, dtype=np.int16)
    right = -left
    interleaved = np.column_stack([left, right]).reshape(-1)
    stream = parse_wav(wav_bytes(interleaved, sample_rate=48000, channels=2))

    assert stream.channels == 2
    assert stream.fmt.block_align == 4
    np.testing.assert_array_equal(stream.samples, interleaved)
    assert stream.duration == pytest.approx(100 / 48000)


def test_samples_are_read_only(wav_bytes):
    stream = parse_wav(wav_bytes(np.ones(8, dtype=np.int16)))
    with pytest.raises(ValueError):
        stream.samples[0] = 5


def test_read_from_path_file_object_and_bytes(wav_bytes, write_wav):
    samples = np.linspace(-1000, 1000, 64).astype(np.int16)
    data = wav_bytes(samples)
    path = write_wav('a.wav', data)

    for source in (path, str(path), io.BytesIO(data), data, bytearray(data)):
        np.testing.assert_array_equal(read_wav(source).samples, samples)


def test_read_rejects_unknown_source_type():
    with pytest.raises(TypeError):
        read_wav(12345)


def test_empty_data_block(wav_bytes):
    stream = parse_wav(wav_bytes([]))
    assert len(stream.samples) == 0
    assert stream.duration == 0.0


def test_odd_data_size_drops_trailing_byte(wav_bytes):
    payload = struct.pack('<hh', 7, -7) + b'\x01'
    stream = parse_wav(wav_bytes(None, payload=payload))
    np.testing.assert_array_equal(stream.samples, [7, -7])


def test_declared_data_size_past_end_is_truncated(wav_bytes):
    data = wav_bytes(np.zeros(10, dtype=np.int16), data_size=100)
    with pytest.raises(TruncatedFile):
        parse_wav(data)


def test_cut_off_file_is_truncated(wav_bytes):
    data = wav_bytes(np.zeros(1000, dtype=np.int16))
    with pytest.raises(TruncatedFile):
        parse_wav(data[:-1])


@pytest.mark.parametrize('length', [0, 4, 11])
def test_short_header_is_truncated(length, wav_bytes):
    data = wav_bytes(np.zeros(4, dtype=np.int16))[:length]
    with pytest.raises(TruncatedFile):
        parse_wav(data)


def test_cut_inside_format_block_is_truncated(wav_bytes):
    data = wav_bytes(np.zeros(4, dtype=np.int16))[:20]
    with pytest.raises(TruncatedFile):
        parse_wav(data)


def test_missing_data_block_is_truncated(wav_bytes):
    data = wav_bytes(np.zeros(4, dtype=np.int16))
    # cut everything from the data block header on
    with pytest.raises(TruncatedFile):
        parse_wav(data[:36])


@pytest.mark.parametrize('kwargs', [
    {'riff_id': b'RIFX'},
    {'wave_id': b'AVI '},
    {'fmt_id': b'junk'},
])
def test_wrong_tags_are_malformed(kwargs, wav_bytes):
    with pytest.raises(MalformedHeader):
        parse_wav(wav_bytes(np.zeros(4, dtype=np.int16), **kwargs))


def test_non_pcm_format_is_malformed(wav_bytes):
    # 3 = IEEE float
    with pytest.raises(MalformedHeader, match='not linear PCM'):
        parse_wav(wav_bytes(np.zeros(4, dtype=np.int16), format_tag=3))


def test_non_16_bit_is_malformed(wav_bytes):
    with pytest.raises(MalformedHeader):
        parse_wav(wav_bytes(np.zeros(4, dtype=np.int16), bits=24))


def test_zero_sample_rate_is_malformed(wav_bytes):
    with pytest.raises(MalformedHeader):
        parse_wav(wav_bytes(np.zeros(4, dtype=np.int16), sample_rate=0))


def test_errors_are_value_errors(wav_bytes):
    with pytest.raises(ValueError):
        parse_wav(b'not a wav file at all')
    assert issubclass(MalformedHeader, WavFormatError)
    assert issubclass(TruncatedFile, WavFormatError)


def test_format_block_size_positions_data_block(wav_bytes):
    # fmt block with a 2-byte cbSize extension, as many encoders write
    samples = np.array([10, 20, 30], dtype=np.int16)
    stream = parse_wav(wav_bytes(samples, fmt_extra=b'\x00\x00'))
    assert stream.fmt.size == 18
    np.testing.assert_array_equal(stream.samples, samples)


def test_blocks_before_data_are_skipped(wav_bytes):
    samples = np.array([1, 2, 3, 4], dtype=np.int16)
    data = wav_bytes(samples, chunks_before_data=[
        (b'LIST', b'INFOISFT\x05\x00\x00\x00test\x00'),
        (b'fact', struct.pack('<I', 4)),
    ])
    np.testing.assert_array_equal(parse_wav(data).samples, samples)


def test_extensible_pcm_is_accepted(wav_bytes):
    samples = np.array([5, -5, 6, -6], dtype=np.int16)
    data = wav_bytes(samples, channels=2, format_tag=-2,
                     fmt_extra=extensible_extra(1))
    stream = parse_wav(data)
    assert stream.fmt.format_tag & 0xFFFF == 0xFFFE
    np.testing.assert_array_equal(stream.samples, samples)


def test_extensible_float_is_malformed(wav_bytes):
    data = wav_bytes(np.zeros(4, dtype=np.int16), format_tag=-2,
                     fmt_extra=extensible_extra(3))
    with pytest.raises(MalformedHeader):
        parse_wav(data)


def test_path_errors_name_the_file(wav_bytes, write_wav):
    path = write_wav('broken.wav', wav_bytes(np.zeros(4, dtype=np.int16), data_size=400))
    with pytest.raises(TruncatedFile, match='broken.wav'):
        read_wav(path)


@pytest.mark.parametrize('channels', [1, 2])
def test_reads_files_written_by_soundfile(channels, tmp_path):
    sf = pytest.importorskip('soundfile')
    rng = np.random.default_rng(0)
    audio = rng.integers(-20000, 20000, size=(3000, channels)).astype(np.int16)
    path = tmp_path / 'sf.wav'
    sf.write(str(path), audio, 44100, subtype='PCM_16')

    stream = read_wav(path)
    assert stream.sample_rate == 44100
    assert stream.channels == channels
    np.testing.assert_array_equal(stream.samples, audio.reshape(-1))
