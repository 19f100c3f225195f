"""
RIFF/WAVE container reader for uncompressed 16-bit PCM.

Layout (little-endian throughout):

  offset 0   RIFF header   'RIFF' | uint32 size | 'WAVE'
  offset 12  format block  'fmt ' | int32 size | int16 format | uint16 channels
                           | uint32 sample rate | uint32 byte rate
                           | uint16 block align | uint16 bits per sample
  offset 12 + 8 + fmt size
             data block    'data' | int32 size | interleaved int16 samples

Blocks other than 'data' that sit after the format block (LIST, fact, ...)
are skipped by their declared size. Samples come back as one interleaved
int16 array; nothing here downmixes channels.
"""

import logging
import os
import struct
from dataclasses import dataclass

import numpy as np

from .errors import MalformedHeader, TruncatedFile

logger = logging.getLogger(__name__)

RIFF_HEADER = struct.Struct('<4sI4s')
FORMAT_CHUNK = struct.Struct('<4sihHIIHH')
CHUNK_HEADER = struct.Struct('<4si')

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_EXTENSIBLE = 0xFFFE


@dataclass(frozen=True)
class RiffHeader:
    id: str
    size: int
    format: str


@dataclass(frozen=True)
class FormatChunk:
    id: str
    size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int


@dataclass(frozen=True)
class DataChunk:
    id: str
    size: int
    offset: int  # byte offset of the first sample


@dataclass(frozen=True)
class AudioStream:
    """Decoded container: metadata plus the raw interleaved int16 samples."""
    riff: RiffHeader
    fmt: FormatChunk
    data: DataChunk
    samples: np.ndarray

    @property
    def sample_rate(self) -> int:
        return self.fmt.sample_rate

    @property
    def channels(self) -> int:
        return self.fmt.channels

    @property
    def bits_per_sample(self) -> int:
        return self.fmt.bits_per_sample

    @property
    def duration(self) -> float:
        """Length in seconds, counting one sample per channel per tick."""
        if self.sample_rate <= 0 or self.channels <= 0:
            return 0.0
        return len(self.samples) / self.channels / self.sample_rate


def _tag(raw: bytes) -> str:
    return raw.decode('ascii', errors='replace')


def _read_riff_header(buf: bytes) -> RiffHeader:
    if len(buf) < RIFF_HEADER.size:
        raise TruncatedFile(f"need {RIFF_HEADER.size} header bytes, got {len(buf)}")
    riff_id, size, fmt = RIFF_HEADER.unpack_from(buf, 0)
    header = RiffHeader(_tag(riff_id), size, _tag(fmt))
    if header.id != 'RIFF' or header.format != 'WAVE':
        raise MalformedHeader(
            f"not a RIFF/WAVE container (tags {header.id!r}/{header.format!r})")
    return header


def _read_format_chunk(buf: bytes, offset: int) -> FormatChunk:
    if len(buf) < offset + FORMAT_CHUNK.size:
        raise TruncatedFile(
            f"format block needs {FORMAT_CHUNK.size} bytes at offset {offset}, "
            f"only {max(0, len(buf) - offset)} available")
    chunk_id, *fields = FORMAT_CHUNK.unpack_from(buf, offset)
    chunk = FormatChunk(_tag(chunk_id), *fields)
    if chunk.id != 'fmt ':
        raise MalformedHeader(f"expected 'fmt ' block at offset {offset}, found {chunk.id!r}")
    if chunk.size < FORMAT_CHUNK.size - CHUNK_HEADER.size:
        raise MalformedHeader(f"format block declares only {chunk.size} bytes")

    tag = chunk.format_tag & 0xFFFF
    if tag == WAVE_FORMAT_EXTENSIBLE:
        # cbSize, valid bits, channel mask, then the sub-format GUID whose
        # first two bytes carry the real format code.
        sub_offset = offset + FORMAT_CHUNK.size + 8
        if chunk.size < 40 or len(buf) < sub_offset + 2:
            raise MalformedHeader("extensible format block is missing its sub-format")
        tag = struct.unpack_from('<H', buf, sub_offset)[0]
    if tag != WAVE_FORMAT_PCM:
        raise MalformedHeader(f"format code 0x{tag:04X} is not linear PCM")
    if chunk.bits_per_sample != 16:
        raise MalformedHeader(
            f"{chunk.bits_per_sample}-bit samples are not supported (16-bit PCM only)")
    if chunk.sample_rate == 0 or chunk.channels == 0:
        raise MalformedHeader(
            f"format block declares {chunk.channels} channels at {chunk.sample_rate} Hz")
    return chunk


def _find_data_chunk(buf: bytes, offset: int) -> DataChunk:
    """Walk blocks from offset until the 'data' block, skipping the rest."""
    while True:
        if len(buf) < offset + CHUNK_HEADER.size:
            raise TruncatedFile(f"no data block before end of file (offset {offset})")
        chunk_id, size = CHUNK_HEADER.unpack_from(buf, offset)
        chunk_id = _tag(chunk_id)
        if size < 0:
            raise MalformedHeader(f"block {chunk_id!r} declares negative size {size}")
        if chunk_id == 'data':
            return DataChunk(chunk_id, size, offset + CHUNK_HEADER.size)
        logger.debug("skipping %r block (%d bytes) at offset %d", chunk_id, size, offset)
        # RIFF blocks are word aligned
        offset += CHUNK_HEADER.size + size + (size & 1)


def parse_wav(buf: bytes) -> AudioStream:
    """Decode a complete in-memory WAV file.

    Raises:
        MalformedHeader: wrong tags, missing 'fmt ' block, or non-PCM/16-bit format.
        TruncatedFile: declared sizes point past the end of buf.
    """
    buf = bytes(buf)
    riff = _read_riff_header(buf)
    fmt_offset = RIFF_HEADER.size
    fmt = _read_format_chunk(buf, fmt_offset)
    data = _find_data_chunk(buf, fmt_offset + fmt.size + CHUNK_HEADER.size)

    end = data.offset + data.size
    if len(buf) < end:
        raise TruncatedFile(
            f"data block declares {data.size} bytes but only "
            f"{len(buf) - data.offset} follow its header")

    # odd trailing byte is dropped
    n_samples = data.size // 2
    if n_samples:
        samples = np.frombuffer(buf, dtype='<i2', count=n_samples, offset=data.offset)
        samples = samples.astype(np.int16)
    else:
        samples = np.zeros(0, dtype=np.int16)
    samples.flags.writeable = False

    logger.debug("read %d samples: %d Hz, %d ch, %d bit",
                 n_samples, fmt.sample_rate, fmt.channels, fmt.bits_per_sample)
    return AudioStream(riff, fmt, data, samples)


def read_wav(source) -> AudioStream:
    """Read a WAV file from a path, path-like, binary file object or bytes."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return parse_wav(source)
    if isinstance(source, (str, os.PathLike)):
        with open(source, 'rb') as f:
            buf = f.read()
        try:
            return parse_wav(buf)
        except (MalformedHeader, TruncatedFile) as e:
            raise type(e)(f"{os.fspath(source)}: {e}") from None
    if hasattr(source, 'read'):
        return parse_wav(source.read())
    raise TypeError(f"cannot read WAV data from {type(source).__name__}")
