"""RIFF/WAVE decoding to a mono float waveform at the model sample rate.

Only linear PCM is accepted. Channel 0 is kept, samples are scaled into
[-1, 1] and linearly resampled to `TARGET_SAMPLE_RATE` when the source rate
differs.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from ..global_config import TARGET_SAMPLE_RATE
from .errors import (
    MalformedHeaderError,
    MissingDataChunkError,
    MissingFormatChunkError,
    UnsupportedBitDepthError,
    UnsupportedEncodingError,
)

logger = logging.getLogger(__name__)

MIN_HEADER_BYTES = 44
PCM_FORMAT = 1

# bits-per-sample -> (bytes per sample, full-scale divisor)
_PCM_SCALES: dict[int, tuple[int, float]] = {
    8: (1, 128.0),
    16: (2, 32768.0),
    24: (3, 8388608.0),
    32: (4, 2147483648.0),
}


@dataclass(frozen=True)
class WavFormat:
    """Fields captured from the "fmt " chunk."""

    audio_format: int
    channels: int
    sample_rate: int
    bits_per_sample: int


@dataclass(frozen=True)
class DecodedWav:
    """Mono waveform plus the header facts it was decoded from."""

    samples: np.ndarray
    sample_rate: int
    source_sample_rate: int
    channels: int
    bits_per_sample: int

    @property
    def num_samples(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_sec(self) -> float:
        return self.num_samples / float(self.sample_rate)


def _read_chunks(data: bytes) -> tuple[WavFormat | None, int, int]:
    """Walk RIFF chunks from offset 12; return (fmt, data_offset, data_size).

    data_offset is -1 when no data chunk was found. The walk stops at the
    first data chunk.
    """
    fmt: WavFormat | None = None
    offset = 12
    while offset + 8 <= len(data):
        chunk_id = data[offset : offset + 4]
        (chunk_size,) = struct.unpack_from("<I", data, offset + 4)
        if chunk_id == b"fmt ":
            if offset + 24 > len(data):
                raise MalformedHeaderError(f"Truncated fmt chunk at offset {offset}")
            audio_format, channels, sample_rate = struct.unpack_from("<HHI", data, offset + 8)
            (bits_per_sample,) = struct.unpack_from("<H", data, offset + 22)
            fmt = WavFormat(audio_format, channels, sample_rate, bits_per_sample)
        elif chunk_id == b"data":
            return fmt, offset + 8, chunk_size
        # chunks are padded to even length
        offset += 8 + chunk_size + (chunk_size % 2)
    return fmt, -1, 0


def _decode_channel0(
    payload: bytes,
    *,
    channels: int,
    bits_per_sample: int,
) -> np.ndarray:
    """Decode channel 0 of interleaved PCM into float64 values in [-1, 1]."""
    width, scale = _PCM_SCALES[bits_per_sample]
    num_frames = (len(payload) // width) // channels
    usable = payload[: num_frames * channels * width]

    if bits_per_sample == 8:
        raw = np.frombuffer(usable, dtype=np.uint8)[::channels].astype(np.float64) - 128.0
    elif bits_per_sample == 16:
        raw = np.frombuffer(usable, dtype="<i2")[::channels].astype(np.float64)
    elif bits_per_sample == 24:
        b = np.frombuffer(usable, dtype=np.uint8).reshape(-1, 3)[::channels].astype(np.int32)
        v = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
        v = np.where(v & 0x800000, v - 0x1000000, v)
        raw = v.astype(np.float64)
    else:
        raw = np.frombuffer(usable, dtype="<i4")[::channels].astype(np.float64)

    return np.clip(raw / scale, -1.0, 1.0)


def resample_linear(x: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Linear-interpolation resample with endpoint-aligned positions.

    New length is round(len(x) * target_rate / source_rate). Output sample i
    reads source position i * (len(x) - 1) / (new_len - 1). Returns x
    unchanged when the rates already match.
    """
    if source_rate == target_rate:
        return x
    old_len = int(x.shape[0])
    # round half away from zero
    new_len = int(math.floor(old_len * target_rate / source_rate + 0.5))
    if new_len == 0 or old_len == 0:
        return np.zeros(0, dtype=x.dtype)
    if new_len == 1:
        pos = np.zeros(1, dtype=np.float64)
    else:
        pos = np.arange(new_len, dtype=np.float64) * (old_len - 1) / (new_len - 1)

    idx0 = np.floor(pos).astype(np.int64)
    idx1 = np.minimum(np.ceil(pos).astype(np.int64), old_len - 1)
    t = pos - idx0
    src = x.astype(np.float64, copy=False)
    y = (1.0 - t) * src[idx0] + t * src[idx1]
    return np.clip(y, -1.0, 1.0).astype(x.dtype, copy=False)


def decode_wav(data: bytes, *, target_rate: int = TARGET_SAMPLE_RATE) -> DecodedWav:
    """Decode RIFF/WAVE PCM bytes to a mono float32 waveform at target_rate.

    Args:
        data: Complete WAV container bytes.
        target_rate: Output sample rate in Hz.

    Returns:
        DecodedWav with float32 samples in [-1, 1].

    Raises:
        MalformedHeaderError: Fewer than 44 bytes, missing RIFF/WAVE tags, or
            an unusable fmt chunk.
        MissingFormatChunkError: No fmt chunk before the data chunk.
        UnsupportedEncodingError: Format code is not linear PCM (1).
        MissingDataChunkError: No data chunk, or one of size 0.
        UnsupportedBitDepthError: Bit depth not in {8, 16, 24, 32}.
    """
    data = bytes(data)
    if len(data) < MIN_HEADER_BYTES:
        raise MalformedHeaderError(f"File too short ({len(data)} < {MIN_HEADER_BYTES} bytes)")
    if data[0:4] != b"RIFF":
        raise MalformedHeaderError('Missing "RIFF" tag')
    if data[8:12] != b"WAVE":
        raise MalformedHeaderError('Missing "WAVE" tag')

    fmt, data_offset, data_size = _read_chunks(data)

    if fmt is None:
        raise MissingFormatChunkError('No "fmt " chunk found')
    if fmt.audio_format != PCM_FORMAT:
        raise UnsupportedEncodingError(
            f"audio_format={fmt.audio_format} (only PCM={PCM_FORMAT} is supported)"
        )
    if data_offset < 0 or data_size <= 0:
        raise MissingDataChunkError('No "data" chunk found')
    if fmt.bits_per_sample not in _PCM_SCALES:
        raise UnsupportedBitDepthError(
            f"bits_per_sample={fmt.bits_per_sample} (only 8/16/24/32 are supported)"
        )
    if fmt.channels < 1 or fmt.sample_rate < 1:
        raise MalformedHeaderError(
            f"Invalid fmt chunk: channels={fmt.channels}, sample_rate={fmt.sample_rate}"
        )

    payload = data[data_offset : data_offset + data_size]
    mono = _decode_channel0(payload, channels=fmt.channels, bits_per_sample=fmt.bits_per_sample)
    logger.debug(
        "Decoded %d frames (channels=%d, bits=%d, rate=%d)",
        mono.shape[0],
        fmt.channels,
        fmt.bits_per_sample,
        fmt.sample_rate,
    )

    if fmt.sample_rate != target_rate:
        mono = resample_linear(mono, fmt.sample_rate, target_rate)
        logger.debug("Resampled %d Hz -> %d Hz (%d samples)", fmt.sample_rate, target_rate, mono.shape[0])

    return DecodedWav(
        samples=mono.astype(np.float32),
        sample_rate=target_rate,
        source_sample_rate=fmt.sample_rate,
        channels=fmt.channels,
        bits_per_sample=fmt.bits_per_sample,
    )


def load_wav(path: Path | str, *, target_rate: int = TARGET_SAMPLE_RATE) -> DecodedWav:
    """Read a WAV file in one blocking read and decode it."""
    path = Path(path)
    with open(path, "rb") as f:
        data = f.read()
    return decode_wav(data, target_rate=target_rate)
