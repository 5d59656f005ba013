"""WAV decoding package."""

from .errors import (
    MalformedHeaderError,
    MissingDataChunkError,
    MissingFormatChunkError,
    UnsupportedBitDepthError,
    UnsupportedEncodingError,
    WavDecodeError,
)
from .wav import DecodedWav, WavFormat, decode_wav, load_wav, resample_linear

__all__ = [
    "DecodedWav",
    "WavFormat",
    "decode_wav",
    "load_wav",
    "resample_linear",
    "WavDecodeError",
    "MalformedHeaderError",
    "MissingFormatChunkError",
    "MissingDataChunkError",
    "UnsupportedEncodingError",
    "UnsupportedBitDepthError",
]
