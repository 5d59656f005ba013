"""WAV decoding exception types."""

from __future__ import annotations


class WavDecodeError(ValueError):
    """Base exception for WAV container and PCM decoding errors."""


class MalformedHeaderError(WavDecodeError):
    """Raised when the buffer is too short or lacks the RIFF/WAVE tags."""


class MissingFormatChunkError(WavDecodeError):
    """Raised when no "fmt " chunk precedes the end of the buffer."""


class MissingDataChunkError(WavDecodeError):
    """Raised when no non-empty "data" chunk is found."""


class UnsupportedEncodingError(WavDecodeError):
    """Raised when the format chunk declares anything other than linear PCM."""


class UnsupportedBitDepthError(WavDecodeError):
    """Raised when bits-per-sample is not one of 8, 16, 24, 32."""
