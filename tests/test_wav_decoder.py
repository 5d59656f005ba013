"""Tests for RIFF/WAVE decoding and linear resampling."""

from __future__ import annotations

import struct
from pathlib import Path

import numpy as np
import pytest

from melfront.audio import (
    MalformedHeaderError,
    MissingDataChunkError,
    MissingFormatChunkError,
    UnsupportedBitDepthError,
    UnsupportedEncodingError,
    WavDecodeError,
    decode_wav,
    load_wav,
    resample_linear,
)
from melfront.features import MelSpectrogramExtractor
from wavbuilder import build_wav, chunk, pcm_bytes

ERROR_KINDS = (
    MalformedHeaderError,
    MissingFormatChunkError,
    MissingDataChunkError,
    UnsupportedEncodingError,
    UnsupportedBitDepthError,
)


def _quantize(x: np.ndarray, bits: int) -> np.ndarray:
    """Float [-1, 1) -> integer PCM for the given depth (8-bit is offset unsigned)."""
    full = 2 ** (bits - 1)
    q = np.clip(np.round(x * full), -full, full - 1).astype(np.int64)
    return q + 128 if bits == 8 else q


def _tone(n: int = 1600, sr: int = 16000, freq: float = 440.0) -> np.ndarray:
    t = np.arange(n) / sr
    return 0.6 * np.sin(2 * np.pi * freq * t)


class TestRoundTrip:
    """Encode a tone at each depth and decode it back."""

    @pytest.mark.parametrize("bits", [8, 16, 24, 32])
    def test_tone_recovers_within_quantization_step(self, bits: int) -> None:
        x = _tone()
        data = build_wav(pcm_bytes(_quantize(x, bits), bits), bits=bits)

        wav = decode_wav(data)

        assert wav.num_samples == x.size
        assert wav.samples.dtype == np.float32
        step = max(1.0 / 2 ** (bits - 1), 1e-6)
        np.testing.assert_allclose(wav.samples, x, atol=step)

    def test_24_bit_sign_extension(self) -> None:
        values = np.array([-1, -8388608, 8388607, 0, 1])
        wav = decode_wav(build_wav(pcm_bytes(values, 24), bits=24))
        expected = values / 8388608.0
        np.testing.assert_allclose(wav.samples, expected, atol=1e-7)
        assert wav.samples[1] == -1.0

    def test_8_bit_unsigned_offset(self) -> None:
        values = np.array([0, 128, 255])
        wav = decode_wav(build_wav(pcm_bytes(values, 8), bits=8))
        np.testing.assert_allclose(wav.samples, [-1.0, 0.0, 127 / 128], atol=1e-7)

    def test_values_stay_in_unit_range(self) -> None:
        values = np.array([-2147483648, 2147483647, 0])
        wav = decode_wav(build_wav(pcm_bytes(values, 32), bits=32))
        assert np.all(wav.samples >= -1.0)
        assert np.all(wav.samples <= 1.0)


class TestChannelSelection:
    def test_multichannel_keeps_channel_zero(self) -> None:
        frames = 400
        constants = np.array([1000, -2000, 3000])
        interleaved = np.tile(constants, (frames, 1))
        data = build_wav(pcm_bytes(interleaved, 16), channels=3, bits=16)

        wav = decode_wav(data)

        assert wav.num_samples == frames
        assert wav.channels == 3
        np.testing.assert_allclose(wav.samples, 1000 / 32768.0, rtol=0, atol=1e-7)

    def test_stereo_24_bit(self) -> None:
        interleaved = np.tile(np.array([-4096, 77]), (10, 1))
        wav = decode_wav(build_wav(pcm_bytes(interleaved, 24), channels=2, bits=24))
        assert wav.num_samples == 10
        np.testing.assert_allclose(wav.samples, -4096 / 8388608.0, atol=1e-9)


class TestChunkWalk:
    def test_skips_unknown_chunks_with_odd_padding(self) -> None:
        samples = np.arange(-50, 50)
        data = build_wav(pcm_bytes(samples, 16), extra_chunks=chunk(b"LIST", b"abc"))
        wav = decode_wav(data)
        np.testing.assert_allclose(wav.samples, samples / 32768.0, atol=1e-7)

    def test_data_size_larger_than_buffer_is_bounded(self) -> None:
        samples = np.arange(100)
        data = bytearray(build_wav(pcm_bytes(samples, 16)))
        # header claims more payload than present
        data_pos = data.find(b"data")
        struct.pack_into("<I", data, data_pos + 4, 10_000)
        wav = decode_wav(bytes(data))
        assert wav.num_samples == 100

    def test_header_facts_are_reported(self) -> None:
        data = build_wav(pcm_bytes(np.zeros(441), 16), sample_rate=44100)
        wav = decode_wav(data)
        assert wav.source_sample_rate == 44100
        assert wav.sample_rate == 16000
        assert wav.bits_per_sample == 16
        assert wav.num_samples == 160


class TestResampling:
    def test_constant_waveform_stays_constant(self) -> None:
        q = np.full(800, 8192)
        wav = decode_wav(build_wav(pcm_bytes(q, 16), sample_rate=8000))
        assert wav.num_samples == 1600
        np.testing.assert_allclose(wav.samples, 0.25, atol=1e-6)

    @pytest.mark.parametrize(
        "old_len,source,target,expected",
        [
            (441, 44100, 16000, 160),
            (480, 48000, 16000, 160),
            (100, 22050, 16000, 73),
            (3, 48000, 16000, 1),
            (1, 48000, 16000, 0),
        ],
    )
    def test_output_length_rounds(self, old_len: int, source: int, target: int, expected: int) -> None:
        y = resample_linear(np.full(old_len, 0.5), source, target)
        assert y.shape[0] == expected
        np.testing.assert_allclose(y, 0.5)

    def test_endpoints_align(self) -> None:
        x = np.linspace(-1.0, 1.0, 11)
        y = resample_linear(x, 10, 20)
        assert y.shape[0] == 22
        assert y[0] == pytest.approx(-1.0)
        assert y[-1] == pytest.approx(1.0)
        assert np.all(np.diff(y) > 0)

    def test_linear_interpolation_midpoints(self) -> None:
        x = np.array([0.0, 1.0])
        y = resample_linear(x, 2, 3)
        np.testing.assert_allclose(y, [0.0, 0.5, 1.0])

    def test_same_rate_is_identity(self) -> None:
        x = np.array([0.1, -0.2, 0.3])
        assert resample_linear(x, 16000, 16000) is x

    def test_empty_input(self) -> None:
        assert resample_linear(np.zeros(0), 8000, 16000).shape == (0,)


class TestMalformedInput:
    """Each malformed buffer maps to exactly one error kind."""

    @staticmethod
    def _assert_only(exc: BaseException, kind: type) -> None:
        assert isinstance(exc, kind)
        assert isinstance(exc, WavDecodeError)
        for other in ERROR_KINDS:
            if other is not kind:
                assert not isinstance(exc, other)

    def test_short_buffer(self) -> None:
        with pytest.raises(WavDecodeError) as info:
            decode_wav(b"RIFF" + b"\x00" * 30)
        self._assert_only(info.value, MalformedHeaderError)

    def test_wrong_riff_tag(self) -> None:
        data = b"RIFX" + build_wav(pcm_bytes(np.zeros(40), 16))[4:]
        with pytest.raises(WavDecodeError) as info:
            decode_wav(data)
        self._assert_only(info.value, MalformedHeaderError)

    def test_wrong_wave_tag(self) -> None:
        data = bytearray(build_wav(pcm_bytes(np.zeros(40), 16)))
        data[8:12] = b"AVI "
        with pytest.raises(MalformedHeaderError):
            decode_wav(bytes(data))

    def test_missing_data_chunk(self) -> None:
        data = build_wav(b"", include_data=False, extra_chunks=chunk(b"LIST", b"\x00" * 16))
        assert len(data) >= 44
        with pytest.raises(WavDecodeError) as info:
            decode_wav(data)
        self._assert_only(info.value, MissingDataChunkError)

    def test_empty_data_chunk(self) -> None:
        data = build_wav(b"", extra_chunks=chunk(b"LIST", b"\x00" * 16))
        with pytest.raises(MissingDataChunkError):
            decode_wav(data)

    def test_missing_fmt_chunk(self) -> None:
        data = build_wav(pcm_bytes(np.zeros(40), 16), include_fmt=False)
        with pytest.raises(WavDecodeError) as info:
            decode_wav(data)
        self._assert_only(info.value, MissingFormatChunkError)

    def test_non_pcm_encoding(self) -> None:
        data = build_wav(np.zeros(40, dtype="<f4").tobytes(), bits=32, audio_format=3)
        with pytest.raises(WavDecodeError) as info:
            decode_wav(data)
        self._assert_only(info.value, UnsupportedEncodingError)

    def test_bit_depth_12(self) -> None:
        data = build_wav(b"\x00" * 80, bits=12)
        with pytest.raises(WavDecodeError) as info:
            decode_wav(data)
        self._assert_only(info.value, UnsupportedBitDepthError)

    def test_decode_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            decode_wav(b"")


class TestEndToEnd:
    @pytest.mark.parametrize("n", [160, 320, 800])
    def test_minimal_header_zero_samples(self, n: int) -> None:
        data = build_wav(b"\x00\x00" * n)
        assert len(data) == 44 + 2 * n

        wav = decode_wav(data)
        assert wav.num_samples == n

        features = MelSpectrogramExtractor().process(wav.samples, rng=0)
        assert features.valid_frames == 1 + (n + 512 - 512) // 160
        assert np.all(np.isfinite(features.data))

    def test_load_wav_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tone.wav"
        path.write_bytes(build_wav(pcm_bytes(_quantize(_tone(), 16), 16)))
        wav = load_wav(path)
        assert wav.num_samples == 1600
        assert wav.duration_sec == pytest.approx(0.1)
