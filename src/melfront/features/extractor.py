"""Log-mel spectrogram extraction matching the QuartzNet preprocessor.

Two conventions differ from most STFT front-ends and are kept on purpose:
the power spectrum is divided by window_length**2 (not fft_size**2), and the
filter bank keeps weight on band-edge bins. Changing either shifts the
feature distribution the acoustic model was trained on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import scipy.fft

from .config import FeatureConfig
from .filterbank import build_mel_filterbank

logger = logging.getLogger(__name__)

LOG_FLOOR = 1e-10
STD_FLOOR = 1e-5

RngLike = np.random.Generator | int | None


@dataclass(frozen=True)
class FeatureMatrix:
    """Band-major log-mel features plus their time dimensions.

    `data` is flat float32 of length mel_bands * padded_frames. Columns at or
    beyond valid_frames are exactly zero.
    """

    data: np.ndarray
    mel_bands: int
    padded_frames: int
    valid_frames: int

    def as_2d(self) -> np.ndarray:
        """View as [mel_bands, padded_frames]."""
        return self.data.reshape(self.mel_bands, self.padded_frames)

    def as_model_input(self) -> np.ndarray:
        """View as a [1, mel_bands, padded_frames] batch for the acoustic model."""
        return self.as_2d()[np.newaxis, :, :]


def _resolve_rng(rng: RngLike) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def gaussian_noise(n: int, rng: np.random.Generator) -> np.ndarray:
    """Standard normal samples via pair-wise Box-Muller on uniform draws."""
    pairs = (n + 1) // 2
    u1 = rng.random(pairs) + 1e-12
    u2 = rng.random(pairs)
    r = np.sqrt(-2.0 * np.log(u1))
    theta = 2.0 * np.pi * u2
    noise = np.empty(2 * pairs, dtype=np.float64)
    noise[0::2] = r * np.cos(theta)
    noise[1::2] = r * np.sin(theta)
    return noise[:n]


def reflect_pad(x: np.ndarray, pad: int) -> np.ndarray:
    """Mirror-extend both ends by pad samples, edge sample included.

    Left side is x[pad-1], ..., x[0]; right side is x[-1], ..., x[-pad].
    Empty input is padded with zeros.
    """
    if x.size == 0:
        return np.zeros(2 * pad, dtype=x.dtype)
    return np.pad(x, pad, mode="symmetric")


def hann_analysis_window(window_length: int, fft_size: int) -> np.ndarray:
    """Symmetric Hann of window_length samples, zero-filled to fft_size."""
    i = np.arange(window_length, dtype=np.float64)
    window = np.zeros(fft_size, dtype=np.float64)
    window[:window_length] = 0.5 - 0.5 * np.cos(2.0 * np.pi * i / (window_length - 1))
    window.setflags(write=False)
    return window


def frame_count(num_samples: int, fft_size: int, hop_length: int) -> int:
    """Frames produced for num_samples under centered framing (always >= 1)."""
    padded_length = num_samples + 2 * (fft_size // 2)
    return 1 + (padded_length - fft_size) // hop_length


class MelSpectrogramExtractor:
    """Waveform -> normalized, block-padded log-mel features.

    Window and filter bank are built once and never mutated, so one instance
    can serve concurrent `process()` calls. Each call draws its dither from
    its own generator.
    """

    def __init__(self, config: FeatureConfig | None = None) -> None:
        self.config = (config or FeatureConfig()).validate()
        self.window = hann_analysis_window(self.config.window_length, self.config.fft_size)
        self.filterbank = build_mel_filterbank(
            self.config.sample_rate,
            self.config.fft_size,
            self.config.mel_bands,
            f_min=self.config.f_min,
            f_max=self.config.upper_frequency,
        )

    def _dither(self, x: np.ndarray, rng: RngLike) -> np.ndarray:
        """Add scaled Gaussian noise; the result is always float32-valued.

        Waveform and noise are both held in single precision, so a dither of
        zero still rounds the input the same way a noisy run does.
        """
        wav = x.astype(np.float32)
        noise = np.zeros(x.size, dtype=np.float32)
        if self.config.dither > 0 and x.size:
            noise = gaussian_noise(x.size, _resolve_rng(rng)).astype(np.float32)
        dithered = wav.astype(np.float64) + noise.astype(np.float64) * self.config.dither
        return dithered.astype(np.float32).astype(np.float64)

    def _power_spectrum(self, padded: np.ndarray, n_frames: int) -> np.ndarray:
        """Return [n_frames, fft_size // 2 + 1] power normalized by window_length**2."""
        cfg = self.config
        frames = np.lib.stride_tricks.sliding_window_view(padded, cfg.fft_size)
        frames = frames[:: cfg.hop_length][:n_frames] * self.window
        spectrum = scipy.fft.rfft(frames, n=cfg.fft_size, axis=1)
        return (spectrum.real**2 + spectrum.imag**2) / float(cfg.window_length**2)

    def process(self, waveform: np.ndarray, *, rng: RngLike = None) -> FeatureMatrix:
        """Compute features for one whole utterance.

        Parameters
        ----------
        waveform : array-like
            Mono samples at config.sample_rate, nominally in [-1, 1].
        rng : numpy.random.Generator, int or None
            Dither source or seed. None draws fresh entropy.

        Returns
        -------
        FeatureMatrix
            Never raises for finite 1-D input; empty input yields one frame.
        """
        cfg = self.config
        x = np.asarray(waveform, dtype=np.float64).reshape(-1)

        x = self._dither(x, rng)
        padded = reflect_pad(x, cfg.fft_size // 2)
        n_frames = 1 + (padded.shape[0] - cfg.fft_size) // cfg.hop_length

        power = self._power_spectrum(padded, n_frames)
        mel = self.filterbank @ power.T  # [mel_bands, n_frames]
        logmel = np.log10(np.maximum(mel, LOG_FLOOR))

        if cfg.normalize_per_feature:
            mean = logmel.mean(axis=1, keepdims=True)
            std = np.sqrt(np.mean((logmel - mean) ** 2, axis=1, keepdims=True))
            logmel = (logmel - mean) / np.maximum(std, STD_FLOOR)

        padded_frames = n_frames
        if cfg.block_alignment > 0:
            padded_frames += (-n_frames) % cfg.block_alignment

        out = np.zeros((cfg.mel_bands, padded_frames), dtype=np.float32)
        out[:, :n_frames] = logmel
        logger.debug(
            "Extracted %d frames (%d after padding) from %d samples",
            n_frames,
            padded_frames,
            x.shape[0],
        )
        return FeatureMatrix(
            data=out.reshape(-1),
            mel_bands=cfg.mel_bands,
            padded_frames=padded_frames,
            valid_frames=n_frames,
        )


def extract_features(
    waveform: np.ndarray,
    config: FeatureConfig | None = None,
    *,
    rng: RngLike = None,
) -> FeatureMatrix:
    """One-shot helper: build an extractor and process a single waveform."""
    return MelSpectrogramExtractor(config).process(waveform, rng=rng)
