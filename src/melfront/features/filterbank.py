"""Triangular mel filter bank with area-normalized rows."""

from __future__ import annotations

import librosa
import numpy as np


def build_mel_filterbank(
    sample_rate: int,
    fft_size: int,
    mel_bands: int,
    f_min: float = 0.0,
    f_max: float | None = None,
) -> np.ndarray:
    """Build a [mel_bands, fft_size // 2 + 1] triangular filter matrix.

    Band edges are mel_bands + 2 points equally spaced on the HTK mel scale
    (2595 * log10(1 + hz / 700)) between f_min and f_max. Each triangle uses
    max(0, min(rising, falling)) over the bin centre frequencies, so bins that
    land on a band edge keep their weight. Every row with any weight is
    divided by its sum.

    Parameters
    ----------
    sample_rate : int
        Sampling rate (Hz).
    fft_size : int
        FFT length in samples.
    mel_bands : int
        Number of output bands.
    f_min : float
        Lowest band edge in Hz (default 0.0).
    f_max : float or None
        Highest band edge in Hz; None uses sample_rate / 2.

    Returns
    -------
    np.ndarray
        Read-only float64 matrix; non-negative, active rows sum to 1.
    """
    if mel_bands <= 0:
        raise ValueError(f"mel_bands must be positive, got {mel_bands}")
    if fft_size <= 0:
        raise ValueError(f"fft_size must be positive, got {fft_size}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    f_max = sample_rate / 2.0 if f_max is None else float(f_max)
    if not f_min < f_max:
        raise ValueError(f"f_min must be below f_max, got f_min={f_min}, f_max={f_max}")

    edges = librosa.mel_frequencies(n_mels=mel_bands + 2, fmin=f_min, fmax=f_max, htk=True)
    bin_freqs = librosa.fft_frequencies(sr=sample_rate, n_fft=fft_size)

    left = edges[:-2, None]
    center = edges[1:-1, None]
    right = edges[2:, None]
    rising = (bin_freqs[None, :] - left) / (center - left)
    falling = (right - bin_freqs[None, :]) / (right - center)
    weights = np.maximum(0.0, np.minimum(rising, falling))

    row_sums = weights.sum(axis=1, keepdims=True)
    weights = np.divide(weights, row_sums, out=weights, where=row_sums > 0)

    weights.setflags(write=False)
    return weights
