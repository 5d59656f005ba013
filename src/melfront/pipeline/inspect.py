"""Decode a single WAV file and summarize what the front-end would see."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ..audio import load_wav
from ..features import FeatureConfig, frame_count


def inspect_wav(path: Path, *, config: FeatureConfig | None = None) -> dict:
    """Decode path and return header facts plus the frame counts it would yield.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        WavDecodeError: If the container cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")

    config = config or FeatureConfig()
    wav = load_wav(path, target_rate=config.sample_rate)
    valid_frames = frame_count(wav.num_samples, config.fft_size, config.hop_length)
    padded_frames = valid_frames
    if config.block_alignment > 0:
        padded_frames += (-valid_frames) % config.block_alignment

    peak = float(np.max(np.abs(wav.samples))) if wav.num_samples else 0.0
    return {
        "file": path.name,
        "channels": wav.channels,
        "bits_per_sample": wav.bits_per_sample,
        "source_sample_rate": wav.source_sample_rate,
        "sample_rate": wav.sample_rate,
        "num_samples": wav.num_samples,
        "duration_sec": wav.duration_sec,
        "peak": peak,
        "valid_frames": valid_frames,
        "padded_frames": padded_frames,
        "mel_bands": config.mel_bands,
    }
