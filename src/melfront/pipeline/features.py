"""Pipeline for computing log-mel features from WAV files and writing .npy outputs."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ..audio import load_wav
from ..features import FeatureConfig, MelSpectrogramExtractor
from ..global_config import FEATURES_DIR, RAW_AUDIO_DIR

FEATURES_OUTPUT_DIR = FEATURES_DIR


def _resolve_audio_files(files: list[Path] | None, raw_audio_dir: Path) -> list[Path]:
    """Return list of audio paths: explicit files if given, else all .wav in raw_audio_dir."""
    if files:
        return [Path(p).resolve() for p in files]
    if not raw_audio_dir.exists():
        return []
    return sorted(raw_audio_dir.glob("*.wav"))


def _track_name(audio_path: Path) -> str:
    """Stem of the audio file (no extension)."""
    return audio_path.stem


def _output_filename(track_name: str, config: FeatureConfig) -> str:
    """Build filename: <track-name>_logmel_<mels>-<fft>-<hop>-<block>.npy."""
    return (
        f"{track_name}_logmel_"
        f"{config.mel_bands}-{config.fft_size}-{config.hop_length}-{config.block_alignment}.npy"
    )


def _empty_result(message: str, *, success: bool = True) -> dict:
    return {
        "success": success,
        "total": 0,
        "succeeded": 0,
        "failed": 0,
        "skipped": 0,
        "message": message,
        "items": [],
        "failures": [],
    }


def run_features(
    *,
    audio_files: list[Path] | None = None,
    output_dir: Path = FEATURES_OUTPUT_DIR,
    raw_audio_dir: Path = RAW_AUDIO_DIR,
    config: FeatureConfig | None = None,
    seed: int | None = None,
    dry_run: bool = False,
) -> dict:
    """Compute log-mel features for WAV file(s) and write .npy to output_dir.

    If audio_files is None or empty, uses all .wav files in raw_audio_dir.
    Each output holds the [mel_bands, padded_frames] float32 matrix.
    A file that fails to decode is recorded as a failure and the batch continues.
    With a seed, file i dithers with seed + i so reruns are reproducible.

    Returns:
        Dict with success, total, succeeded, failed, skipped, message, items, failures.
    """
    config = config or FeatureConfig()
    extractor = MelSpectrogramExtractor(config)

    paths = _resolve_audio_files(audio_files, raw_audio_dir)
    if not paths:
        return _empty_result("No audio files to process.")

    output_dir = Path(output_dir)
    if not dry_run:
        output_dir.mkdir(parents=True, exist_ok=True)

    succeeded = 0
    failed = 0
    items: list[dict] = []
    failures: list[dict] = []

    for i, audio_path in enumerate(paths):
        out_name = _output_filename(_track_name(audio_path), config)
        out_path = output_dir / out_name

        if not audio_path.exists():
            failed += 1
            failures.append({"item": str(audio_path), "reason": "File not found"})
            items.append({"file": str(audio_path), "status": "failed", "detail": "File not found"})
            continue

        try:
            wav = load_wav(audio_path, target_rate=config.sample_rate)
            features = extractor.process(wav.samples, rng=None if seed is None else seed + i)
            matrix = features.as_2d()
            if not dry_run:
                np.save(out_path, matrix, allow_pickle=False)
            succeeded += 1
            items.append({
                "file": audio_path.name,
                "output": out_name,
                "status": "success",
                "num_samples": wav.num_samples,
                "source_sample_rate": wav.source_sample_rate,
                "valid_frames": features.valid_frames,
                "padded_frames": features.padded_frames,
                "shape": tuple(matrix.shape),
                "dtype": str(matrix.dtype),
            })
        except Exception as e:
            failed += 1
            failures.append({"item": str(audio_path), "reason": f"{type(e).__name__}: {e}"})
            items.append({"file": audio_path.name, "status": "failed", "detail": str(e)})

    return {
        "success": failed == 0,
        "total": len(paths),
        "succeeded": succeeded,
        "failed": failed,
        "skipped": 0,
        "message": f"Processed {len(paths)} file(s). Succeeded: {succeeded}, failed: {failed}."
        + (" [DRY RUN]" if dry_run else ""),
        "items": items,
        "failures": failures,
    }
