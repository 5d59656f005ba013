"""CLI command for log-mel feature extraction."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from ...features import FeatureConfig
from ...global_config import RAW_AUDIO_DIR
from ...pipeline.features import FEATURES_OUTPUT_DIR, run_features
from ..base import BaseCLI, handle_errors


def _build_config(
    config_path: Path | None,
    *,
    mel_bands: int | None,
    fft_size: int | None,
    block_alignment: int | None,
    dither: float | None,
    no_normalize: bool,
) -> FeatureConfig:
    """Start from the YAML file (or defaults) and apply explicit CLI overrides."""
    config = FeatureConfig.from_yaml(config_path) if config_path else FeatureConfig()
    overrides: dict = {}
    if mel_bands is not None:
        overrides["mel_bands"] = mel_bands
    if fft_size is not None:
        overrides["fft_size"] = fft_size
    if block_alignment is not None:
        overrides["block_alignment"] = block_alignment
    if dither is not None:
        overrides["dither"] = dither
    if no_normalize:
        overrides["normalize_per_feature"] = False
    return replace(config, **overrides).validate()


def features_command(
    files: Annotated[
        list[Path],
        typer.Argument(
            help="WAV file(s) to process. If omitted, all .wav files in data/raw/audio are used.",
        ),
    ] = [],
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML file with feature settings (top level or under 'features')."),
    ] = None,
    mel_bands: Annotated[
        int | None,
        typer.Option("--mel-bands", "-m", help="Number of mel bands. Default: 64."),
    ] = None,
    fft_size: Annotated[
        int | None,
        typer.Option("--fft-size", "-N", help="FFT size in samples. Default: 512."),
    ] = None,
    block_alignment: Annotated[
        int | None,
        typer.Option("--block-alignment", "-b", help="Pad frames to a multiple of this; 0 disables. Default: 16."),
    ] = None,
    dither: Annotated[
        float | None,
        typer.Option("--dither", help="Gaussian dither amplitude. Default: 1e-5."),
    ] = None,
    no_normalize: Annotated[
        bool,
        typer.Option("--no-normalize", help="Skip per-band mean/std normalization."),
    ] = False,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Dither seed for reproducible output."),
    ] = None,
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-o", help="Directory for .npy outputs."),
    ] = FEATURES_OUTPUT_DIR,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be written without writing files."),
    ] = False,
    no_log: Annotated[
        bool,
        typer.Option("--no-log", help="Do not write a log file to data/logs/derived."),
    ] = False,
) -> None:
    """Compute log-mel features and write to data/derived/features.

    Output filenames: <track-name>_logmel_<mels>-<fft>-<hop>-<block>.npy
    Each file holds a [mel_bands, padded_frames] float32 matrix.
    """
    cli = BaseCLI("features")

    with handle_errors("features", log=cli.logger):
        config = _build_config(
            config_path,
            mel_bands=mel_bands,
            fft_size=fft_size,
            block_alignment=block_alignment,
            dither=dither,
            no_normalize=no_normalize,
        )

    # Normalize: empty list of files means "use default folder"
    audio_list = list(files) if files else None

    def _run() -> dict:
        return run_features(
            audio_files=audio_list,
            output_dir=output_dir,
            raw_audio_dir=RAW_AUDIO_DIR,
            config=config,
            seed=seed,
            dry_run=dry_run,
        )

    pre_message = (
        "Computing features (dry-run; no files will be written)..."
        if dry_run
        else "Computing log-mel features for "
        + (f"{len(audio_list)} file(s)..." if audio_list else "all audio in raw folder...")
    )
    inputs_desc = (
        str([str(p) for p in audio_list]) if audio_list
        else f"all .wav in {RAW_AUDIO_DIR}"
    )
    cli.handle_cli_operation(
        op_callable=_run,
        pre_message=pre_message,
        dry_run=dry_run,
        enable_log=not no_log,
        log_context={
            "inputs": inputs_desc,
            "output_dir": str(output_dir),
            "config": config.to_dict(),
        },
    )
