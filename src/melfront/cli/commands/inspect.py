"""CLI command for inspecting how a WAV file decodes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ...pipeline.inspect import inspect_wav
from ..base import handle_errors

logger = logging.getLogger(__name__)


def render_summary(summary: dict, console: Console | None = None) -> None:
    """Print an inspect_wav() summary as a two-column table."""
    if console is None:
        console = Console()

    table = Table(title=summary["file"], show_header=False)
    table.add_column("field", style="bold cyan")
    table.add_column("value")
    table.add_row("channels", str(summary["channels"]))
    table.add_row("bits per sample", str(summary["bits_per_sample"]))
    table.add_row("source rate", f"{summary['source_sample_rate']} Hz")
    table.add_row("decoded rate", f"{summary['sample_rate']} Hz")
    table.add_row("samples", str(summary["num_samples"]))
    table.add_row("duration", f"{summary['duration_sec']:.3f} s")
    table.add_row("peak", f"{summary['peak']:.4f}")
    table.add_row("frames", f"{summary['valid_frames']} valid / {summary['padded_frames']} padded")
    table.add_row("mel bands", str(summary["mel_bands"]))
    console.print(table)


def inspect_command(
    file: Annotated[
        Path,
        typer.Argument(help="WAV file to decode."),
    ],
) -> None:
    """Decode a WAV file and show its header and frame counts.

    Nothing is written; use `features` to produce .npy outputs.
    """
    with handle_errors("inspect", log=logger):
        summary = inspect_wav(file)
    render_summary(summary)
