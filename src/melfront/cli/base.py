"""Shared CLI plumbing: logging setup, error reporting, batch result rendering."""

from __future__ import annotations

import logging
import os
import sys
import traceback
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Any, TextIO

import typer

from ..global_config import DERIVED_LOGS_DIR

logger = logging.getLogger(__name__)

_LOGGING_CONFIGURED = False


def configure_logging(level: int = logging.INFO) -> None:
    """Configure CLI-wide logging once; later calls are no-ops."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _LOGGING_CONFIGURED = True


@contextmanager
def handle_errors(
    operation: str,
    *,
    log: logging.Logger | None = None,
    log_file: TextIO | None = None,
) -> Generator[None, None, None]:
    """Turn any exception into a red one-line message and exit code 1.

    The traceback goes to the logger and, when given, to the run log file.
    typer.Exit passes through untouched.
    """
    log = log or logger
    try:
        yield
    except typer.Exit:
        raise
    except Exception as exc:  # noqa: BLE001
        log.exception("Error during %s", operation)
        typer.secho(f"✗ {operation} failed: {exc}", fg=typer.colors.RED)
        if log_file:
            log_file.write(f"\n✗ {operation} failed: {type(exc).__name__}: {exc}\n")
            log_file.write(traceback.format_exc())
            log_file.flush()
        raise typer.Exit(1) from exc


def _item_line(item: dict[str, Any]) -> list[str]:
    """Render one successful per-file entry of a batch result."""
    return [
        f"    • {item['file']} -> {item['output']}",
        f"      {item['num_samples']} samples @ {item['source_sample_rate']} Hz source | "
        f"frames {item['valid_frames']}/{item['padded_frames']} | "
        f"{item['dtype']}{list(item['shape'])}",
    ]


def format_result(result: dict[str, Any], *, operation: str) -> str:
    """Render a pipeline result dict (success/total/.../items/failures) for the terminal."""
    icon = "✓" if result.get("success", True) else "✗"
    lines = [
        f"{icon} {operation}",
        f"  total: {result.get('total', 0)} | succeeded: {result.get('succeeded', 0)}"
        f" | failed: {result.get('failed', 0)}",
    ]
    if result.get("message"):
        lines.append(f"  ℹ {result['message']}")

    failures = result.get("failures") or []
    if failures:
        lines.append("  Failures:")
        lines.extend(f"    • {f['item']}: {f['reason']}" for f in failures)

    items = [i for i in result.get("items") or [] if i.get("status") == "success"]
    if items:
        lines.append("  Outputs:")
        for item in items:
            lines.extend(_item_line(item))
    return "\n".join(lines)


def _package_version() -> str:
    try:
        return version("melfront")
    except PackageNotFoundError:
        return "unknown"


def _open_run_log(module: str, *, dry_run: bool, context: dict[str, Any]) -> TextIO:
    """Create data/logs/derived/<ts>_<module>[_dryrun].log with a metadata header."""
    DERIVED_LOGS_DIR.mkdir(parents=True, exist_ok=True)
    now = datetime.now(timezone.utc)
    stem = f"{now.strftime('%Y%m%d-%H%M%S')}_{module}" + ("_dryrun" if dry_run else "")
    handle = open(DERIVED_LOGS_DIR / f"{stem}.log", "w", encoding="utf-8")  # noqa: SIM115
    header = {
        "timestamp": now.isoformat(),
        "command": module,
        "argv": sys.argv,
        "cwd": os.getcwd(),
        "melfront_version": _package_version(),
        **context,
    }
    handle.write("--- metadata ---\n")
    handle.writelines(f"{k}: {v}\n" for k, v in header.items())
    handle.write("---\n")
    handle.flush()
    return handle


class BaseCLI:
    """Runs one pipeline call for a command: banner, run log, errors, summary."""

    def __init__(self, domain: str) -> None:
        self.domain = domain
        self.logger = logging.getLogger(f"{__name__}.{domain}")

    def handle_cli_operation(
        self,
        *,
        op_callable: Callable[[], dict[str, Any]],
        pre_message: str | None = None,
        dry_run: bool = False,
        enable_log: bool = True,
        log_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call op_callable and print its formatted result.

        Everything echoed is mirrored to the run log when enable_log is set.
        """
        log_file = (
            _open_run_log(self.domain, dry_run=dry_run, context=log_context or {})
            if enable_log
            else None
        )

        def _out(msg: str) -> None:
            typer.echo(msg)
            if log_file:
                log_file.write(msg + "\n")
                log_file.flush()

        try:
            if pre_message:
                _out(pre_message)
            with handle_errors(self.domain, log=self.logger, log_file=log_file):
                result = op_callable()
            _out(format_result(result, operation=self.domain))
            return result
        finally:
            if log_file:
                log_file.close()
