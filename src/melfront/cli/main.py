from __future__ import annotations

import typer

from .base import configure_logging
from .commands.features import features_command
from .commands.inspect import inspect_command

configure_logging()
app = typer.Typer(
    help="Log-mel speech front-end CLI",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("features")(features_command)
app.command("inspect")(inspect_command)


def main() -> None:
    """Main entry point for package CLI.

    Invokes the Typer application, which handles command parsing and
    execution.

    Side Effects:
        - Processes CLI arguments and executes commands.
        - May exit with non-zero code on errors.
    """
    app()


if __name__ == "__main__":
    main()
