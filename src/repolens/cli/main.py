"""repolens CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from repolens.cli.ask import ask_cmd
from repolens.cli.docs import docs_app


def _installed_version() -> str:
    try:
        return importlib.metadata.version("repolens")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"repolens {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="repolens",
    help=(
        "repolens — ask questions about an ingested code repository.\n\n"
        "  repolens ask     Grounded answer via tiered retrieval + LLM.\n"
        "  repolens docs    Generate and browse cached documentation sections."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """repolens — ask questions about an ingested code repository."""


app.command("ask")(ask_cmd)
app.add_typer(docs_app, name="docs")


@app.command("version")
def version_cmd() -> None:
    """Show the installed repolens version."""
    typer.echo(f"repolens {_installed_version()}")


if __name__ == "__main__":
    app()
