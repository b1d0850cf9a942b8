"""repolens ask CLI command.

Answers one question about an ingested repository via tiered retrieval + LLM.

Usage:
  repolens ask "How do I install this?" --group my-repo [--json] [--debug]

Flags:
  --group NAME   Scope group (repository name used at ingest time)
  --json         Print the Answer as JSON (text, sources, status, diagnostic)
  --debug        Show retrieval diagnostics after the answer
  --verbose      Log every retrieval tier to stderr
  --output PATH  Also save the answer with source footnotes; path traversal blocked

Exit code 1 when the answer is a failure (assembly empty, generation failed).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from repolens.cli.errors import (
    err_assembly_empty,
    err_config,
    err_context_overflow,
    err_empty_question,
    err_generation_failed,
    err_no_api_key,
    err_no_search_key,
    err_output_path_unsafe,
)
from repolens.config import ConfigError, RepoLensConfig, load_config
from repolens.generate.writer import add_sources, check_overwrite, validate_output_path, write_output
from repolens.log import configure_logging
from repolens.rag.llm_client import provider_of, validate_api_key
from repolens.rag.pipeline import Answer, AnswerStatus, answer_question
from repolens.rag.search_client import ContextSearchClient

console = Console()


def ask_cmd(
    question: Annotated[
        str,
        typer.Argument(help="Natural-language question about the repository."),
    ],
    group: Annotated[
        str | None,
        typer.Option("--group", "-g", help="Scope group (repository name used at ingest)."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the answer as JSON."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Show retrieval diagnostics."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log retrieval tiers to stderr."),
    ] = False,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Also save the answer (with source footnotes) to this file."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Overwrite --output without asking."),
    ] = False,
    project_dir: Annotated[
        Path | None,
        typer.Option("--project-dir", hidden=True, help="Directory holding repolens.yaml (for testing)."),
    ] = None,
) -> None:
    """Ask a question about an ingested repository."""
    configure_logging(verbose)

    if not question.strip():
        console.print(err_empty_question())
        raise typer.Exit(1)

    output_path: Path | None = None
    if output:
        try:
            output_path = validate_output_path(output)
        except ValueError:
            console.print(err_output_path_unsafe(output))
            raise typer.Exit(1)
        if not check_overwrite(output_path, yes=yes):
            console.print("  [dim]Cancelled.[/]")
            raise typer.Exit(0)

    cfg = load_runtime_config(project_dir)
    client = build_search_client(cfg)

    answer = answer_question(question, group, client, cfg)

    if as_json:
        typer.echo(json.dumps(_answer_dict(answer), indent=2))
    else:
        _print_answer(answer, group, debug)

    if not answer.succeeded:
        raise typer.Exit(1)

    if output_path is not None:
        write_output(output_path, add_sources(answer.text, answer.sources) + "\n")
        if not as_json:
            console.print(f"\n  [green]✓[/] Written to [bold]{escape(str(output_path))}[/]")


# ------------------------------------------------------------------
# Shared runtime helpers (also used by `repolens docs`)
# ------------------------------------------------------------------


def load_runtime_config(project_dir: Path | None = None) -> RepoLensConfig:
    """Load config and check the generation key, exiting 1 with a hint on failure."""
    cfg = load_config_or_exit(project_dir)
    require_generation_key(cfg)
    return cfg


def load_config_or_exit(project_dir: Path | None = None) -> RepoLensConfig:
    try:
        return load_config(project_dir)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def require_generation_key(cfg: RepoLensConfig) -> None:
    try:
        validate_api_key(cfg.generation.model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(cfg.generation.model)))
        raise typer.Exit(1)


def build_search_client(cfg: RepoLensConfig) -> ContextSearchClient:
    try:
        return ContextSearchClient.from_config(cfg.search)
    except EnvironmentError:
        console.print(err_no_search_key())
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Output
# ------------------------------------------------------------------


def _answer_dict(answer: Answer) -> dict:
    return {
        "ok": answer.succeeded,
        "status": answer.status.value,
        "answer": answer.text,
        "sources": answer.sources,
        "debug": answer.diagnostic,
    }


def _print_answer(answer: Answer, group: str | None, debug: bool) -> None:
    if answer.status is AnswerStatus.ASSEMBLY_EMPTY:
        console.print(err_assembly_empty(group))
    elif answer.status is AnswerStatus.CONTEXT_OVERFLOW:
        console.print(
            err_context_overflow(
                answer.diagnostic.get("stopped_at"),
                answer.diagnostic.get("budget", 0),
                "context.chat_budget",
            )
        )
    elif answer.status is AnswerStatus.GENERATION_FAILED:
        console.print(err_generation_failed(answer.diagnostic.get("error", answer.text)))
    else:
        console.print(Markdown(answer.text))

    if answer.sources:
        console.print(f"\n  [dim]Sources:[/] {escape(', '.join(answer.sources))}")

    if debug:
        d = answer.diagnostic
        console.print(
            f"  [dim]tier={d.get('tier')}  found={d.get('files_found', 0)}  "
            f"included={d.get('files_included', 0)}  context={d.get('context_size', 0):,} chars[/]"
        )
        for attempt in d.get("attempts", []):
            line = f"    {attempt['tier']:<10} {attempt['items']:>3} items  {escape(attempt['query'])!s}"
            if attempt.get("error"):
                line += f"  [red]{escape(attempt['error'])}[/]"
            console.print(line)
