"""repolens docs CLI commands.

Commands:
  repolens docs generate --owner O --repo R --section S   — generate (or reuse cached) section
  repolens docs show --owner O --repo R [--section S]     — print cached documentation
  repolens docs export --owner O --repo R --output PATH   — write all cached sections to Markdown
  repolens docs sections                                  — list known section ids
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from repolens.cli.ask import build_search_client, load_config_or_exit, require_generation_key
from repolens.cli.errors import err_no_cached_docs, err_output_path_unsafe, err_section_failed
from repolens.generate.cache import DocsCache
from repolens.generate.docs import cached_section, ensure_section
from repolens.generate.templates import SECTION_DIRECTIVES, seed_query
from repolens.generate.writer import check_overwrite, validate_output_path, write_output
from repolens.log import configure_logging

console = Console()

docs_app = typer.Typer(
    name="docs",
    help="Generate and browse repository documentation sections.",
    add_completion=False,
)

OwnerOpt = Annotated[str, typer.Option("--owner", help="Repository owner.")]
RepoOpt = Annotated[str, typer.Option("--repo", help="Repository name.")]
CacheDirOpt = Annotated[
    Path | None,
    typer.Option("--cache-dir", hidden=True, help="Override docs cache directory (for testing)."),
]


@docs_app.command("generate")
def docs_generate_cmd(
    owner: OwnerOpt,
    repo: RepoOpt,
    section: Annotated[str, typer.Option("--section", "-s", help="Section id, e.g. introduction.")],
    group: Annotated[
        str | None,
        typer.Option("--group", "-g", help="Scope group (defaults to the repo name)."),
    ] = None,
    force: Annotated[bool, typer.Option("--force", help="Regenerate even if cached.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log retrieval to stderr.")] = False,
    cache_dir: CacheDirOpt = None,
) -> None:
    """Generate one documentation section (cached per repository)."""
    configure_logging(verbose)

    cfg = load_config_or_exit()
    cache = DocsCache(cache_dir or cfg.docs.cache_dir)

    # A cached section needs neither backend, so keys are checked only on a miss.
    result = None if force else cached_section(cache, owner, repo, section)
    if result is None:
        require_generation_key(cfg)
        client = build_search_client(cfg)
        result = ensure_section(cache, owner, repo, section, client, cfg, group=group, force=True)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "ok": result.succeeded,
                    "section": result.section,
                    "content": result.content,
                    "sources": result.sources,
                    "cached": result.cached,
                    "error": result.error,
                },
                indent=2,
            )
        )
    elif result.succeeded:
        console.print(Markdown(result.content))
        if result.cached:
            console.print("\n  [dim]✓ From cache (use --force to regenerate)[/]")
        elif result.sources:
            console.print(f"\n  [dim]Sources:[/] {escape(', '.join(result.sources))}")
    else:
        console.print(err_section_failed(section, result.error or "unknown error"))

    if not result.succeeded:
        raise typer.Exit(1)


@docs_app.command("show")
def docs_show_cmd(
    owner: OwnerOpt,
    repo: RepoOpt,
    section: Annotated[
        str | None,
        typer.Option("--section", "-s", help="Show only this section."),
    ] = None,
    cache_dir: CacheDirOpt = None,
) -> None:
    """Show cached documentation for a repository."""
    cache = DocsCache(cache_dir or load_config_or_exit().docs.cache_dir)
    documentation = cache.get(owner, repo)

    if section:
        content = documentation.get(section)
        if not content:
            console.print(
                f"[yellow]Section '{escape(section)}' not generated yet.[/]\n"
                f"  Run:  repolens docs generate --owner {escape(owner)} --repo {escape(repo)} "
                f"--section {escape(section)}"
            )
            raise typer.Exit(1)
        console.print(Markdown(content))
        return

    table = Table(title=f"Documentation — {escape(owner)}/{escape(repo)}", show_header=True, header_style="bold")
    table.add_column("Section", style="bold")
    table.add_column("Status")
    table.add_column("Size", justify="right")

    for name in _ordered_sections(documentation):
        content = documentation.get(name)
        if content:
            table.add_row(name, "[green]✓ cached[/]", f"{len(content):,} chars")
        else:
            table.add_row(name, "[dim]not generated[/]", "")

    console.print(table)


@docs_app.command("export")
def docs_export_cmd(
    owner: OwnerOpt,
    repo: RepoOpt,
    output: Annotated[str, typer.Option("--output", "-o", help="Output Markdown file.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Overwrite without asking.")] = False,
    cache_dir: CacheDirOpt = None,
) -> None:
    """Write every cached section for a repository into one Markdown file."""
    try:
        output_path = validate_output_path(output)
    except ValueError:
        console.print(err_output_path_unsafe(output))
        raise typer.Exit(1)

    cache = DocsCache(cache_dir or load_config_or_exit().docs.cache_dir)
    documentation = cache.get(owner, repo)
    present = [s for s in _ordered_sections(documentation) if documentation.get(s)]

    if not present:
        console.print(err_no_cached_docs(owner, repo))
        raise typer.Exit(1)

    if not check_overwrite(output_path, yes=yes):
        console.print("  [dim]Cancelled.[/]")
        raise typer.Exit(0)

    parts = [f"# {owner}/{repo}"]
    for name in present:
        parts.append(f"## {_title(name)}\n\n{documentation[name].strip()}")
    write_output(output_path, "\n\n".join(parts) + "\n")

    console.print(f"  [green]✓[/] {len(present)} sections written to [bold]{escape(str(output_path))}[/]")


@docs_app.command("sections")
def docs_sections_cmd() -> None:
    """List the known documentation sections and their retrieval seeds."""
    table = Table(title="Documentation sections", show_header=True, header_style="bold")
    table.add_column("Section", style="bold")
    table.add_column("Retrieval query")
    for name in SECTION_DIRECTIVES:
        table.add_row(name, seed_query(name))
    console.print(table)
    console.print("\n  [dim]Any other id is accepted and documented generically.[/]")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _ordered_sections(documentation: dict[str, str | None]) -> list[str]:
    """Registry order first, then any extra cached sections alphabetically."""
    extra = sorted(k for k in documentation if k not in SECTION_DIRECTIVES)
    return list(SECTION_DIRECTIVES) + extra


def _title(section: str) -> str:
    return section.replace("-", " ").title()
