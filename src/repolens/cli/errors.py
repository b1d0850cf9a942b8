"""repolens rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from repolens.cli.errors import err_no_api_key
    console.print(err_no_api_key("openrouter"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(provider: str) -> str:
    """No API key for the generation *provider*.

    Example:
        No API key for 'openrouter'. Set:  export OPENROUTER_API_KEY=sk-...
    """
    env_map = {
        "openrouter": "OPENROUTER_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{escape(provider)}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_search_key() -> str:
    """No context store API key."""
    return (
        "[red]Error:[/] No API key for the context store.\n"
        "  Set:  export ALCHEMYST_API_KEY=<key>"
    )


def err_config(message: str) -> str:
    """Config file rejected by the loader."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {escape(message)}\n"
        "  Fix repolens.yaml (project) or ~/.repolens/config.yaml (global)."
    )


def err_empty_question() -> str:
    return (
        "[red]Error:[/] No question given.\n"
        '  Run:  repolens ask "How does routing work?" --group <repo>'
    )


def err_assembly_empty(group: str | None) -> str:
    """Items were retrieved but none carried usable content."""
    label = escape(group or "(all groups)")
    return (
        f"[red]Error:[/] Found documents for '{label}' but couldn't extract content.\n"
        "  The stored items have no text. Re-ingest the repository."
    )


def err_context_overflow(file_name: str | None, budget: int, setting: str) -> str:
    """The first retrieved file alone is larger than the context budget."""
    return (
        f"[red]Error:[/] '{escape(file_name or 'Unknown File')}' is larger than the "
        f"{budget:,}-character context budget.\n"
        f"  Raise {setting} in repolens.yaml or narrow the question."
    )


def err_generation_failed(message: str) -> str:
    return (
        f"[red]Error:[/] Answer generation failed: {escape(message)}\n"
        "  Check the model name and API key, then retry."
    )


def err_section_failed(section: str, message: str) -> str:
    """A documentation section could not be produced."""
    return (
        f"[red]Error:[/] Section '{escape(section)}' was not generated.\n"
        f"  {escape(message)}\n"
        "  Fix the cause above, then retry (nothing was cached)."
    )


def err_no_cached_docs(owner: str, repo: str) -> str:
    target = escape(f"{owner}/{repo}")
    return (
        f"[yellow]No documentation cached for {target}.[/]\n"
        f"  Run:  repolens docs generate --owner {escape(owner)} --repo {escape(repo)} --section introduction"
    )


def err_output_path_unsafe(path: str) -> str:
    """--output path fails security validation."""
    return (
        f"[red]Error:[/] Output path is not allowed: '{escape(path)}'\n"
        "  Use a path within the current working directory."
    )
