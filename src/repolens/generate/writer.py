"""Files written by repolens: saved answers, exported docs, cache entries.

  add_sources()           answer/section text + "[^n]: file" footnotes
  validate_output_path()  user-given --output; relative paths stay under CWD
  check_overwrite()       asks before clobbering unless --yes
  write_output()          temp file in the target dir, then os.replace()
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import typer

_FOOTNOTE_RULE = "\n\n---\n\n"


def add_sources(content: str, sources: list[str]) -> str:
    """Append one footnote per source file, numbered from 1.

    Format:
      [^1]: src/index.ts
      [^2]: README.md
    """
    if not sources:
        return content
    notes = "\n".join(f"[^{n}]: {name}" for n, name in enumerate(sources, start=1))
    return f"{content.rstrip()}{_FOOTNOTE_RULE}{notes}"


def validate_output_path(output: str, allowed_base: Path | None = None) -> Path:
    """Resolve an ``--output`` value.

    Absolute (or ``~``) paths are the user's explicit choice and pass through.
    Relative paths must resolve inside *allowed_base* (default: CWD).

    Raises:
        ValueError: If a relative path climbs out of *allowed_base*.
    """
    requested = Path(output).expanduser()
    if requested.is_absolute():
        return requested.resolve()

    base = (allowed_base or Path.cwd()).resolve()
    target = (base / requested).resolve()
    if not target.is_relative_to(base):
        raise ValueError(
            f"Output path '{output}' leaves '{base}'. Path traversal is not permitted."
        )
    return target


def check_overwrite(path: Path, yes: bool) -> bool:
    """False only when *path* exists and the user declines to replace it."""
    if yes or not path.exists():
        return True
    return typer.confirm(f"  {path.name} already exists. Replace it?", default=False)


def write_output(path: Path, content: str) -> None:
    """Replace *path* with *content* in one step; readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    staged: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False
        ) as handle:
            staged = Path(handle.name)
            handle.write(content)
        os.replace(staged, path)
    except Exception:
        if staged is not None:
            staged.unlink(missing_ok=True)
        raise
