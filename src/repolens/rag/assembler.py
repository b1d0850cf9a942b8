"""Context assembler: file-name provenance + character budget.

Pipeline:
  1. Walk retrieved items in backend order (never re-sorted).
  2. Drop items with empty content.
  3. Resolve a display file name through FILENAME_EXTRACTORS (first hit wins).
  4. Wrap each item in a <<< FILE: name >>> … <<< END OF FILE >>> block.
  5. Append blocks while the total stays strictly below the budget; the first
     block that does not fit ends assembly (no skip-ahead to smaller blocks).
     If that is the first block, nothing is included: ``overflowed``.
  6. Report the distinct real file names that made it in, first-seen order.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from repolens.rag.search_client import ContextItem

UNKNOWN_FILE = "Unknown File"

CHAT_CONTEXT_BUDGET = 12_000
DOCS_CONTEXT_BUDGET = 15_000

BLOCK_OPEN = "<<< FILE: {name} >>>"
BLOCK_CLOSE = "<<< END OF FILE >>>"

# "// FILE: src/x.ts" or "# FILE: app/main.py", written at ingest time
_FILE_HEADER_RE = re.compile(r"(?://|#)\s*FILE:\s*([^\n\r]+)", re.IGNORECASE)


@dataclass
class AssembledContext:
    text: str = ""
    sources: list[str] = field(default_factory=list)
    blocks: int = 0
    skipped_empty: int = 0
    truncated: bool = False
    stopped_at: str | None = None  # file whose block ended assembly

    @property
    def overflowed(self) -> bool:
        """True when the very first usable block was already over budget."""
        return self.truncated and self.blocks == 0


# ------------------------------------------------------------------
# File name extraction
# ------------------------------------------------------------------


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def name_from_metadata(item: ContextItem) -> str | None:
    return _clean(item.metadata.get("fileName"))


def name_from_body_metadata(item: ContextItem) -> str | None:
    return _clean(item.body_metadata.get("fileName"))


def name_from_fields(item: ContextItem) -> str | None:
    return _clean(item.fields.get("fileName")) or _clean(item.fields.get("file_name"))


def name_from_header(item: ContextItem) -> str | None:
    match = _FILE_HEADER_RE.search(item.content)
    return _clean(match.group(1)) if match else None


FILENAME_EXTRACTORS: tuple[Callable[[ContextItem], str | None], ...] = (
    name_from_metadata,
    name_from_body_metadata,
    name_from_fields,
    name_from_header,
)


def resolve_file_name(item: ContextItem) -> str:
    """Return the first name any extractor finds, else UNKNOWN_FILE."""
    for extract in FILENAME_EXTRACTORS:
        name = extract(item)
        if name:
            return name
    return UNKNOWN_FILE


# ------------------------------------------------------------------
# Assembly
# ------------------------------------------------------------------


def overflow_message(ctx: AssembledContext, max_chars: int, setting: str) -> str:
    """Explain an overflowed assembly and name the config key that fixes it."""
    return (
        f"The top-ranked file ({ctx.stopped_at}) is larger than the context budget "
        f"of {max_chars:,} characters, so no code could be included. "
        f"Raise {setting} in repolens.yaml or ask about a narrower topic."
    )


def format_block(name: str, content: str) -> str:
    return f"\n{BLOCK_OPEN.format(name=name)}\n{content}\n{BLOCK_CLOSE}\n"


def assemble(items: Iterable[ContextItem], max_chars: int) -> AssembledContext:
    """Concatenate file blocks in order while ``len(text) < max_chars``.

    Args:
        items: Retrieved items, best-first as returned by the store.
        max_chars: Character budget; the result is always strictly shorter.

    Returns:
        AssembledContext with the block text and its provenance list.
    """
    ctx = AssembledContext()
    parts: list[str] = []
    length = 0

    for item in items:
        if not item.content:
            ctx.skipped_empty += 1
            continue

        name = resolve_file_name(item)
        block = format_block(name, item.content)

        if length + len(block) >= max_chars:
            ctx.truncated = True
            ctx.stopped_at = name
            break

        parts.append(block)
        length += len(block)
        ctx.blocks += 1
        if name != UNKNOWN_FILE and name not in ctx.sources:
            ctx.sources.append(name)

    ctx.text = "".join(parts)
    return ctx
