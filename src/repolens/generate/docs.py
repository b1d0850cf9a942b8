"""Documentation section generator.

Per section:
  seed query (SECTION_SEED_QUERIES) → DOCS_TIERS retrieval (scoped, 0.3 then
  generic terms at 0.2) → first docs_max_items items → assemble (docs budget)
  → docs prompt + section directive → generate.

ensure_section() adds the cache: a stored section is returned as-is unless
forced; a freshly generated one is stored only when generation succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from repolens.config import RepoLensConfig
from repolens.generate.cache import DocsCache
from repolens.generate.templates import build_docs_prompt, seed_query
from repolens.rag import llm_client
from repolens.rag.assembler import assemble, overflow_message
from repolens.rag.retriever import DOCS_TIERS, Searcher, retrieve

logger = logging.getLogger(__name__)

NO_CONTEXT_MESSAGE = "No code context found. Repository may not be ingested yet."
EMPTY_SECTION_MESSAGE = "Unable to generate documentation."


@dataclass
class SectionResult:
    section: str
    content: str = ""
    sources: list[str] = field(default_factory=list)
    succeeded: bool = True
    error: str | None = None
    cached: bool = False
    diagnostic: dict[str, Any] = field(default_factory=dict)


def generate_section(
    owner: str,
    repo: str,
    section: str,
    client: Searcher,
    config: RepoLensConfig,
    group: str | None = None,
) -> SectionResult:
    """Generate one documentation section for *owner*/*repo*.

    *group* defaults to *repo*, matching how repositories are ingested.
    """
    group = group or repo
    query = seed_query(section)
    logger.info("generating %s for %s/%s (group=%s)", section, owner, repo, group)

    result = retrieve(
        query,
        query,
        group,
        client,
        tiers=DOCS_TIERS,
        existence_check=None,
        scope=config.search.scope,
    )
    items = result.items[: config.context.docs_max_items]
    budget = config.context.docs_budget
    ctx = assemble(items, budget)

    diagnostic: dict[str, Any] = {
        "group": group,
        "query": query,
        "tier": result.tier_label.value,
        "attempts": [a.as_dict() for a in result.attempts],
        "files_found": len(result.items),
        "files_included": ctx.blocks,
        "context_size": len(ctx.text),
        "stopped_at": ctx.stopped_at,
    }

    if ctx.overflowed:
        logger.warning(
            "top-ranked file %r does not fit the %d-char docs budget", ctx.stopped_at, budget
        )
        return SectionResult(
            section=section,
            succeeded=False,
            error=overflow_message(ctx, budget, "context.docs_budget"),
            diagnostic=diagnostic,
        )

    if not ctx.text.strip():
        return SectionResult(
            section=section,
            succeeded=False,
            error=NO_CONTEXT_MESSAGE,
            diagnostic=diagnostic,
        )

    prompt = build_docs_prompt(owner, repo, section, ctx.text)
    gen = config.generation
    try:
        content = llm_client.generate(
            prompt.system_prompt,
            prompt.user_message,
            model=gen.model,
            temperature=gen.docs_temperature,
            max_tokens=gen.docs_max_tokens,
            timeout=gen.timeout,
            num_retries=gen.num_retries,
            empty_fallback="",
        )
    except llm_client.GenerationError as exc:
        return SectionResult(
            section=section,
            sources=list(ctx.sources),
            succeeded=False,
            error=str(exc),
            diagnostic=diagnostic,
        )

    if not content:
        return SectionResult(
            section=section,
            sources=list(ctx.sources),
            succeeded=False,
            error=EMPTY_SECTION_MESSAGE,
            diagnostic=diagnostic,
        )

    return SectionResult(
        section=section,
        content=content,
        sources=list(ctx.sources),
        diagnostic=diagnostic,
    )


def cached_section(cache: DocsCache, owner: str, repo: str, section: str) -> SectionResult | None:
    content = cache.get(owner, repo).get(section)
    if not content:
        return None
    return SectionResult(section=section, content=content, cached=True)


def ensure_section(
    cache: DocsCache,
    owner: str,
    repo: str,
    section: str,
    client: Searcher,
    config: RepoLensConfig,
    group: str | None = None,
    force: bool = False,
) -> SectionResult:
    """Return the cached section, generating (and caching) it when needed."""
    if not force:
        cached = cached_section(cache, owner, repo, section)
        if cached is not None:
            return cached

    result = generate_section(owner, repo, section, client, config, group=group)
    if result.succeeded:
        cache.set(owner, repo, section, result.content)
    return result
