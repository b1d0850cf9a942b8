"""Question → grounded answer.

  normalize → retrieve (CHAT_TIERS + existence check) → assemble (chat budget)
           → generate → Answer(text, sources, diagnostic)

Outcomes:
  ANSWERED           generated text, sources from the assembled context
  NOT_INGESTED       nothing stored for the group → re-ingestion instructions
  NO_MATCH           group has content, query matched none → rephrasing tips
  ASSEMBLY_EMPTY     items came back but no usable content (data-shape problem)
  CONTEXT_OVERFLOW   the top-ranked file alone exceeds the chat budget
  GENERATION_FAILED  backend error, message carried through

The pipeline never fabricates an answer it cannot ground. Each call is
independent: no state is kept between questions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from repolens.config import RepoLensConfig
from repolens.generate.templates import build_chat_prompt
from repolens.rag import llm_client
from repolens.rag.assembler import assemble, overflow_message
from repolens.rag.normalizer import normalize
from repolens.rag.retriever import RetrievalStatus, Searcher, retrieve

logger = logging.getLogger(__name__)


class AnswerStatus(str, Enum):
    ANSWERED = "answered"
    NOT_INGESTED = "not_ingested"
    NO_MATCH = "no_match"
    ASSEMBLY_EMPTY = "assembly_empty"
    CONTEXT_OVERFLOW = "context_overflow"
    GENERATION_FAILED = "generation_failed"


@dataclass
class Answer:
    text: str
    sources: list[str] = field(default_factory=list)
    succeeded: bool = True
    status: AnswerStatus = AnswerStatus.ANSWERED
    diagnostic: dict[str, Any] = field(default_factory=dict)


ASSEMBLY_EMPTY_MESSAGE = "Found documents but couldn't extract content"


def not_ingested_message(group: str | None) -> str:
    label = group or "this repository"
    return f"""⚠️ **No Data Found for "{label}"**

It looks like this repository hasn't been ingested yet, or the ingestion failed.

**Next steps:**
1. Run the ingestion for this repository again
2. Check the ingestion output for errors
3. Make sure the repository URL is valid
4. Try a different repository to test

If you just ingested it, wait 10-30 seconds for indexing to complete."""


def no_match_message(group: str | None, keywords: str) -> str:
    label = group or "this"
    return f"""I searched the "{label}" repository but couldn't find code related to **"{keywords}"**.

**This could mean:**
- The repository doesn't contain information about this topic
- Try more specific terms (e.g., function names like `on()`, `emit()`)
- The search terms don't match the code content

**Suggestions:**
- Ask: "What functions are exported?"
- Ask: "Show me the main file"
- Use exact function/variable names from the repo

What would you like to explore?"""


def answer_question(
    question: str,
    scope_group: str | None,
    client: Searcher,
    config: RepoLensConfig,
) -> Answer:
    """Answer *question* from the content stored under *scope_group*.

    Raises:
        ValueError: If *question* is empty.
    """
    if not question or not question.strip():
        raise ValueError("question must not be empty")

    keywords = normalize(question)
    logger.info("question=%r keywords=%r group=%r", question, keywords, scope_group)

    result = retrieve(question, keywords, scope_group, client, scope=config.search.scope)
    diagnostic: dict[str, Any] = {
        "group": scope_group,
        "original_query": question,
        "keywords": keywords,
        "tier": result.tier_label.value,
        "retrieval": result.status.value,
        "attempts": [a.as_dict() for a in result.attempts],
        "files_found": len(result.items),
    }

    if result.status is RetrievalStatus.NOT_INGESTED:
        return Answer(
            text=not_ingested_message(scope_group),
            status=AnswerStatus.NOT_INGESTED,
            diagnostic=diagnostic,
        )

    if result.status is not RetrievalStatus.FOUND:
        return Answer(
            text=no_match_message(scope_group, keywords),
            status=AnswerStatus.NO_MATCH,
            diagnostic=diagnostic,
        )

    budget = config.context.chat_budget
    ctx = assemble(result.items, budget)
    diagnostic.update(
        files_included=ctx.blocks,
        sources_included=len(ctx.sources),
        context_size=len(ctx.text),
        budget=budget,
        truncated=ctx.truncated,
        stopped_at=ctx.stopped_at,
    )

    if ctx.overflowed:
        logger.warning(
            "top-ranked file %r does not fit the %d-char chat budget", ctx.stopped_at, budget
        )
        message = overflow_message(ctx, budget, "context.chat_budget")
        diagnostic["error"] = message
        return Answer(
            text=message,
            succeeded=False,
            status=AnswerStatus.CONTEXT_OVERFLOW,
            diagnostic=diagnostic,
        )

    if not ctx.text.strip():
        logger.error(
            "%d items retrieved for %r but none produced usable content",
            len(result.items),
            scope_group,
        )
        diagnostic["error"] = ASSEMBLY_EMPTY_MESSAGE
        return Answer(
            text=ASSEMBLY_EMPTY_MESSAGE,
            succeeded=False,
            status=AnswerStatus.ASSEMBLY_EMPTY,
            diagnostic=diagnostic,
        )

    prompt = build_chat_prompt(question, scope_group, ctx.text)
    gen = config.generation
    try:
        text = llm_client.generate(
            prompt.system_prompt,
            prompt.user_message,
            model=gen.model,
            temperature=gen.chat_temperature,
            max_tokens=gen.chat_max_tokens,
            timeout=gen.timeout,
            num_retries=gen.num_retries,
        )
    except llm_client.GenerationError as exc:
        diagnostic["error"] = str(exc)
        return Answer(
            text=f"Answer generation failed: {exc}",
            succeeded=False,
            status=AnswerStatus.GENERATION_FAILED,
            diagnostic=diagnostic,
        )

    return Answer(
        text=text,
        sources=list(ctx.sources),
        status=AnswerStatus.ANSWERED,
        diagnostic=diagnostic,
    )
