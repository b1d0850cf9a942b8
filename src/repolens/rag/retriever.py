"""Tiered retrieval: ordered search tiers with decreasing strictness.

Chat cascade (CHAT_TIERS + EXISTENCE_CHECK):

  tier       query        sim    min    scope
  semantic   original     0.40   0.30   scope group
  keyword    normalized   0.25   0.25   scope group
  broad      normalized   0.15   0.15   everything
  existence  fixed terms  0.01   0.01   scope group   (diagnostic only)

Tiers run strictly in order and stop at the first one returning items.
A failing tier counts as an empty tier. The existence check runs only when
every content tier came back empty; it never supplies content, it only separates
"nothing ingested for this group" (NOT_INGESTED) from "query did not match"
(NO_MATCH).

The existence check uses generic programming terms, so repositories that hold
no code (pure docs or data) report NOT_INGESTED.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from repolens.rag.search_client import ContextItem, SearchRequest

logger = logging.getLogger(__name__)


class Searcher(Protocol):
    def search(self, request: SearchRequest) -> list[ContextItem]: ...


class TierLabel(str, Enum):
    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    BROAD = "broad"
    SEED = "seed"
    GENERIC = "generic"
    NONE = "none"


class RetrievalStatus(str, Enum):
    FOUND = "found"
    NO_MATCH = "no_match"
    NOT_INGESTED = "not_ingested"
    EMPTY = "empty"  # nothing matched and no existence check was configured


class QuerySource(str, Enum):
    ORIGINAL = "original"
    NORMALIZED = "normalized"
    FIXED = "fixed"


@dataclass(frozen=True)
class SearchTier:
    """One step of the cascade.

    Attributes:
        name: Label reported when this tier supplies the content.
        query_source: Which query string the tier searches with.
        similarity_threshold: Target similarity passed to the store.
        minimum_similarity_threshold: Floor similarity passed to the store.
        scoped: Restrict to the scope group (when one is given).
        fixed_query: Query used when query_source is FIXED.
    """

    name: str
    query_source: QuerySource
    similarity_threshold: float
    minimum_similarity_threshold: float
    scoped: bool = True
    fixed_query: str = ""

    def query_for(self, original: str, normalized: str) -> str:
        if self.query_source is QuerySource.ORIGINAL:
            return original
        if self.query_source is QuerySource.NORMALIZED:
            return normalized
        return self.fixed_query


EXISTENCE_QUERY = "function class export import"
DOCS_FALLBACK_QUERY = "function class export import component"

CHAT_TIERS: tuple[SearchTier, ...] = (
    SearchTier("semantic", QuerySource.ORIGINAL, 0.40, 0.30),
    SearchTier("keyword", QuerySource.NORMALIZED, 0.25, 0.25),
    SearchTier("broad", QuerySource.NORMALIZED, 0.15, 0.15, scoped=False),
)

EXISTENCE_CHECK = SearchTier(
    "existence", QuerySource.FIXED, 0.01, 0.01, fixed_query=EXISTENCE_QUERY
)

# Documentation seeds its own query, so a two-step variant is enough.
DOCS_TIERS: tuple[SearchTier, ...] = (
    SearchTier("seed", QuerySource.ORIGINAL, 0.3, 0.3),
    SearchTier("generic", QuerySource.FIXED, 0.2, 0.2, fixed_query=DOCS_FALLBACK_QUERY),
)


@dataclass
class TierAttempt:
    name: str
    query: str
    item_count: int = 0
    error: str | None = None

    def as_dict(self) -> dict:
        return {
            "tier": self.name,
            "query": self.query,
            "items": self.item_count,
            "error": self.error,
        }


@dataclass
class SearchTierResult:
    items: list[ContextItem] = field(default_factory=list)
    tier_label: TierLabel = TierLabel.NONE
    status: RetrievalStatus = RetrievalStatus.EMPTY
    attempts: list[TierAttempt] = field(default_factory=list)


def retrieve(
    original_query: str,
    normalized_query: str,
    scope_group: str | None,
    client: Searcher,
    *,
    tiers: tuple[SearchTier, ...] = CHAT_TIERS,
    existence_check: SearchTier | None = EXISTENCE_CHECK,
    scope: str = "internal",
) -> SearchTierResult:
    """Run *tiers* in order and return the first non-empty result set."""
    attempts: list[TierAttempt] = []

    for tier in tiers:
        items, attempt = _run_tier(tier, original_query, normalized_query, scope_group, client, scope)
        attempts.append(attempt)
        if items:
            logger.info("tier %s matched %d items", tier.name, len(items))
            return SearchTierResult(
                items=items,
                tier_label=_label(tier),
                status=RetrievalStatus.FOUND,
                attempts=attempts,
            )

    if existence_check is None:
        return SearchTierResult(status=RetrievalStatus.EMPTY, attempts=attempts)

    check_items, check_attempt = _run_tier(
        existence_check, original_query, normalized_query, scope_group, client, scope
    )
    attempts.append(check_attempt)

    if check_items:
        logger.info(
            "group %r holds content (%d items on the existence check) but the query did not match",
            scope_group,
            len(check_items),
        )
        status = RetrievalStatus.NO_MATCH
    else:
        logger.info("no content found for group %r; repository may not be ingested", scope_group)
        status = RetrievalStatus.NOT_INGESTED

    return SearchTierResult(status=status, attempts=attempts)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _run_tier(
    tier: SearchTier,
    original_query: str,
    normalized_query: str,
    scope_group: str | None,
    client: Searcher,
    scope: str,
) -> tuple[list[ContextItem], TierAttempt]:
    """Execute one tier. Any failure is logged and reported as zero items."""
    query = tier.query_for(original_query, normalized_query)
    group_filter = [scope_group] if (tier.scoped and scope_group) else None
    request = SearchRequest(
        query=query,
        similarity_threshold=tier.similarity_threshold,
        minimum_similarity_threshold=tier.minimum_similarity_threshold,
        scope=scope,
        group_filter=group_filter,
        want_metadata=True,
    )
    attempt = TierAttempt(name=tier.name, query=query)

    try:
        items = list(client.search(request) or [])
    except Exception as exc:
        # A failed tier never aborts the cascade
        logger.warning("tier %s failed: %s", tier.name, exc)
        attempt.error = str(exc)
        return [], attempt

    attempt.item_count = len(items)
    logger.debug(
        "tier %s (sim=%.2f, min=%.2f, group=%s) → %d items",
        tier.name,
        tier.similarity_threshold,
        tier.minimum_similarity_threshold,
        group_filter,
        len(items),
    )
    return items, attempt


def _label(tier: SearchTier) -> TierLabel:
    try:
        return TierLabel(tier.name)
    except ValueError:
        return TierLabel.NONE
