"""Turn a conversational question into a keyword-oriented search query."""

from __future__ import annotations

import re

FILLER_PREFIXES: tuple[str, ...] = (
    "how do i",
    "how to",
    "what is",
    "what are",
    "can you",
    "please",
    "explain",
    "show me",
    "tell me about",
)

_PREFIX_RE = re.compile(
    r"^(?:" + "|".join(re.escape(p) for p in FILLER_PREFIXES) + r")\s+",
    re.IGNORECASE,
)


def normalize(raw_query: str) -> str:
    """Lower-case, drop one leading filler phrase and every '?', then trim.

    Falls back to *raw_query* unchanged when nothing is left, so a non-empty
    question never becomes an empty search query.
    """
    cleaned = _PREFIX_RE.sub("", raw_query.lower(), count=1)
    cleaned = cleaned.replace("?", "").strip()
    return cleaned or raw_query
