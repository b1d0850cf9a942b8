"""Context store search client.

One ``search()`` call is one blocking POST to ``{base_url}/context/search``.
Every failure mode (connection, timeout, HTTP status, malformed body) is
raised as SearchError so the retriever can treat it as an empty tier.

Wire body:
  {
    "query": "...",
    "similarity_threshold": 0.4,
    "minimum_similarity_threshold": 0.3,
    "scope": "internal",
    "body_metadata": {"groupName": ["<group>"]},   # omitted when unscoped
    "metadata": "true"
  }
Response: {"contexts": [{"content" | "document": ..., "metadata": {...}, ...}]}
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from repolens.config import SearchCfg

logger = logging.getLogger(__name__)

_USER_AGENT = "repolens/0.1"
_API_KEY_ENV = "ALCHEMYST_API_KEY"


class SearchError(RuntimeError):
    """Raised when a single context search call fails for any reason."""


@dataclass
class ContextItem:
    """One retrieved unit of content plus the raw bags its file name may live in.

    Attributes:
        content: Primary text (backend field ``content`` or ``document``).
        metadata: Structured metadata bag.
        body_metadata: Secondary metadata bag.
        fields: Remaining top-level fields of the record (e.g. ``fileName``).
    """

    content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    body_metadata: dict[str, Any] = field(default_factory=dict)
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ContextItem:
        content = record.get("content") or record.get("document") or ""
        metadata = record.get("metadata")
        body_metadata = record.get("body_metadata")
        rest = {
            k: v
            for k, v in record.items()
            if k not in ("content", "document", "metadata", "body_metadata")
        }
        return cls(
            content=content if isinstance(content, str) else str(content),
            metadata=metadata if isinstance(metadata, dict) else {},
            body_metadata=body_metadata if isinstance(body_metadata, dict) else {},
            fields=rest,
        )


@dataclass
class SearchRequest:
    query: str
    similarity_threshold: float
    minimum_similarity_threshold: float
    scope: str = "internal"
    group_filter: list[str] | None = None
    want_metadata: bool = True

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "query": self.query,
            "similarity_threshold": self.similarity_threshold,
            "minimum_similarity_threshold": self.minimum_similarity_threshold,
            "scope": self.scope,
            "metadata": "true" if self.want_metadata else "false",
        }
        if self.group_filter:
            payload["body_metadata"] = {"groupName": list(self.group_filter)}
        return payload


class ContextSearchClient:
    """Thin HTTP client for the semantic context store."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key

    @classmethod
    def from_config(cls, cfg: SearchCfg) -> ContextSearchClient:
        """Build a client from config; the key comes from ALCHEMYST_API_KEY.

        Raises:
            EnvironmentError: If the API key is not set.
        """
        api_key = os.getenv(_API_KEY_ENV)
        if not api_key:
            raise EnvironmentError(
                f"Context store API key not found. Set the {_API_KEY_ENV} environment variable."
            )
        return cls(cfg.base_url, api_key, timeout=cfg.timeout)

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/context/search"

    def search(self, request: SearchRequest) -> list[ContextItem]:
        """Run one search and return items in backend order.

        Raises:
            SearchError: On any transport, HTTP, or decoding failure.
        """
        body = json.dumps(request.to_payload()).encode("utf-8")
        http_request = urllib.request.Request(
            self.search_url,
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Bearer {self._api_key}",
                "User-Agent": _USER_AGENT,
            },
        )

        try:
            with urllib.request.urlopen(http_request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as exc:
            raise SearchError(f"Context search failed with HTTP {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise SearchError(f"Context search request failed: {exc}") from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SearchError(f"Context search returned an unreadable body: {exc}") from exc

        if not isinstance(data, dict):
            raise SearchError("Context search returned an unexpected payload shape.")

        records = data.get("contexts") or []
        items = [ContextItem.from_record(r) for r in records if isinstance(r, dict)]
        logger.debug("search %r → %d items", request.query, len(items))
        return items
