"""Shared pytest fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from repolens.config import RepoLensConfig
from repolens.rag.search_client import ContextItem, SearchError, SearchRequest


@dataclass
class _Doc:
    group: str
    item: ContextItem
    scores: dict[str, float] = field(default_factory=dict)
    default_score: float = 0.0


class FakeContextStore:
    """In-memory stand-in for ContextSearchClient.

    Each document has a similarity per query (``scores``) or a
    ``default_score``; a search returns documents of the filtered group whose
    similarity reaches the request's minimum threshold, in insertion order.
    """

    def __init__(self) -> None:
        self.docs: list[_Doc] = []
        self.requests: list[SearchRequest] = []
        self.failing_thresholds: set[float] = set()

    def add(
        self,
        group: str,
        content: str,
        *,
        file_name: str | None = None,
        scores: dict[str, float] | None = None,
        default_score: float = 0.0,
    ) -> ContextItem:
        metadata = {"fileName": file_name} if file_name else {}
        item = ContextItem(content=content, metadata=metadata)
        self.docs.append(_Doc(group, item, scores or {}, default_score))
        return item

    def fail_at(self, similarity_threshold: float) -> None:
        self.failing_thresholds.add(similarity_threshold)

    def search(self, request: SearchRequest) -> list[ContextItem]:
        self.requests.append(request)
        if request.similarity_threshold in self.failing_thresholds:
            raise SearchError(f"backend down at {request.similarity_threshold}")
        hits = []
        for doc in self.docs:
            if request.group_filter and doc.group not in request.group_filter:
                continue
            score = doc.scores.get(request.query, doc.default_score)
            if score >= request.minimum_similarity_threshold:
                hits.append(doc.item)
        return hits


@pytest.fixture(autouse=True)
def _no_global_config(tmp_path_factory, monkeypatch):
    """Keep the developer's ~/.repolens/config.yaml out of every test."""
    missing = tmp_path_factory.mktemp("home") / "config.yaml"
    monkeypatch.setattr("repolens.config._GLOBAL_CONFIG_PATH", missing)


@pytest.fixture
def store() -> FakeContextStore:
    return FakeContextStore()


@pytest.fixture
def config() -> RepoLensConfig:
    return RepoLensConfig()
