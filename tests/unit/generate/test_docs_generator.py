"""Tests for documentation section generation and caching."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from repolens.generate.cache import DocsCache
from repolens.generate.docs import (
    EMPTY_SECTION_MESSAGE,
    NO_CONTEXT_MESSAGE,
    cached_section,
    ensure_section,
    generate_section,
)
from repolens.generate.templates import SECTION_DIRECTIVES
from repolens.rag.retriever import DOCS_FALLBACK_QUERY

_COMPLETION = "repolens.rag.llm_client.litellm.completion"
_INTRO_QUERY = "main purpose features technology stack overview"


def _resp(content: str) -> MagicMock:
    mock_response = MagicMock()
    mock_response.choices[0].message.content = content
    return mock_response


# ------------------------------------------------------------------
# generate_section
# ------------------------------------------------------------------


def test_generate_section_uses_seed_query_and_repo_group(store, config):
    store.add("widgets", "export const App = () => null", file_name="src/App.tsx", scores={_INTRO_QUERY: 0.4})

    with patch(_COMPLETION, return_value=_resp("# Introduction")) as mock_comp:
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.succeeded is True
    assert result.content == "# Introduction"
    assert result.sources == ["src/App.tsx"]
    assert store.requests[0].query == _INTRO_QUERY
    assert store.requests[0].group_filter == ["widgets"]

    kwargs = mock_comp.call_args.kwargs
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 2000
    assert '"acme/widgets"' in kwargs["messages"][0]["content"]
    assert kwargs["messages"][1]["content"].startswith(SECTION_DIRECTIVES["introduction"])


def test_generate_section_falls_back_to_generic_terms(store, config):
    store.add("widgets", "export function main() {}", file_name="main.ts", scores={DOCS_FALLBACK_QUERY: 0.2})

    with patch(_COMPLETION, return_value=_resp("doc")):
        result = generate_section("acme", "widgets", "routing", store, config)

    assert result.succeeded is True
    assert [r.query for r in store.requests] == ["routing", DOCS_FALLBACK_QUERY]
    assert result.diagnostic["tier"] == "generic"


def test_generate_section_explicit_group(store, config):
    store.add("custom-group", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp("doc")):
        result = generate_section("acme", "widgets", "introduction", store, config, group="custom-group")

    assert result.sources == ["a.ts"]


def test_generate_section_without_context(store, config):
    with patch(_COMPLETION) as mock_comp:
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert result.error == NO_CONTEXT_MESSAGE
    assert len(store.requests) == 2
    mock_comp.assert_not_called()


def test_generate_section_caps_item_count(store, config):
    for i in range(15):
        store.add("widgets", f"code {i}", file_name=f"f{i:02d}.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp("doc")):
        result = generate_section("acme", "widgets", "components", store, config)

    assert result.sources == [f"f{i:02d}.ts" for i in range(10)]
    assert result.diagnostic["files_found"] == 15
    assert result.diagnostic["files_included"] == 10


def test_generate_section_generation_failure(store, config):
    store.add("widgets", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, side_effect=RuntimeError("quota exceeded")):
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert result.error == "quota exceeded"
    assert result.content == ""


def test_generate_section_seed_tier_label(store, config):
    store.add("widgets", "code", file_name="a.ts", scores={_INTRO_QUERY: 0.35})

    with patch(_COMPLETION, return_value=_resp("doc")):
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.diagnostic["tier"] == "seed"


def test_generate_section_oversized_first_file(store, config):
    store.add("widgets", "x" * 15_500, file_name="src/huge.ts", default_score=0.9)
    store.add("widgets", "small", file_name="src/small.ts", default_score=0.9)

    with patch(_COMPLETION) as mock_comp:
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert "src/huge.ts" in result.error
    assert "context.docs_budget" in result.error
    assert "15,000" in result.error
    assert "ingested" not in result.error
    assert result.diagnostic["stopped_at"] == "src/huge.ts"
    mock_comp.assert_not_called()


def test_generate_section_empty_completion_is_a_failure(store, config):
    store.add("widgets", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp("   ")):
        result = generate_section("acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert result.error == EMPTY_SECTION_MESSAGE == "Unable to generate documentation."
    assert result.content == ""


# ------------------------------------------------------------------
# ensure_section
# ------------------------------------------------------------------


def test_ensure_section_caches_success(tmp_path, store, config):
    cache = DocsCache(tmp_path)
    store.add("widgets", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp("fresh")):
        result = ensure_section(cache, "acme", "widgets", "introduction", store, config)

    assert result.cached is False
    assert cache.get("acme", "widgets") == {"introduction": "fresh"}


def test_ensure_section_returns_cached_without_searching(tmp_path, store, config):
    cache = DocsCache(tmp_path)
    cache.set("acme", "widgets", "introduction", "stored")

    with patch(_COMPLETION) as mock_comp:
        result = ensure_section(cache, "acme", "widgets", "introduction", store, config)

    assert result.cached is True
    assert result.content == "stored"
    assert store.requests == []
    mock_comp.assert_not_called()


def test_ensure_section_force_regenerates(tmp_path, store, config):
    cache = DocsCache(tmp_path)
    cache.set("acme", "widgets", "introduction", "stale")
    store.add("widgets", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp("new")):
        result = ensure_section(cache, "acme", "widgets", "introduction", store, config, force=True)

    assert result.content == "new"
    assert cache.get("acme", "widgets")["introduction"] == "new"


def test_ensure_section_does_not_cache_failures(tmp_path, store, config):
    cache = DocsCache(tmp_path)

    result = ensure_section(cache, "acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert cache.get("acme", "widgets") == {}
    assert not cache.path_for("acme", "widgets").exists()


def test_ensure_section_does_not_cache_empty_completion(tmp_path, store, config):
    cache = DocsCache(tmp_path)
    store.add("widgets", "code", file_name="a.ts", default_score=0.5)

    with patch(_COMPLETION, return_value=_resp(None)):
        result = ensure_section(cache, "acme", "widgets", "introduction", store, config)

    assert result.succeeded is False
    assert cache.get("acme", "widgets") == {}


def test_cached_section_lookup(tmp_path):
    cache = DocsCache(tmp_path)
    assert cached_section(cache, "acme", "widgets", "introduction") is None

    cache.set("acme", "widgets", "introduction", "stored")
    hit = cached_section(cache, "acme", "widgets", "introduction")
    assert hit.cached is True
    assert hit.content == "stored"
