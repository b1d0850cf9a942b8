"""repolens configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (REPOLENS_GENERATION_MODEL, REPOLENS_SEARCH_URL)
  3. Per-project repolens.yaml  (current working directory)
  4. Global ~/.repolens/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead
(ALCHEMYST_API_KEY for the context store, OPENROUTER_API_KEY or the provider
key matching generation.model for the LLM).
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".repolens"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "repolens.yaml"

# Key names that look like credentials are forbidden in global config.
# Does NOT match legitimate keys like max_tokens or chat_budget.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["search", "generation", "context", "docs"])


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class SearchCfg:
    """Context store connection (repolens.yaml: search:).

    Attributes:
        base_url: Root of the context API; ``/context/search`` is appended.
        timeout: Per-call timeout in seconds. A timeout counts as a failed tier.
        scope: Store scope sent with every search.
    """

    base_url: str = "https://platform-backend.getalchemyst.ai/api/v1"
    timeout: float = 30.0
    scope: str = "internal"


@dataclass
class GenerationCfg:
    """LLM generation settings (repolens.yaml: generation:)."""

    model: str = "openrouter/xiaomi/mimo-v2-flash:free"
    chat_temperature: float = 0.2
    chat_max_tokens: int = 1_000
    docs_temperature: float = 0.3
    docs_max_tokens: int = 2_000
    timeout: float = 120.0
    num_retries: int = 3


@dataclass
class ContextCfg:
    """Context assembly budgets in characters (repolens.yaml: context:)."""

    chat_budget: int = 12_000
    docs_budget: int = 15_000
    docs_max_items: int = 10


@dataclass
class DocsCfg:
    """Documentation cache location (repolens.yaml: docs:)."""

    cache_dir: str = ".docs-cache"


@dataclass
class RepoLensConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    search: SearchCfg = field(default_factory=SearchCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    context: ContextCfg = field(default_factory=ContextCfg)
    docs: DocsCfg = field(default_factory=DocsCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _check_budgets(cfg: RepoLensConfig) -> None:
    ctx = cfg.context
    for name in ("chat_budget", "docs_budget", "docs_max_items"):
        if getattr(ctx, name) <= 0:
            raise ConfigError(f"context.{name} must be a positive integer, got {getattr(ctx, name)}")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RepoLensConfig:
    """Build a *RepoLensConfig* from a merged raw YAML dict."""
    cfg = RepoLensConfig()

    if "search" in data:
        s = data["search"] or {}
        cfg.search = SearchCfg(
            base_url=str(s.get("base_url", cfg.search.base_url)).rstrip("/"),
            timeout=float(s.get("timeout", cfg.search.timeout)),
            scope=str(s.get("scope", cfg.search.scope)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        d = cfg.generation
        cfg.generation = GenerationCfg(
            model=str(g.get("model", d.model)),
            chat_temperature=float(g.get("chat_temperature", d.chat_temperature)),
            chat_max_tokens=int(g.get("chat_max_tokens", d.chat_max_tokens)),
            docs_temperature=float(g.get("docs_temperature", d.docs_temperature)),
            docs_max_tokens=int(g.get("docs_max_tokens", d.docs_max_tokens)),
            timeout=float(g.get("timeout", d.timeout)),
            num_retries=int(g.get("num_retries", d.num_retries)),
        )

    if "context" in data:
        c = data["context"] or {}
        cfg.context = ContextCfg(
            chat_budget=int(c.get("chat_budget", cfg.context.chat_budget)),
            docs_budget=int(c.get("docs_budget", cfg.context.docs_budget)),
            docs_max_items=int(c.get("docs_max_items", cfg.context.docs_max_items)),
        )

    if "docs" in data:
        dc = data["docs"] or {}
        cfg.docs = DocsCfg(cache_dir=str(dc.get("cache_dir", cfg.docs.cache_dir)))

    return cfg


def _apply_env_overrides(cfg: RepoLensConfig) -> RepoLensConfig:
    """Apply REPOLENS_* environment variable overrides."""
    if model := os.environ.get("REPOLENS_GENERATION_MODEL"):
        cfg.generation.model = model
    if url := os.environ.get("REPOLENS_SEARCH_URL"):
        cfg.search.base_url = url.rstrip("/")
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RepoLensConfig:
    """Load and return a merged *RepoLensConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *repolens.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            context budget is not positive.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    _check_budgets(cfg)

    return _apply_env_overrides(cfg)
