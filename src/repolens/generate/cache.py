"""JSON-file documentation cache, one file per repository.

Layout:  <cache_dir>/<owner>_<repo>.json
  {
    "owner": "...",
    "repo": "...",
    "documentation": {"introduction": "...", "architecture": null},
    "updatedAt": "2026-01-01T00:00:00+00:00"
  }
Characters outside [A-Za-z0-9-_] in owner/repo are replaced by '_'.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from repolens.generate.writer import write_output

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9\-_]")


class DocsCache:
    def __init__(self, cache_dir: Path | str) -> None:
        self.cache_dir = Path(cache_dir)

    def path_for(self, owner: str, repo: str) -> Path:
        safe_owner = _UNSAFE_RE.sub("_", owner)
        safe_repo = _UNSAFE_RE.sub("_", repo)
        return self.cache_dir / f"{safe_owner}_{safe_repo}.json"

    def get(self, owner: str, repo: str) -> dict[str, str | None]:
        """Return section → content for the repo; empty when missing or unreadable."""
        path = self.path_for(owner, repo)
        if not path.exists():
            return {}
        try:
            stored = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("ignoring unreadable docs cache %s: %s", path, exc)
            return {}
        documentation = stored.get("documentation") if isinstance(stored, dict) else None
        return dict(documentation) if isinstance(documentation, dict) else {}

    def set(self, owner: str, repo: str, section: str, content: str | None) -> None:
        """Store one section, keeping the others."""
        documentation = self.get(owner, repo)
        documentation[section] = content
        payload = {
            "owner": owner,
            "repo": repo,
            "documentation": documentation,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }
        write_output(self.path_for(owner, repo), json.dumps(payload, indent=2))
        logger.debug("cached section %s for %s/%s", section, owner, repo)
