"""Reviewer output cache keyed by bundle and prompt hash."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from ..logging import get_logger
from .state import STATE_DIRNAME, utc_timestamp

CACHE_DIRNAME = "cache"


class ReviewCache:
    """Stores one `{hash, timestamp, content}` JSON file per cache key."""

    def __init__(self, root: Path | str) -> None:
        self.directory = Path(root) / STATE_DIRNAME / CACHE_DIRNAME
        self.logger = get_logger("cache")

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.debug("Ignoring unreadable cache entry %s: %s", path, exc)
            return None
        if not isinstance(data, dict) or data.get("hash") != key:
            return None
        content = data.get("content")
        return content if isinstance(content, str) else None

    def store(self, key: str, content: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        payload = {"hash": key, "timestamp": utc_timestamp(), "content": content}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path


__all__ = ["CACHE_DIRNAME", "ReviewCache"]
