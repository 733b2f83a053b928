"""Repository analysis helpers used by the indexer."""

from __future__ import annotations

from .manifests import MANIFEST_PARSERS, ManifestParseError

__all__ = ["MANIFEST_PARSERS", "ManifestParseError"]
