"""Selects the bounded set of repository files sent for review."""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import AnalysisBundle, RepoIndex
from ..repo_indexer import iter_repo_files, matches_any

CHARS_PER_TOKEN = 4

DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "**/*.min.js",
    "**/*.bundle.js",
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/*.lock",
    "**/package-lock.json",
    "**/yarn.lock",
    "**/pnpm-lock.yaml",
)

DOC_PRIORITY: Tuple[str, ...] = ("README.md", "ARCHITECTURE.md", "CONTRIBUTING.md", "AGENTS.md")

CONFIG_PRIORITY: Tuple[str, ...] = (
    "tsconfig.json",
    ".eslintrc.json",
    ".eslintrc.js",
    "eslint.config.js",
    "vite.config.ts",
    "webpack.config.js",
    ".github/workflows/ci.yml",
    ".github/workflows/ci.yaml",
    "docker-compose.yml",
)

# Architectural directory name and the suffixes sampled beneath it.
SAMPLE_PATTERNS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("services", (".ts", ".js")),
    ("controllers", (".ts", ".js")),
    ("models", (".ts", ".js")),
    ("components", (".tsx", ".jsx")),
    ("hooks", (".ts", ".tsx")),
    ("utils", (".ts", ".js")),
    ("lib", (".ts", ".js")),
    ("api", (".ts", ".js")),
    ("routes", (".ts", ".js")),
    ("middleware", (".ts", ".js")),
)
SAMPLES_PER_PATTERN = 2


@dataclass
class BundleConfig:
    """Budgets applied while filling a bundle."""

    max_files: int = 50
    max_total_size: int = 500_000
    max_tokens: int = 100_000
    exclude_patterns: Tuple[str, ...] = field(default=DEFAULT_EXCLUDE_PATTERNS)


def hash_content(content: bytes | str) -> str:
    """Return the first 16 hex characters of the sha256 digest."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    return hashlib.sha256(data).hexdigest()[:16]


def get_bundle_hash(bundle: AnalysisBundle) -> str:
    """Order-independent digest of every file in the bundle."""
    return hash_content(":".join(sorted(bundle.content_hashes.values())))


class BundleBuilder:
    """Fills an AnalysisBundle in strict priority order under fixed budgets."""

    def __init__(self, config: BundleConfig | None = None) -> None:
        self.config = config or BundleConfig()
        self.logger = get_logger("bundle")

    def build(self, root: Path | str, index: RepoIndex) -> AnalysisBundle:
        root_path = Path(root)
        bundle = AnalysisBundle()
        rejected = 0

        def admit(paths: Iterable[str], category: str) -> None:
            nonlocal rejected
            for rel_path in paths:
                if not self._admit(root_path, bundle, rel_path, category):
                    rejected += 1

        admit((manifest.path for manifest in index.manifests), "manifests")
        admit(_prioritised_docs(index.docs), "docs")
        admit(_prioritised_configs(index.configs), "configs")
        admit(index.entrypoints, "entrypoints")
        remaining = self.config.max_files - bundle.file_count()
        admit(self._select_samples(root_path, remaining), "samples")

        self.logger.info(
            "Bundled %d files (~%d tokens, %d bytes); %d candidates skipped",
            bundle.file_count(),
            bundle.total_token_estimate,
            bundle.total_size,
            rejected,
        )
        return bundle

    def _admit(self, root: Path, bundle: AnalysisBundle, rel_path: str, category: str) -> bool:
        if rel_path in bundle:
            return True
        if matches_any(rel_path, self.config.exclude_patterns):
            return False
        try:
            raw = (root / rel_path).read_bytes()
            text = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Skipping unreadable file %s: %s", rel_path, exc)
            return False

        size = len(raw)
        tokens = math.ceil(len(text) / CHARS_PER_TOKEN)
        if bundle.total_size + size > self.config.max_total_size:
            self.logger.debug("Size budget rejects %s (%d bytes)", rel_path, size)
            return False
        if bundle.total_token_estimate + tokens > self.config.max_tokens:
            self.logger.debug("Token budget rejects %s (~%d tokens)", rel_path, tokens)
            return False
        if bundle.file_count() >= self.config.max_files:
            self.logger.debug("File budget rejects %s", rel_path)
            return False

        getattr(bundle, category).append(rel_path)
        bundle.content_hashes[rel_path] = hash_content(text)
        bundle.total_size += size
        bundle.total_token_estimate += tokens
        return True

    def _select_samples(self, root: Path, max_count: int) -> List[str]:
        if max_count <= 0:
            return []
        candidates = list(iter_repo_files(root, self.config.exclude_patterns))
        samples: List[str] = []
        for directory, suffixes in SAMPLE_PATTERNS:
            if len(samples) >= max_count:
                break
            matches = [path for path in candidates if _under_directory(path, directory, suffixes)]
            for rel_path in matches[:SAMPLES_PER_PATTERN]:
                if len(samples) >= max_count:
                    break
                if rel_path not in samples:
                    samples.append(rel_path)
        return samples


def build_analysis_bundle(
    root: Path | str, index: RepoIndex, config: Optional[BundleConfig] = None
) -> AnalysisBundle:
    return BundleBuilder(config).build(root, index)


def format_bundle_summary(bundle: AnalysisBundle) -> str:
    lines = ["Analysis Bundle:"]
    for category in ("manifests", "entrypoints", "configs", "docs", "samples"):
        label = f"{category.capitalize()}:"
        lines.append(f"  {label:<13} {len(getattr(bundle, category))} files")
    lines.append(f"  {'Total:':<13} {bundle.file_count()} files")
    lines.append(f"  {'Est. Tokens:':<13} ~{bundle.total_token_estimate:,}")
    return "\n".join(lines)


def _prioritised_docs(docs: Sequence[str]) -> List[str]:
    ordered: List[str] = []
    priority = [name.lower() for name in DOC_PRIORITY]
    for name in priority:
        for doc in docs:
            if doc.lower() == name:
                ordered.append(doc)
                break
    ordered.extend(doc for doc in docs if doc.lower() not in priority)
    return ordered


def _prioritised_configs(configs: Sequence[str]) -> List[str]:
    ordered: List[str] = []
    for name in CONFIG_PRIORITY:
        for config in configs:
            if config.endswith(name):
                if config not in ordered:
                    ordered.append(config)
                break
    return ordered


def _under_directory(rel_path: str, directory: str, suffixes: Tuple[str, ...]) -> bool:
    parts = rel_path.split("/")
    return directory in parts[:-1] and rel_path.endswith(suffixes)


__all__ = [
    "BundleBuilder",
    "BundleConfig",
    "CHARS_PER_TOKEN",
    "DEFAULT_EXCLUDE_PATTERNS",
    "build_analysis_bundle",
    "format_bundle_summary",
    "get_bundle_hash",
    "hash_content",
]
