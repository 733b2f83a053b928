"""Repository indexing: languages, manifests, frameworks, entry points."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Set, Tuple

from .analyzers.manifests import MANIFEST_PARSERS, ManifestParseError
from .logging import get_logger
from .models import LanguageInfo, ManifestInfo, RepoIndex, RepoStats

_EXCLUDED_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
    "target",
    "__pycache__",
    "venv",
    ".venv",
    "vendor",
    "coverage",
    ".next",
    ".nuxt",
    ".auracoil",
}

_DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = ("**/*.min.js", "**/*.bundle.js")

_LANGUAGE_BY_SUFFIX: Dict[str, str] = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".py": "Python",
    ".rs": "Rust",
    ".go": "Go",
    ".rb": "Ruby",
    ".java": "Java",
    ".kt": "Kotlin",
    ".swift": "Swift",
    ".c": "C",
    ".cpp": "C++",
    ".h": "C/C++ Header",
    ".cs": "C#",
    ".php": "PHP",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".erl": "Erlang",
    ".hs": "Haskell",
    ".ml": "OCaml",
    ".scala": "Scala",
    ".clj": "Clojure",
    ".lua": "Lua",
    ".sh": "Shell",
    ".zsh": "Shell",
    ".bash": "Shell",
}

_SOURCE_SUFFIXES = frozenset(
    {
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".py",
        ".rs",
        ".go",
        ".rb",
        ".java",
        ".kt",
        ".swift",
        ".c",
        ".cpp",
        ".h",
        ".cs",
        ".php",
        ".ex",
        ".exs",
    }
)

_CONFIG_SUFFIXES = (".json", ".yaml", ".yml", ".toml", ".ini", ".js", ".cjs", ".mjs", ".ts")
_LOCK_FILES = {"package-lock.json", "yarn.lock", "pnpm-lock.yaml"}
_RELEVANT_CONFIG_NAMES = (
    "tsconfig",
    "eslint",
    "prettier",
    ".env.example",
    "jest.config",
    "vitest.config",
    "webpack.config",
    "vite.config",
    "rollup.config",
    "babel.config",
    "tailwind.config",
    "postcss.config",
    "docker-compose",
    "dockerfile",
    ".github/workflows",
)
_DOC_SUFFIXES = (".md", ".mdx", ".txt", ".rst")

MAX_ENTRYPOINTS = 10
MAX_CONFIGS = 20
MAX_DOCS = 20


@dataclass(frozen=True)
class FrameworkRule:
    """Framework presence evidence: marker files or dependency names."""

    name: str
    files: Tuple[str, ...] = ()
    deps: Tuple[str, ...] = ()


FRAMEWORK_RULES: Tuple[FrameworkRule, ...] = (
    FrameworkRule("Next.js", files=("next.config.*",), deps=("next",)),
    FrameworkRule("React", deps=("react", "react-dom")),
    FrameworkRule("Vue", deps=("vue",)),
    FrameworkRule("Angular", deps=("@angular/core",)),
    FrameworkRule("Express", deps=("express",)),
    FrameworkRule("Fastify", deps=("fastify",)),
    FrameworkRule("NestJS", deps=("@nestjs/core",)),
    FrameworkRule("Django", files=("manage.py",), deps=("django",)),
    FrameworkRule("Flask", deps=("flask",)),
    FrameworkRule("FastAPI", deps=("fastapi",)),
    FrameworkRule("Rails", files=("bin/rails",), deps=("rails",)),
    FrameworkRule("Rust/Tokio", deps=("tokio",)),
    FrameworkRule("Rust/Actix", deps=("actix-web",)),
)


def _expand(stem: str, suffixes: Sequence[str]) -> Tuple[str, ...]:
    return tuple(f"{stem}.{suffix}" for suffix in suffixes)


_WEB = ("ts", "tsx", "js", "jsx")

ENTRYPOINT_PATTERNS: Tuple[str, ...] = (
    *_expand("src/index", _WEB),
    *_expand("src/main", _WEB + ("py", "rs", "go")),
    *_expand("src/app", _WEB + ("py",)),
    *_expand("index", _WEB),
    *_expand("main", _WEB + ("py", "rs", "go")),
    *_expand("app", _WEB + ("py",)),
    *_expand("lib/index", _WEB),
    *_expand("pages/index", _WEB),
    *_expand("app/page", _WEB),
    "src/lib.rs",
    "cmd/*/main.go",
    "*/__main__.py",
    "src/*/__main__.py",
    "manage.py",
)


def match_path(rel_path: str, pattern: str) -> bool:
    """Glob match on POSIX path segments; `**` spans any number of segments."""
    return _match_segments(rel_path.split("/"), pattern.split("/"))


def _match_segments(parts: Sequence[str], pattern: Sequence[str]) -> bool:
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        return any(_match_segments(parts[index:], pattern[1:]) for index in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match_segments(parts[1:], pattern[1:])


def matches_any(rel_path: str, patterns: Sequence[str]) -> bool:
    return any(match_path(rel_path, pattern) for pattern in patterns)


def iter_repo_files(root: Path, exclude_patterns: Sequence[str] = ()) -> Iterator[str]:
    """Yield relative POSIX paths, skipping excluded directories and globs."""
    patterns = tuple(_DEFAULT_EXCLUDE_PATTERNS) + tuple(exclude_patterns)
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if matches_any(rel_path, patterns):
                continue
            yield rel_path


def _path_sort_key(rel_path: str) -> Tuple[int, str]:
    return rel_path.count("/"), rel_path


class RepoIndexer:
    """Walks a repository and summarises its structure."""

    def __init__(self, exclude_patterns: Sequence[str] = ()) -> None:
        self.exclude_patterns = tuple(exclude_patterns)
        self.logger = get_logger("indexer")

    def index(self, root: Path | str) -> RepoIndex:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        all_files = sorted(iter_repo_files(root_path, self.exclude_patterns), key=_path_sort_key)
        source_files = [path for path in all_files if Path(path).suffix in _SOURCE_SUFFIXES]

        languages, total_lines, last_modified = self._count_languages(root_path, source_files)
        manifests = self._find_manifests(root_path, all_files)
        frameworks = self._detect_frameworks(all_files, manifests)
        entrypoints = self._find_entrypoints(all_files)
        configs = [path for path in all_files if _is_relevant_config(path)][:MAX_CONFIGS]
        docs = [path for path in all_files if _is_doc(path)][:MAX_DOCS]

        self.logger.debug(
            "Indexed %d source files across %d languages", len(source_files), len(languages)
        )
        return RepoIndex(
            languages=tuple(languages),
            frameworks=tuple(frameworks),
            entrypoints=tuple(entrypoints[:MAX_ENTRYPOINTS]),
            manifests=tuple(manifests),
            configs=tuple(configs),
            docs=tuple(docs),
            stats=RepoStats(
                total_files=len(source_files),
                total_lines=total_lines,
                last_modified=last_modified,
            ),
        )

    def _count_languages(
        self, root: Path, source_files: Sequence[str]
    ) -> Tuple[List[LanguageInfo], int, datetime]:
        counts: Dict[str, List[int]] = {}
        newest: float | None = None
        for rel_path in source_files:
            language = _LANGUAGE_BY_SUFFIX.get(Path(rel_path).suffix, "Unknown")
            current = counts.setdefault(language, [0, 0])
            current[0] += 1
            path = root / rel_path
            try:
                current[1] += len(path.read_text(encoding="utf-8").split("\n"))
                mtime = path.stat().st_mtime
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.debug("Skipping unreadable file %s: %s", rel_path, exc)
                continue
            newest = mtime if newest is None else max(newest, mtime)

        languages = [
            LanguageInfo(
                name=name,
                extension=_extension_for(name),
                file_count=file_count,
                line_count=line_count,
            )
            for name, (file_count, line_count) in counts.items()
        ]
        languages.sort(key=lambda info: (-info.line_count, info.name))
        total_lines = sum(info.line_count for info in languages)
        if newest is None:
            last_modified = datetime.now(UTC)
        else:
            last_modified = datetime.fromtimestamp(newest, UTC)
        return languages, total_lines, last_modified

    def _find_manifests(self, root: Path, all_files: Sequence[str]) -> List[ManifestInfo]:
        manifests: List[ManifestInfo] = []
        for filename, parser in MANIFEST_PARSERS.items():
            for rel_path in all_files:
                if rel_path.rsplit("/", 1)[-1] != filename:
                    continue
                try:
                    manifests.append(parser(root / rel_path, rel_path))
                except ManifestParseError as exc:
                    self.logger.debug("Skipping manifest %s: %s", rel_path, exc)
        return manifests

    @staticmethod
    def _detect_frameworks(
        all_files: Sequence[str], manifests: Sequence[ManifestInfo]
    ) -> List[str]:
        dependencies: Set[str] = set()
        for manifest in manifests:
            dependencies.update(dep.lower() for dep in manifest.dependencies or ())

        detected: List[str] = []
        for rule in FRAMEWORK_RULES:
            by_file = any(match_path(path, pattern) for pattern in rule.files for path in all_files)
            by_dep = any(dep.lower() in dependencies for dep in rule.deps)
            if by_file or by_dep:
                detected.append(rule.name)
        return sorted(set(detected))

    @staticmethod
    def _find_entrypoints(all_files: Sequence[str]) -> List[str]:
        found: Dict[str, None] = {}
        for pattern in ENTRYPOINT_PATTERNS:
            for rel_path in all_files:
                if match_path(rel_path, pattern):
                    found.setdefault(rel_path, None)
        return list(found)


def index_repository(root: Path | str, exclude_patterns: Sequence[str] = ()) -> RepoIndex:
    """Index the repository rooted at `root`."""
    return RepoIndexer(exclude_patterns).index(root)


def _extension_for(language: str) -> str:
    for suffix, name in _LANGUAGE_BY_SUFFIX.items():
        if name == language:
            return suffix
    return ""


def _is_relevant_config(rel_path: str) -> bool:
    name = rel_path.rsplit("/", 1)[-1]
    if name in _LOCK_FILES or not rel_path.endswith(_CONFIG_SUFFIXES):
        return False
    lowered = rel_path.lower()
    return any(fragment in lowered for fragment in _RELEVANT_CONFIG_NAMES)


def _is_doc(rel_path: str) -> bool:
    name = rel_path.rsplit("/", 1)[-1]
    return rel_path.lower().endswith(_DOC_SUFFIXES) and name not in MANIFEST_PARSERS


__all__ = [
    "ENTRYPOINT_PATTERNS",
    "FRAMEWORK_RULES",
    "FrameworkRule",
    "RepoIndexer",
    "index_repository",
    "iter_repo_files",
    "match_path",
    "matches_any",
]
