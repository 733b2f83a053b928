"""Tests for repository indexing."""

from __future__ import annotations

from datetime import UTC
from pathlib import Path

import pytest

from auracoil.repo_indexer import RepoIndexer, index_repository, match_path


def test_indexer_counts_languages_and_skips_excluded_paths(repo_builder) -> None:
    repo_builder.write(
        {
            "src/app.py": "a = 1\nb = 2\nc = 3",
            "src/index.ts": "export {}",
            "node_modules/lib/index.js": "module.exports = {}",
            "public/vendor.min.js": "var a=1",
        }
    )

    index = repo_builder.index()

    assert [(lang.name, lang.file_count, lang.line_count) for lang in index.languages] == [
        ("Python", 1, 3),
        ("TypeScript", 1, 1),
    ]
    assert index.languages[0].extension == ".py"
    assert index.stats.total_files == 2
    assert index.stats.total_lines == 4


def test_indexer_parses_manifests_and_detects_frameworks(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": '{"name": "web", "dependencies": {"react": "18", "next": "14"}}',
            "requirements.txt": "flask==3.0\n",
            "tools/package.json": "{broken",
        }
    )

    index = repo_builder.index()

    assert [manifest.path for manifest in index.manifests] == ["package.json", "requirements.txt"]
    assert index.manifests[0].name == "web"
    assert list(index.frameworks) == ["Flask", "Next.js", "React"]


def test_indexer_finds_entrypoints_in_pattern_order(repo_builder) -> None:
    repo_builder.write(
        {
            "manage.py": "",
            "pkg/__main__.py": "",
            "cmd/server/main.go": "package main",
            "main.py": "",
            "src/index.ts": "",
        }
    )

    index = repo_builder.index()

    assert list(index.entrypoints) == [
        "src/index.ts",
        "main.py",
        "cmd/server/main.go",
        "pkg/__main__.py",
        "manage.py",
    ]
    assert "Django" in index.frameworks


def test_indexer_selects_configs_and_docs(repo_builder) -> None:
    repo_builder.write(
        {
            "tsconfig.json": "{}",
            ".github/workflows/ci.yml": "on: push",
            "package-lock.json": "{}",
            "settings.json": "{}",
            "README.md": "# Demo",
            "docs/guide.md": "Guide",
            "requirements.txt": "pytest",
        }
    )

    index = repo_builder.index()

    assert list(index.configs) == ["tsconfig.json", ".github/workflows/ci.yml"]
    assert list(index.docs) == ["README.md", "docs/guide.md"]


def test_indexer_honours_caller_excludes(repo_builder) -> None:
    repo_builder.write({"generated/models.py": "x = 1", "app.py": "y = 2"})

    index = repo_builder.index(["generated/**"])

    assert index.stats.total_files == 1
    assert list(index.entrypoints) == ["app.py"]


def test_indexer_on_empty_repository_reports_current_time(repo_builder) -> None:
    index = RepoIndexer().index(repo_builder.path())

    assert index.languages == ()
    assert index.stats.total_files == 0
    assert index.stats.last_modified.tzinfo is UTC


def test_indexer_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        index_repository(tmp_path / "missing")


def test_index_summary_is_json_friendly(repo_builder) -> None:
    repo_builder.write({"main.go": "package main"})

    summary = repo_builder.index().to_summary()

    assert summary["languages"][0]["name"] == "Go"
    assert summary["stats"]["totalFiles"] == 1
    assert isinstance(summary["stats"]["lastModified"], str)


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("a/b/c.min.js", "**/*.min.js", True),
        ("c.min.js", "**/*.min.js", True),
        ("node_modules/x/y.js", "**/node_modules/**", True),
        ("cmd/api/main.go", "cmd/*/main.go", True),
        ("cmd/api/v2/main.go", "cmd/*/main.go", False),
        ("src/a.ts", "cmd/*/main.go", False),
    ],
)
def test_match_path_segments(path: str, pattern: str, expected: bool) -> None:
    assert match_path(path, pattern) is expected
