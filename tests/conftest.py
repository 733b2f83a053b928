from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import pytest

from auracoil.git.history import GitRunner
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a throwaway repository rooted under the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def git_runner() -> Callable[[Mapping[str, str]], GitRunner]:
    """Build fake git runners answering by subcommand (`log`, `rev-list`, ...)."""

    def factory(responses: Mapping[str, str]) -> GitRunner:
        def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
            return responses.get(args[1], "")

        return runner

    return factory
