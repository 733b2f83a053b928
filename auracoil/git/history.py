"""Git evidence gathering for reviews."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..logging import get_logger

GitRunner = Callable[..., str]


@dataclass
class Evidence:
    """Repository changes since the last reviewed commit."""

    changed_files: List[str] = field(default_factory=list)
    commit_messages: List[str] = field(default_factory=list)


class GitHistory:
    """Thin wrapper over git plumbing used by reviews and health checks."""

    def __init__(self, repo_path: Path | str, runner: GitRunner | None = None) -> None:
        self.repo = Path(repo_path)
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")

    def changed_files(self, since: str) -> List[str]:
        output = self._run(["git", "diff", "--name-only", f"{since}..HEAD"])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def commit_messages(self, since: str | None = None, *, limit: int | None = None) -> List[str]:
        args = ["git", "log", "--format=%s"]
        if limit is not None:
            args.append(f"--max-count={limit}")
        if since:
            args.append(f"{since}..HEAD")
        output = self._run(args)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def commit_count(self, since: str) -> int:
        output = self._run(["git", "rev-list", "--count", f"{since}..HEAD"])
        try:
            return int(output.strip() or 0)
        except ValueError:
            return 0

    def head_commit(self) -> Optional[str]:
        """Return the HEAD hash, or None outside a repository or before the first commit."""
        try:
            output = self._run(["git", "rev-parse", "HEAD"])
        except (subprocess.CalledProcessError, OSError) as exc:
            self.logger.debug("Unable to resolve HEAD: %s", exc)
            return None
        return output.strip() or None

    def gather_evidence(self, checkpoint: str | None, *, history_limit: int = 20) -> Evidence:
        """Collect changed files and commit subjects; git failures yield empty evidence."""
        try:
            if checkpoint:
                return Evidence(
                    changed_files=self.changed_files(checkpoint),
                    commit_messages=self.commit_messages(checkpoint),
                )
            return Evidence(commit_messages=self.commit_messages(limit=history_limit))
        except (subprocess.CalledProcessError, OSError) as exc:
            self.logger.debug("No git history available: %s", exc)
            return Evidence()

    def _run(self, args: Iterable[str]) -> str:
        return self._runner(list(args), cwd=self.repo, capture_output=True)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


__all__ = ["Evidence", "GitHistory"]
