"""Adapter around the `oracle` CLI used as the external reviewer."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..logging import get_logger

ProcessRunner = Callable[..., "subprocess.CompletedProcess[str]"]

_ANSWER_PATTERN = re.compile(r"Answer:\n([\s\S]*?)(?:\n\n\d+[^\n]*tokens|\Z)")

_FAILURE_HINTS = (
    (
        ("timed out", "timeout"),
        "The reviewer took too long. Raise reviewer.timeout in .auracoil/config.yaml or retry.",
    ),
    (
        ("econnrefused", "connection refused"),
        "The browser display used by the reviewer is not running. Start it (check DISPLAY).",
    ),
    (
        ("login", "logged out", "session expired", "unauthorized"),
        "The reviewer login has expired. Sign in again, then retry.",
    ),
    (
        ("not found", "enoent", "unable to locate"),
        "Install the oracle CLI (npm i -g @steipete/oracle) or set reviewer.executable.",
    ),
)


@dataclass
class ReviewRequest:
    """Represents one review call to the external reviewer."""

    prompt: str
    files: Sequence[str] = ()
    model: str = "gpt-5.2-pro"
    timeout: float = 1800.0


@dataclass
class ReviewResult:
    success: bool
    output: str
    error: Optional[str] = None


@dataclass(frozen=True)
class ReviewerEnvironment:
    """Executable and extra environment variables for the reviewer process."""

    executable: str = "oracle"
    env: Dict[str, str] = field(default_factory=dict)

    def build_env(self) -> Dict[str, str]:
        merged = dict(os.environ)
        merged.update(self.env)
        return merged


@dataclass
class SessionStatus:
    available: bool
    message: str
    version: Optional[str] = None


def classify_failure(message: str) -> Optional[str]:
    """Map a reviewer error message to a remediation hint."""
    lowered = message.lower()
    for needles, hint in _FAILURE_HINTS:
        if any(needle in lowered for needle in needles):
            return hint
    return None


def extract_answer(output: str) -> str:
    """Return the `Answer:` section of oracle output when present."""
    match = _ANSWER_PATTERN.search(output)
    if match:
        return match.group(1).strip()
    return output


class OracleReviewer:
    """Runs `oracle --wait` as a blocking subprocess and collects its answer."""

    DEFAULT_MODEL = "gpt-5.2-pro"
    DEFAULT_TIMEOUT = 1800.0
    SESSION_TIMEOUT = 30.0

    def __init__(
        self,
        environment: ReviewerEnvironment | None = None,
        *,
        runner: ProcessRunner | None = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> None:
        self.environment = environment or ReviewerEnvironment()
        self._runner = runner or self._default_runner
        self._which = which
        self.logger = get_logger("reviewer")

    def review(self, request: ReviewRequest) -> ReviewResult:
        """Send the prompt and attached files; never raises for process failures."""
        if not request.prompt or not request.prompt.strip():
            return ReviewResult(success=False, output="", error="Prompt is required")

        executable = self.environment.executable
        with tempfile.TemporaryDirectory(prefix="auracoil-") as tmp_dir:
            output_file = Path(tmp_dir) / "output.md"
            args = self._build_args(request, output_file)
            self.logger.info(
                "Querying %s (%s) with %d file(s)", executable, request.model, len(request.files)
            )
            self.logger.debug(
                "Running: %s --wait --force -p <prompt> -m %s -f <%d files>",
                executable,
                request.model,
                len(request.files),
            )
            try:
                completed = self._runner(
                    args, env=self.environment.build_env(), timeout=request.timeout
                )
            except subprocess.TimeoutExpired:
                return ReviewResult(
                    success=False,
                    output="",
                    error=f"{executable} timed out after {request.timeout:g}s",
                )
            except FileNotFoundError:
                return ReviewResult(
                    success=False,
                    output="",
                    error=f"Unable to locate '{executable}' (not found on PATH)",
                )
            except OSError as exc:
                return ReviewResult(success=False, output="", error=str(exc))

            stdout = completed.stdout or ""
            stderr = completed.stderr or ""
            if completed.returncode != 0:
                error = stderr.strip() or stdout.strip() or (
                    f"{executable} exited with code {completed.returncode}"
                )
                return ReviewResult(success=False, output="", error=error)

            output = stdout
            file_content = _read_output_file(output_file)
            if file_content.strip():
                output = file_content
        return ReviewResult(success=True, output=extract_answer(output))

    def check_session(self) -> SessionStatus:
        """Confirm the reviewer executable exists and responds."""
        executable = self.environment.executable
        if self._which(executable) is None:
            return SessionStatus(
                available=False,
                message=f"{executable} CLI not found on PATH",
            )
        version = self.version()
        if version is None:
            return SessionStatus(
                available=False,
                message=f"{executable} did not respond to --version",
            )
        return SessionStatus(available=True, message=f"{executable} session active", version=version)

    def version(self) -> Optional[str]:
        try:
            completed = self._runner(
                [self.environment.executable, "--version"],
                env=self.environment.build_env(),
                timeout=self.SESSION_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            self.logger.debug("Version probe failed: %s", exc)
            return None
        if completed.returncode != 0:
            return None
        return (completed.stdout or "").strip() or None

    def _build_args(self, request: ReviewRequest, output_file: Path) -> List[str]:
        args = [
            self.environment.executable,
            "--wait",
            "--force",
            "-p",
            request.prompt,
            "-m",
            request.model,
            "--write-output",
            str(output_file),
        ]
        if request.files:
            args.append("-f")
            args.extend(request.files)
        return args

    @staticmethod
    def _default_runner(
        args: Sequence[str], *, env: Dict[str, str], timeout: float
    ) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            list(args),
            env=env,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            check=False,
        )


def _read_output_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


__all__ = [
    "OracleReviewer",
    "ReviewRequest",
    "ReviewResult",
    "ReviewerEnvironment",
    "SessionStatus",
    "classify_failure",
    "extract_answer",
]
