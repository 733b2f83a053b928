"""Tests for the oracle reviewer adapter."""

from __future__ import annotations

import subprocess
from pathlib import Path

from auracoil.llm.oracle import (
    OracleReviewer,
    ReviewerEnvironment,
    ReviewRequest,
    classify_failure,
    extract_answer,
)


def _completed(args, returncode=0, stdout="", stderr=""):  # type: ignore[no-untyped-def]
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def _output_path(args) -> Path:  # type: ignore[no-untyped-def]
    return Path(args[args.index("--write-output") + 1])


def test_review_builds_oracle_command_and_reads_output_file() -> None:
    captured = {}

    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        captured["args"] = list(args)
        captured["env"] = env
        captured["timeout"] = timeout
        _output_path(args).write_text('{"suggestions": []}', encoding="utf-8")
        return _completed(args, stdout="progress noise")

    reviewer = OracleReviewer(
        ReviewerEnvironment(executable="oracle", env={"DISPLAY": ":99"}),
        runner=runner,
    )
    result = reviewer.review(
        ReviewRequest(prompt="Critique", files=["/repo/a.py", "/repo/b.md"], model="m", timeout=12)
    )

    assert result.success is True
    assert result.output == '{"suggestions": []}'
    args = captured["args"]
    assert args[:7] == ["oracle", "--wait", "--force", "-p", "Critique", "-m", "m"]
    assert args[-3:] == ["-f", "/repo/a.py", "/repo/b.md"]
    assert captured["env"]["DISPLAY"] == ":99"
    assert captured["timeout"] == 12


def test_review_omits_file_flag_without_attachments() -> None:
    captured = {}

    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        captured["args"] = list(args)
        return _completed(args, stdout="plain answer")

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique"))

    assert result.output == "plain answer"
    assert "-f" not in captured["args"]


def test_review_extracts_answer_section_from_stdout() -> None:
    stdout = "Session abc\nAnswer:\n{\"summary\": \"ok\"}\n\n1234 tokens used\n"

    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        return _completed(args, stdout=stdout)

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique"))

    assert result.success is True
    assert result.output == '{"summary": "ok"}'


def test_review_rejects_empty_prompt() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        raise AssertionError("runner should not be called")

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="   "))

    assert result.success is False
    assert result.error == "Prompt is required"


def test_review_reports_non_zero_exit() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        return _completed(args, returncode=2, stderr="Error: session expired\n")

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique"))

    assert result.success is False
    assert result.output == ""
    assert result.error == "Error: session expired"


def test_review_reports_exit_code_when_process_is_silent() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        return _completed(args, returncode=3)

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique"))

    assert result.error == "oracle exited with code 3"


def test_review_reports_timeout() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        raise subprocess.TimeoutExpired(args, timeout)

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique", timeout=5))

    assert result.success is False
    assert "timed out after 5s" in (result.error or "")


def test_review_reports_missing_executable() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        raise FileNotFoundError(args[0])

    result = OracleReviewer(runner=runner).review(ReviewRequest(prompt="Critique"))

    assert result.success is False
    assert "not found" in (result.error or "")


def test_check_session_requires_executable_on_path() -> None:
    reviewer = OracleReviewer(runner=lambda *a, **k: None, which=lambda name: None)

    status = reviewer.check_session()

    assert status.available is False
    assert "not found" in status.message


def test_check_session_reports_version() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        assert list(args) == ["oracle", "--version"]
        return _completed(args, stdout="oracle 1.4.0\n")

    reviewer = OracleReviewer(runner=runner, which=lambda name: f"/usr/bin/{name}")

    status = reviewer.check_session()

    assert status.available is True
    assert status.version == "oracle 1.4.0"


def test_check_session_fails_when_version_probe_fails() -> None:
    def runner(args, *, env, timeout):  # type: ignore[no-untyped-def]
        return _completed(args, returncode=1)

    reviewer = OracleReviewer(runner=runner, which=lambda name: f"/usr/bin/{name}")

    assert reviewer.check_session().available is False


def test_extract_answer_passes_through_plain_output() -> None:
    assert extract_answer("no marker here") == "no marker here"
    assert extract_answer("Answer:\nfinal text") == "final text"


def test_classify_failure_maps_known_messages() -> None:
    assert "timeout" in (classify_failure("oracle timed out after 5s") or "")
    assert "DISPLAY" in (classify_failure("connect ECONNREFUSED 127.0.0.1") or "")
    assert "Sign in" in (classify_failure("Session expired, please login") or "")
    assert classify_failure("something unexpected") is None
