"""Pipeline orchestration for init/review/apply/diff/health flows."""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Callable, List, Optional

from .bundle.builder import build_analysis_bundle, get_bundle_hash, hash_content
from .config import (
    CONFIG_DIRNAME,
    AuracoilConfig,
    config_path,
    default_config_mapping,
    dump_config,
    load_config,
)
from .errors import (
    HostDocumentMissingError,
    PreflightError,
    ReviewerError,
    ReviewNotFoundError,
)
from .git.history import GitHistory, GitRunner
from .health import HealthReport, collect_health
from .llm.oracle import OracleReviewer, ReviewRequest, classify_failure
from .logging import get_logger
from .models import Finding, SecretIssue
from .prompting.review import ReviewPromptBuilder, ReviewPromptInput
from .regions.markers import ensure_region, extract_region, replace_region
from .repo_indexer import index_repository
from .reviews import (
    REVIEWS_DIRNAME,
    latest_review_file,
    parse_review,
    render_region,
    write_review_artifact,
)
from .security.secrets import scan_for_secrets
from .stores.review_cache import CACHE_DIRNAME, ReviewCache
from .stores.state import StateManager

FIRST_REVIEW_PLACEHOLDER = "(No Auracoil region yet; first review)"
GITIGNORE_ENTRIES = (f"{CONFIG_DIRNAME}/{CACHE_DIRNAME}/",)


@dataclass
class ReviewOutcome:
    """Result of a review run."""

    artifact_path: Path
    sent_files: List[str]
    excluded_issues: List[SecretIssue]
    changed_files: List[str]
    commit_count: int
    bundle_hash: str
    cached: bool = False


@dataclass
class ApplyOutcome:
    """Result of splicing a review into the host document."""

    document_path: Path
    review_file: Path
    changed: bool
    structured: bool
    findings_added: List[str] = field(default_factory=list)


class Orchestrator:
    """Coordinates review pipelines against a repository."""

    def __init__(
        self,
        reviewer: OracleReviewer | None = None,
        *,
        git_runner: GitRunner | None = None,
        prompt_builder: ReviewPromptBuilder | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._reviewer = reviewer
        self._git_runner = git_runner
        self.prompt_builder = prompt_builder or ReviewPromptBuilder()
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("orchestrator")

    def run_review(
        self,
        path: str,
        *,
        skip_preflight: bool = False,
        use_cache: bool | None = None,
    ) -> ReviewOutcome:
        """Gather evidence, ask the reviewer for a critique, and store the raw answer."""
        repo_path = Path(path).expanduser().resolve()
        config = load_config(repo_path)
        reviewer = self._resolve_reviewer(config)
        self.logger.info("Starting review run for %s", repo_path)

        if skip_preflight:
            self.logger.debug("Skipping reviewer pre-flight check")
        else:
            session = reviewer.check_session()
            if not session.available:
                raise PreflightError(session.message)
            self.logger.info("Reviewer session active (%s)", session.version or "unknown version")

        document = self._read_document(repo_path, config)
        region = extract_region(document)
        region_text = region if region else FIRST_REVIEW_PLACEHOLDER

        state_manager = StateManager(repo_path)
        state = state_manager.load()
        history = self._history(repo_path)
        evidence = history.gather_evidence(
            state.last_reviewed_commit, history_limit=config.review.history_limit
        )
        self.logger.info(
            "%d files changed, %d commits",
            len(evidence.changed_files),
            len(evidence.commit_messages),
        )

        index = index_repository(repo_path, config.exclude)
        bundle = build_analysis_bundle(repo_path, index, config.bundle_config())
        files = bundle.files()
        scan = scan_for_secrets(repo_path, files)
        flagged = set(scan.flagged_files())
        sent_files = [rel_path for rel_path in files if rel_path not in flagged]
        if flagged:
            self.logger.warning("Excluding %d file(s) flagged by the secret scan", len(flagged))

        prompt = self.prompt_builder.build(
            ReviewPromptInput(
                region_text=region_text,
                repo_name=repo_path.name or "unknown",
                changed_files=evidence.changed_files,
                commit_messages=evidence.commit_messages,
                languages=[language.name for language in index.languages],
                document_name=config.document,
            )
        )

        bundle_hash = get_bundle_hash(bundle)
        cache_enabled = config.review.cache if use_cache is None else use_cache
        cache = ReviewCache(repo_path) if cache_enabled else None
        cache_key = hash_content(f"{bundle_hash}:{hash_content(prompt)}")
        output = cache.get(cache_key) if cache is not None else None
        cached = output is not None
        if cached:
            self.logger.info("Using cached review %s", cache_key)
        else:
            request = ReviewRequest(
                prompt=prompt,
                files=[str(repo_path / rel_path) for rel_path in sent_files],
                model=config.reviewer.model,
                timeout=config.reviewer.timeout,
            )
            result = reviewer.review(request)
            if not result.success:
                message = result.error or "Reviewer returned no output"
                raise ReviewerError(f"Review failed: {message}", hint=classify_failure(message))
            output = result.output
            if cache is not None:
                cache.store(cache_key, output)

        now = self._clock()
        artifact = write_review_artifact(
            repo_path / CONFIG_DIRNAME / REVIEWS_DIRNAME, output, day=now.date()
        )
        self.logger.info("Review saved to %s", artifact)

        state_manager.update(
            last_reviewed_commit=history.head_commit(),
            last_reviewed_at=_timestamp(now),
            content_hash=hash_content(document),
        )
        return ReviewOutcome(
            artifact_path=artifact,
            sent_files=sent_files,
            excluded_issues=list(scan.issues),
            changed_files=list(evidence.changed_files),
            commit_count=len(evidence.commit_messages),
            bundle_hash=bundle_hash,
            cached=cached,
        )

    def run_apply(
        self,
        path: str,
        review_file: str | None = None,
        *,
        record_findings: bool = True,
    ) -> ApplyOutcome:
        """Splice the rendered review into the region and record its suggestions."""
        repo_path = Path(path).expanduser().resolve()
        config = load_config(repo_path)
        review_path = self._resolve_review_file(repo_path, review_file)
        self.logger.info("Applying %s", review_path.name)
        raw = review_path.read_text(encoding="utf-8")

        doc_path = repo_path / config.document
        document = self._read_document(repo_path, config)
        updated = replace_region(
            ensure_region(document), render_region(raw, reviewed_on=_review_date(review_path))
        )
        changed = updated != document
        if changed:
            doc_path.write_text(updated, encoding="utf-8")
            self.logger.info("Updated the auracoil region of %s", config.document)
        else:
            self.logger.info("%s already up to date", config.document)

        payload = parse_review(raw)
        added: List[str] = []
        if payload is None:
            self.logger.warning("Review output is not valid JSON; applied raw text")
        elif record_findings:
            state_manager = StateManager(repo_path)
            for suggestion in payload.suggestions:
                if state_manager.add_finding(
                    id=suggestion.id,
                    severity=suggestion.severity,
                    section=suggestion.section,
                    suggestion=suggestion.suggestion,
                    evidence=suggestion.evidence,
                ):
                    added.append(suggestion.id)
            self.logger.info("Recorded %d new finding(s)", len(added))
        return ApplyOutcome(
            document_path=doc_path,
            review_file=review_path,
            changed=changed,
            structured=payload is not None,
            findings_added=added,
        )

    def run_diff(self, path: str, review_file: str | None = None) -> str:
        """Return a unified diff of the current region against what apply would write."""
        repo_path = Path(path).expanduser().resolve()
        config = load_config(repo_path)
        review_path = self._resolve_review_file(repo_path, review_file)
        raw = review_path.read_text(encoding="utf-8")
        document = self._read_document(repo_path, config)

        current = extract_region(document) or ""
        proposed = render_region(raw, reviewed_on=_review_date(review_path))
        if current.strip() == proposed.strip():
            return ""
        diff = difflib.unified_diff(
            (current.strip() + "\n").splitlines(keepends=True) if current.strip() else [],
            (proposed.strip() + "\n").splitlines(keepends=True),
            fromfile=f"{config.document} (current region)",
            tofile=f"{config.document} (proposed region)",
        )
        return "".join(diff)

    def run_init(self, path: str, *, force: bool = False) -> Path:
        """Write default configuration and private directories."""
        repo_path = Path(path).expanduser().resolve()
        target = config_path(repo_path)
        if target.exists() and not force:
            raise FileExistsError(f"{target} already exists. Use --force to reinitialize.")

        state_dir = repo_path / CONFIG_DIRNAME
        (state_dir / REVIEWS_DIRNAME).mkdir(parents=True, exist_ok=True)
        (state_dir / CACHE_DIRNAME).mkdir(parents=True, exist_ok=True)
        target.write_text(dump_config(default_config_mapping()), encoding="utf-8")
        self._update_gitignore(repo_path)

        self.logger.info("Initialized auracoil in %s", state_dir)
        return target

    def run_health(self, path: str) -> HealthReport:
        repo_path = Path(path).expanduser().resolve()
        config = load_config(repo_path)
        return collect_health(
            config,
            self._resolve_reviewer(config),
            self._history(repo_path),
            StateManager(repo_path),
            now=self._clock(),
        )

    def list_findings(self, path: str, *, include_resolved: bool = False) -> List[Finding]:
        manager = StateManager(Path(path).expanduser().resolve())
        if include_resolved:
            return manager.load().findings
        return manager.open_findings()

    def resolve_finding(self, path: str, finding_id: str) -> bool:
        manager = StateManager(Path(path).expanduser().resolve())
        resolved = manager.resolve_finding(finding_id)
        if not resolved:
            self.logger.warning("No finding with id %s", finding_id)
        return resolved

    # ------------------------------------------------------------------
    # Internals

    def _resolve_reviewer(self, config: AuracoilConfig) -> OracleReviewer:
        if self._reviewer is not None:
            return self._reviewer
        return OracleReviewer(config.reviewer_environment())

    def _history(self, repo_path: Path) -> GitHistory:
        return GitHistory(repo_path, runner=self._git_runner)

    @staticmethod
    def _read_document(repo_path: Path, config: AuracoilConfig) -> str:
        doc_path = repo_path / config.document
        if not doc_path.is_file():
            raise HostDocumentMissingError(f"No {config.document} found in {repo_path}")
        return doc_path.read_text(encoding="utf-8")

    @staticmethod
    def _resolve_review_file(repo_path: Path, review_file: str | None) -> Path:
        reviews_dir = repo_path / CONFIG_DIRNAME / REVIEWS_DIRNAME
        if review_file:
            # A path as typed wins; a bare name falls back to the reviews directory.
            given = Path(review_file).expanduser()
            for candidate in (given, reviews_dir / given):
                if candidate.is_file():
                    return candidate.resolve()
            raise ReviewNotFoundError(f"Review file not found: {review_file}")
        latest = latest_review_file(reviews_dir)
        if latest is None:
            raise ReviewNotFoundError(f"No review files found in {reviews_dir}")
        return latest

    @staticmethod
    def _update_gitignore(repo_path: Path) -> None:
        gitignore = repo_path / ".gitignore"
        existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
        present = {line.strip() for line in existing.splitlines()}
        missing = [entry for entry in GITIGNORE_ENTRIES if entry not in present]
        if not missing:
            return
        prefix = existing if not existing or existing.endswith("\n") else existing + "\n"
        block = "\n# Auracoil\n" + "\n".join(missing) + "\n"
        gitignore.write_text(prefix + block, encoding="utf-8")


def _timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _review_date(review_path: Path) -> Optional[date]:
    stem = review_path.stem
    try:
        return date.fromisoformat(stem.removeprefix("review-"))
    except ValueError:
        return None


__all__ = ["ApplyOutcome", "Orchestrator", "ReviewOutcome"]
