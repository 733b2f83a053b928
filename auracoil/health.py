"""Documentation and reviewer health report."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import List, Optional

from .bundle.builder import hash_content
from .config import AuracoilConfig, config_path
from .git.history import GitHistory
from .llm.oracle import OracleReviewer
from .logging import get_logger
from .regions.markers import has_region
from .stores.state import StateManager

STALE_COMMIT_THRESHOLD = 5
STALE_DAYS_THRESHOLD = 7

_LOGGER = get_logger("health")


@dataclass
class HealthReport:
    """Snapshot of everything `auracoil health` prints."""

    reviewer_available: bool
    reviewer_message: str
    reviewer_version: Optional[str]
    initialized: bool
    document: str
    document_exists: bool
    document_age_days: Optional[int]
    region_present: bool
    last_reviewed_commit: Optional[str]
    last_reviewed_at: Optional[str]
    commits_since_review: Optional[int]
    days_since_review: Optional[int]
    open_findings: int
    document_changed: Optional[bool]
    needs_review: bool


def collect_health(
    config: AuracoilConfig,
    reviewer: OracleReviewer,
    history: GitHistory,
    state_manager: StateManager,
    *,
    now: Optional[datetime] = None,
) -> HealthReport:
    current = now or datetime.now(UTC)
    session = reviewer.check_session()
    state = state_manager.load()

    doc_path = config.root / config.document
    document_exists = doc_path.is_file()
    document_age_days: Optional[int] = None
    region_present = False
    document_changed: Optional[bool] = None
    if document_exists:
        mtime = datetime.fromtimestamp(doc_path.stat().st_mtime, UTC)
        document_age_days = max((current - mtime).days, 0)
        try:
            text = doc_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _LOGGER.debug("Unable to read %s: %s", doc_path, exc)
        else:
            region_present = has_region(text)
            if state.content_hash is not None:
                document_changed = hash_content(text) != state.content_hash

    commits_since_review: Optional[int] = None
    if state.last_reviewed_commit:
        try:
            commits_since_review = history.commit_count(state.last_reviewed_commit)
        except (subprocess.CalledProcessError, OSError) as exc:
            _LOGGER.debug("Unable to count commits since review: %s", exc)

    days_since_review = _days_since(state.last_reviewed_at, current)
    needs_review = (
        state.last_reviewed_at is None
        or (commits_since_review or 0) > STALE_COMMIT_THRESHOLD
        or (days_since_review is not None and days_since_review > STALE_DAYS_THRESHOLD)
    )

    return HealthReport(
        reviewer_available=session.available,
        reviewer_message=session.message,
        reviewer_version=session.version,
        initialized=config_path(config.root).exists(),
        document=config.document,
        document_exists=document_exists,
        document_age_days=document_age_days,
        region_present=region_present,
        last_reviewed_commit=state.last_reviewed_commit,
        last_reviewed_at=state.last_reviewed_at,
        commits_since_review=commits_since_review,
        days_since_review=days_since_review,
        open_findings=sum(1 for finding in state.findings if finding.status == "open"),
        document_changed=document_changed,
        needs_review=needs_review,
    )


def format_health_report(report: HealthReport) -> str:
    lines: List[str] = ["Auracoil Health Check", ""]
    if report.reviewer_available:
        lines.append(f"  Reviewer:     {report.reviewer_version or 'available'}")
    else:
        lines.append(f"  Reviewer:     unavailable ({report.reviewer_message})")
    lines.append(f"  Initialized:  {'yes' if report.initialized else 'no (run `auracoil init`)'}")
    if report.document_exists:
        age = f"{report.document_age_days}d old" if report.document_age_days is not None else ""
        lines.append(f"  Document:     {report.document} {age}".rstrip())
        lines.append(f"  Region:       {'present' if report.region_present else 'missing'}")
    else:
        lines.append(f"  Document:     {report.document} not found")
    if report.last_reviewed_at:
        commit = (report.last_reviewed_commit or "no commit")[:12]
        lines.append(f"  Last review:  {report.last_reviewed_at} ({commit})")
    else:
        lines.append("  Last review:  never")
    if report.commits_since_review is not None:
        lines.append(f"  Commits since review: {report.commits_since_review}")
    if report.document_changed is not None:
        lines.append(f"  Document changed since review: {'yes' if report.document_changed else 'no'}")
    lines.append(f"  Open findings: {report.open_findings}")
    lines.append("")
    if report.needs_review:
        lines.append("  -> Run `auracoil review` to refresh the reviewer insights")
    else:
        lines.append("  All good!")
    return "\n".join(lines)


def _days_since(timestamp: Optional[str], now: datetime) -> Optional[int]:
    if not timestamp:
        return None
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return max((now - parsed).days, 0)


__all__ = ["HealthReport", "collect_health", "format_health_report"]
