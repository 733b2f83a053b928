"""Core data models shared across auracoil components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

BUNDLE_CATEGORIES: Tuple[str, ...] = ("manifests", "entrypoints", "configs", "docs", "samples")


@dataclass(frozen=True)
class LanguageInfo:
    """Per-language file and line totals."""

    name: str
    extension: str
    file_count: int
    line_count: int


@dataclass(frozen=True)
class ManifestInfo:
    """An ecosystem manifest discovered in the repository."""

    type: str
    path: str
    name: Optional[str] = None
    dependencies: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class RepoStats:
    total_files: int
    total_lines: int
    last_modified: datetime


@dataclass(frozen=True)
class RepoIndex:
    """Immutable snapshot of a repository's structure."""

    languages: Tuple[LanguageInfo, ...]
    frameworks: Tuple[str, ...]
    entrypoints: Tuple[str, ...]
    manifests: Tuple[ManifestInfo, ...]
    configs: Tuple[str, ...]
    docs: Tuple[str, ...]
    stats: RepoStats

    def to_summary(self) -> Dict[str, Any]:
        """Return the reduced, JSON-serialisable projection callers persist."""
        return {
            "languages": [
                {
                    "name": language.name,
                    "extension": language.extension,
                    "fileCount": language.file_count,
                    "lineCount": language.line_count,
                }
                for language in self.languages
            ],
            "frameworks": list(self.frameworks),
            "stats": {
                "totalFiles": self.stats.total_files,
                "totalLines": self.stats.total_lines,
                "lastModified": self.stats.last_modified.isoformat(),
            },
        }


@dataclass
class AnalysisBundle:
    """Bounded selection of repository files for external review."""

    manifests: List[str] = field(default_factory=list)
    entrypoints: List[str] = field(default_factory=list)
    configs: List[str] = field(default_factory=list)
    docs: List[str] = field(default_factory=list)
    samples: List[str] = field(default_factory=list)
    content_hashes: Dict[str, str] = field(default_factory=dict)
    total_token_estimate: int = 0
    total_size: int = 0

    def files(self) -> List[str]:
        """Return every bundled path in bucket order."""
        flattened: List[str] = []
        for category in BUNDLE_CATEGORIES:
            flattened.extend(getattr(self, category))
        return flattened

    def file_count(self) -> int:
        return sum(len(getattr(self, category)) for category in BUNDLE_CATEGORIES)

    def __contains__(self, path: object) -> bool:
        return path in self.content_hashes


class SecretType(str, Enum):
    API_KEY = "api_key"
    AWS_CREDENTIALS = "aws_credentials"
    PRIVATE_KEY = "private_key"
    PASSWORD = "password"
    TOKEN = "token"
    CONNECTION_STRING = "connection_string"
    SENSITIVE_FILE = "sensitive_file"


@dataclass(frozen=True)
class SecretIssue:
    """A potential secret. `snippet` is always masked."""

    file: str
    line: int
    type: SecretType
    snippet: str


@dataclass
class SecretScanResult:
    issues: List[SecretIssue] = field(default_factory=list)

    @property
    def safe(self) -> bool:
        return not self.issues

    def flagged_files(self) -> List[str]:
        """Return flagged paths in first-seen order."""
        seen: Dict[str, None] = {}
        for issue in self.issues:
            seen.setdefault(issue.file, None)
        return list(seen)


SEVERITIES: Tuple[str, ...] = ("low", "medium", "high")


@dataclass
class Finding:
    """Lifecycle-tracked suggestion from a previous review."""

    id: str
    severity: str
    section: str
    suggestion: str
    evidence: str
    status: str = "open"
    introduced_at: str = ""
    resolved_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "severity": self.severity,
            "section": self.section,
            "suggestion": self.suggestion,
            "evidence": self.evidence,
            "status": self.status,
            "introducedAt": self.introduced_at,
        }
        if self.resolved_at is not None:
            payload["resolvedAt"] = self.resolved_at
        return payload

    @classmethod
    def from_dict(cls, payload: object) -> Optional["Finding"]:
        if not isinstance(payload, dict):
            return None
        finding_id = payload.get("id")
        if not isinstance(finding_id, str) or not finding_id:
            return None
        severity = payload.get("severity")
        status = payload.get("status")
        resolved_at = payload.get("resolvedAt")
        # resolvedAt is kept only on resolved findings; a resolution without one reopens.
        if status != "resolved" or not isinstance(resolved_at, str) or not resolved_at:
            status, resolved_at = "open", None
        return cls(
            id=finding_id,
            severity=severity if severity in SEVERITIES else "low",
            section=str(payload.get("section") or ""),
            suggestion=str(payload.get("suggestion") or ""),
            evidence=str(payload.get("evidence") or ""),
            status=status,
            introduced_at=str(payload.get("introducedAt") or ""),
            resolved_at=resolved_at,
        )


@dataclass
class AuracoilState:
    """Persisted review checkpoint and findings."""

    last_reviewed_commit: Optional[str] = None
    last_reviewed_at: Optional[str] = None
    content_hash: Optional[str] = None
    findings: List[Finding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastReviewedCommit": self.last_reviewed_commit,
            "lastReviewedAt": self.last_reviewed_at,
            "contentHash": self.content_hash,
            "findings": [finding.to_dict() for finding in self.findings],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AuracoilState":
        findings: List[Finding] = []
        raw_findings = payload.get("findings")
        if isinstance(raw_findings, list):
            seen: set[str] = set()
            for raw in raw_findings:
                finding = Finding.from_dict(raw)
                if finding is None or finding.id in seen:
                    continue
                seen.add(finding.id)
                findings.append(finding)
        return cls(
            last_reviewed_commit=_optional_str(payload.get("lastReviewedCommit")),
            last_reviewed_at=_optional_str(payload.get("lastReviewedAt")),
            content_hash=_optional_str(payload.get("contentHash")),
            findings=findings,
        )


def _optional_str(value: object) -> Optional[str]:
    return value if isinstance(value, str) else None
