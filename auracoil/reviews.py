"""Review artifacts: storage, tolerant parsing and region rendering."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .logging import get_logger
from .models import SEVERITIES
from .prompting.review import render_template

REVIEWS_DIRNAME = "reviews"
_ARTIFACT_PREFIX = "review-"
_ARTIFACT_SUFFIX = ".json"
_FENCE = re.compile(r"^```(?:json)?\s*\n(.*?)\n?```\s*$", re.DOTALL)

_LOGGER = get_logger("reviews")


@dataclass(frozen=True)
class Suggestion:
    id: str
    severity: str
    section: str
    suggestion: str
    evidence: str
    type: Optional[str] = None


@dataclass
class ReviewPayload:
    """Structured reviewer output."""

    suggestions: List[Suggestion] = field(default_factory=list)
    summary: str = ""


def parse_review(raw: str) -> Optional[ReviewPayload]:
    """Parse reviewer output; malformed input yields None instead of raising."""
    text = raw.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    data = _loads_object(text)
    if data is None:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            return None
        data = _loads_object(text[start : end + 1])
        if data is None:
            return None

    raw_suggestions = data.get("suggestions", [])
    if not isinstance(raw_suggestions, list):
        return None
    suggestions: List[Suggestion] = []
    for item in raw_suggestions:
        suggestion = _suggestion_from_dict(item)
        if suggestion is not None:
            suggestions.append(suggestion)
    summary = data.get("summary")
    return ReviewPayload(suggestions=suggestions, summary=summary if isinstance(summary, str) else "")


def render_region(raw: str, *, reviewed_on: Optional[date] = None) -> str:
    """Render reviewer output as region Markdown; unparseable output is used verbatim."""
    payload = parse_review(raw)
    if payload is None:
        _LOGGER.debug("Review output is not structured JSON; using raw text")
        return raw.strip()
    day = reviewed_on or datetime.now(UTC).date()
    return render_template(
        "region.md.j2",
        reviewed_on=day.isoformat(),
        summary=payload.summary.strip(),
        suggestions=payload.suggestions,
    )


def artifact_name(day: date) -> str:
    return f"{_ARTIFACT_PREFIX}{day.isoformat()}{_ARTIFACT_SUFFIX}"


def write_review_artifact(reviews_dir: Path, output: str, *, day: Optional[date] = None) -> Path:
    """Persist raw reviewer output verbatim; a same-day artifact is overwritten."""
    reviews_dir.mkdir(parents=True, exist_ok=True)
    path = reviews_dir / artifact_name(day or datetime.now(UTC).date())
    path.write_text(output, encoding="utf-8")
    return path


def latest_review_file(reviews_dir: Path) -> Optional[Path]:
    if not reviews_dir.is_dir():
        return None
    candidates = sorted(
        (
            entry
            for entry in reviews_dir.iterdir()
            if entry.is_file()
            and entry.name.startswith(_ARTIFACT_PREFIX)
            and entry.name.endswith(_ARTIFACT_SUFFIX)
        ),
        key=lambda entry: entry.name,
        reverse=True,
    )
    return candidates[0] if candidates else None


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _suggestion_from_dict(payload: object) -> Optional[Suggestion]:
    if not isinstance(payload, dict):
        return None
    suggestion_id = payload.get("id")
    text = payload.get("suggestion")
    if not isinstance(suggestion_id, str) or not suggestion_id.strip():
        return None
    if not isinstance(text, str) or not text.strip():
        return None
    severity = str(payload.get("severity") or "").lower()
    kind = payload.get("type")
    return Suggestion(
        id=suggestion_id.strip(),
        severity=severity if severity in SEVERITIES else "low",
        section=str(payload.get("section") or "General"),
        suggestion=text.strip(),
        evidence=str(payload.get("evidence") or ""),
        type=kind if isinstance(kind, str) and kind else None,
    )


__all__ = [
    "REVIEWS_DIRNAME",
    "ReviewPayload",
    "Suggestion",
    "artifact_name",
    "latest_review_file",
    "parse_review",
    "render_region",
    "write_review_artifact",
]
