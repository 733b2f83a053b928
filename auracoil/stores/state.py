"""Persistent review checkpoint and findings (.auracoil/state.json)."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import fields
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..logging import get_logger
from ..models import SEVERITIES, AuracoilState, Finding

STATE_DIRNAME = ".auracoil"
STATE_FILENAME = "state.json"

_STATE_FIELDS = frozenset(item.name for item in fields(AuracoilState))


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class StateManager:
    """Loads and rewrites the whole state document on every mutation."""

    def __init__(self, root: Path | str) -> None:
        self.path = Path(root) / STATE_DIRNAME / STATE_FILENAME
        self.logger = get_logger("state")

    def load(self) -> AuracoilState:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return AuracoilState()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.debug("Ignoring unreadable state file %s: %s", self.path, exc)
            return AuracoilState()
        if not isinstance(data, dict):
            self.logger.debug("Ignoring state file %s without a JSON object", self.path)
            return AuracoilState()
        return AuracoilState.from_dict(data)

    def save(self, state: AuracoilState) -> None:
        """Write to a sibling temp file, then rename over the state file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.to_dict(), indent=2)
        fd, tmp_name = tempfile.mkstemp(prefix=".state-", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def update(self, changes: Optional[Mapping[str, Any]] = None, **fields_: Any) -> AuracoilState:
        """Shallow-merge the given fields into the stored state."""
        merged = dict(changes or {})
        merged.update(fields_)
        unknown = sorted(set(merged) - _STATE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown state field(s): {', '.join(unknown)}")
        state = self.load()
        for name, value in merged.items():
            setattr(state, name, value)
        self.save(state)
        return state

    def add_finding(
        self,
        *,
        id: str,
        severity: str,
        section: str,
        suggestion: str,
        evidence: str,
    ) -> bool:
        """Record an open finding; returns False when the id is already known."""
        state = self.load()
        if any(finding.id == id for finding in state.findings):
            return False
        state.findings.append(
            Finding(
                id=id,
                severity=severity if severity in SEVERITIES else "low",
                section=section,
                suggestion=suggestion,
                evidence=evidence,
                status="open",
                introduced_at=utc_timestamp(),
            )
        )
        self.save(state)
        return True

    def resolve_finding(self, finding_id: str) -> bool:
        state = self.load()
        for finding in state.findings:
            if finding.id != finding_id:
                continue
            if finding.status != "resolved":
                finding.status = "resolved"
                finding.resolved_at = utc_timestamp()
                self.save(state)
            return True
        return False

    def open_findings(self) -> List[Finding]:
        return [finding for finding in self.load().findings if finding.status == "open"]


__all__ = ["STATE_DIRNAME", "StateManager", "utc_timestamp"]
