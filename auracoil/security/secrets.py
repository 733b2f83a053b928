"""Secret detection applied before any file leaves the machine."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Pattern, Sequence, Tuple

from ..logging import get_logger
from ..models import SecretIssue, SecretScanResult, SecretType

_LOGGER = get_logger("security")

_DANGEROUS_FILES = frozenset(
    {
        ".env",
        ".env.local",
        ".env.production",
        ".env.development",
        ".npmrc",
        ".netrc",
        "credentials.json",
        "secrets.json",
        "id_rsa",
        "id_ed25519",
        "service-account.json",
        "gcloud-credentials.json",
    }
)

_EXAMPLE_NAME_FRAGMENTS = (".example", ".template", ".sample")
_EXAMPLE_CONTENT_MARKERS = ("your-api-key-here", "YOUR_API_KEY", "xxx")
_COMMENT_PREFIXES = ("//", "#", "*", "/*")
_PLACEHOLDER_FRAGMENTS = (
    "your-",
    "xxx",
    "placeholder",
    "example",
    "changeme",
    "replace-",
    "todo",
    "fixme",
    "<your",
    "${",
    "{{",
)

MASK = "***MASKED***"


@dataclass(frozen=True)
class SecretRule:
    """A compiled detection pattern tagged with the kind of secret it finds."""

    pattern: Pattern[str]
    type: SecretType
    description: str


DEFAULT_RULES: tuple[SecretRule, ...] = (
    SecretRule(
        re.compile(r"(?:api[_-]?key|apikey)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-]{20,})['\"]?", re.I),
        SecretType.API_KEY,
        "API key",
    ),
    SecretRule(re.compile(r"AKIA[0-9A-Z]{16}"), SecretType.AWS_CREDENTIALS, "AWS Access Key ID"),
    SecretRule(
        re.compile(
            r"(?:aws_secret_access_key|aws_secret)\s*[:=]\s*['\"]?([a-zA-Z0-9/+=]{40})['\"]?",
            re.I,
        ),
        SecretType.AWS_CREDENTIALS,
        "AWS Secret Access Key",
    ),
    SecretRule(
        re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"),
        SecretType.PRIVATE_KEY,
        "Private key block",
    ),
    SecretRule(
        re.compile(r"(?:password|passwd|pwd)\s*[:=]\s*['\"]([^'\"]{8,})['\"]?", re.I),
        SecretType.PASSWORD,
        "Password",
    ),
    SecretRule(
        re.compile(r"(?:token|bearer|auth)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-.]{20,})['\"]?", re.I),
        SecretType.TOKEN,
        "Auth token",
    ),
    SecretRule(re.compile(r"ghp_[a-zA-Z0-9]{36}"), SecretType.TOKEN, "GitHub personal access token"),
    SecretRule(re.compile(r"gho_[a-zA-Z0-9]{36}"), SecretType.TOKEN, "GitHub OAuth token"),
    SecretRule(re.compile(r"xox[baprs]-[0-9]{10,13}-[a-zA-Z0-9-]+"), SecretType.TOKEN, "Slack token"),
    SecretRule(
        re.compile(r"(?:mongodb|postgres|mysql|redis)://[^\s'\"]+:[^\s'\"]+@[^\s'\"]+", re.I),
        SecretType.CONNECTION_STRING,
        "Database connection string with credentials",
    ),
    SecretRule(
        re.compile(r"(?:secret|private)\s*[:=]\s*['\"]([^'\"]{16,})['\"]?", re.I),
        SecretType.API_KEY,
        "Generic secret",
    ),
)

# Applied in order; each entry redacts one secret shape from a snippet.
_MASK_RULES: tuple[tuple[Pattern[str], str], ...] = (
    (re.compile(r"(['\"])[a-zA-Z0-9_\-/.+=]{16,}\1"), rf"\1{MASK}\1"),
    (re.compile(r"[:=]\s*[a-zA-Z0-9_\-/.+=]{20,}"), f": {MASK}"),
    (re.compile(r"(://[^\s:/'\"@]+:)[^\s@'\"]+@"), rf"\1{MASK}@"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), f"AKIA{MASK}"),
    (re.compile(r"(gh[po]_)[a-zA-Z0-9]{36}"), rf"\1{MASK}"),
    (re.compile(r"(xox[baprs]-)[0-9a-zA-Z-]+"), rf"\1{MASK}"),
)


def is_dangerous_file(path: str) -> bool:
    """Return True when a file must never be uploaded, regardless of content."""
    name = PurePosixPath(path.replace("\\", "/")).name.lower()
    if name in _DANGEROUS_FILES:
        return True
    if name.startswith(".env"):
        return True
    if name.endswith((".pem", ".key")):
        return True
    return "credentials" in name or "secrets" in name


def scan_for_secrets(
    root: Path | str,
    paths: Iterable[str],
    rules: Sequence[SecretRule] = DEFAULT_RULES,
) -> SecretScanResult:
    """Scan repository-relative paths and report anything unsafe to transmit."""
    root_path = Path(root)
    issues: List[SecretIssue] = []

    for rel_path in paths:
        if is_dangerous_file(rel_path):
            name = PurePosixPath(rel_path).name
            issues.append(
                SecretIssue(
                    file=rel_path,
                    line=0,
                    type=SecretType.SENSITIVE_FILE,
                    snippet=f'File "{name}" should never be uploaded',
                )
            )
            continue

        try:
            content = (root_path / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _LOGGER.debug("Skipping unreadable file %s: %s", rel_path, exc)
            continue

        issues.extend(scan_content(rel_path, content, rules))

    result = SecretScanResult(issues=issues)
    for issue in result.issues:
        _LOGGER.warning(
            "Potential %s in %s:%d: %s", issue.type.value, issue.file, issue.line, issue.snippet
        )
    return result


def scan_content(
    file: str,
    content: str,
    rules: Sequence[SecretRule] = DEFAULT_RULES,
) -> List[SecretIssue]:
    """Run pattern rules over one file's content."""
    if is_example_file(file, content):
        return []

    lines = content.split("\n")
    hits: List[Tuple[SecretRule, int]] = []
    # Every value matched on a line is hidden in every snippet of that line.
    values_by_line: Dict[int, List[str]] = {}
    for rule in rules:
        for match in rule.pattern.finditer(content):
            line_number = content.count("\n", 0, match.start()) + 1
            line = lines[line_number - 1] if line_number <= len(lines) else ""
            if _is_comment(line):
                continue
            if _is_placeholder(match.group(0)):
                continue
            hits.append((rule, line_number))
            values = values_by_line.setdefault(line_number, [])
            captured = _captured_value(match)
            if captured:
                values.append(captured)

    issues: List[SecretIssue] = []
    for rule, line_number in hits:
        line = lines[line_number - 1] if line_number <= len(lines) else ""
        issues.append(
            SecretIssue(
                file=file,
                line=line_number,
                type=rule.type,
                snippet=_mask_values(line.strip(), values_by_line[line_number]),
            )
        )
    return issues


def is_example_file(file: str, content: str) -> bool:
    """Return True for templates and docs whose values are illustrative."""
    lowered = file.lower()
    if any(fragment in lowered for fragment in _EXAMPLE_NAME_FRAGMENTS):
        return True
    if lowered.endswith(".md"):
        return True
    return any(marker in content for marker in _EXAMPLE_CONTENT_MARKERS)


def mask_secret(line: str, secret: str | None = None) -> str:
    """Redact secret-shaped substrings so a snippet is safe to log."""
    masked = line.replace(secret, MASK) if secret else line
    for pattern, replacement in _MASK_RULES:
        masked = pattern.sub(replacement, masked)
    return masked


def _mask_values(line: str, values: Iterable[str]) -> str:
    # Longest first so a value containing another is not left half-masked.
    for value in sorted(set(values), key=len, reverse=True):
        line = line.replace(value, MASK)
    return mask_secret(line)


def format_scan_results(result: SecretScanResult) -> str:
    if result.safe:
        return "No secrets detected"

    lines = ["Potential secrets detected:", ""]
    for issue in result.issues:
        lines.append(f"  {issue.file}:{issue.line}")
        lines.append(f"    Type: {issue.type.value}")
        lines.append(f"    {issue.snippet}")
        lines.append("")
    lines.append("These files will be excluded from the review upload.")
    return "\n".join(lines)


def _captured_value(match: re.Match[str]) -> str | None:
    if match.re.groups and match.group(1):
        return match.group(1)
    return None


def _is_comment(line: str) -> bool:
    return line.strip().startswith(_COMMENT_PREFIXES)


def _is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(fragment in lowered for fragment in _PLACEHOLDER_FRAGMENTS)


__all__ = [
    "DEFAULT_RULES",
    "MASK",
    "SecretRule",
    "format_scan_results",
    "is_dangerous_file",
    "is_example_file",
    "mask_secret",
    "scan_content",
    "scan_for_secrets",
]
