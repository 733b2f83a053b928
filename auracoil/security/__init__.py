"""Safety gates applied before repository files are transmitted."""

from .secrets import (
    DEFAULT_RULES,
    SecretRule,
    format_scan_results,
    is_dangerous_file,
    mask_secret,
    scan_for_secrets,
)

__all__ = [
    "DEFAULT_RULES",
    "SecretRule",
    "format_scan_results",
    "is_dangerous_file",
    "mask_secret",
    "scan_for_secrets",
]
