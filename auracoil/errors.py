"""Failure taxonomy shared by auracoil components."""

from __future__ import annotations


class AuracoilError(RuntimeError):
    """Base class for failures that abort the current invocation."""

    default_hint: str | None = None

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint if hint is not None else self.default_hint


class ConfigError(AuracoilError):
    """Raised when .auracoil/config.yaml cannot be parsed."""

    default_hint = "Fix .auracoil/config.yaml or rerun `auracoil init --force`."


class HostDocumentMissingError(AuracoilError):
    """Raised when the documentation file under review does not exist."""

    default_hint = "Create the document first (for example with /interdoc), then retry."


class RegionError(AuracoilError):
    """Base class for problems with the auracoil-owned region."""


class MissingRegionError(RegionError):
    """Raised when a region replacement is attempted without both markers."""

    default_hint = "Add both auracoil markers to the document before applying a review."


class MalformedRegionError(RegionError):
    """Raised when markers are duplicated or out of order."""

    default_hint = "Keep exactly one begin marker followed by one end marker."


class PreflightError(AuracoilError):
    """Raised when the external reviewer is not usable."""

    default_hint = "Fix the reviewer session, then retry. Use --skip-preflight to bypass."


class ReviewerError(AuracoilError):
    """Raised when the external reviewer call fails."""


class ReviewNotFoundError(AuracoilError):
    """Raised when no review artifact is available to apply."""

    default_hint = "Run `auracoil review` first."


__all__ = [
    "AuracoilError",
    "ConfigError",
    "HostDocumentMissingError",
    "MalformedRegionError",
    "MissingRegionError",
    "PreflightError",
    "RegionError",
    "ReviewNotFoundError",
    "ReviewerError",
]
