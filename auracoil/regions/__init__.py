"""Ownership protocol for the auracoil region of the host document."""

from .markers import (
    BEGIN_MARKER,
    DEFAULT_REGION,
    END_MARKER,
    ensure_region,
    extract_region,
    has_region,
    replace_region,
)

__all__ = [
    "BEGIN_MARKER",
    "DEFAULT_REGION",
    "END_MARKER",
    "ensure_region",
    "extract_region",
    "has_region",
    "replace_region",
]
