"""Managed marker region inside the host document."""

from __future__ import annotations

from typing import Optional, Tuple

from ..errors import MalformedRegionError, MissingRegionError

BEGIN_MARKER = "<!-- auracoil:begin -->"
END_MARKER = "<!-- auracoil:end -->"

DEFAULT_REGION = (
    f"{BEGIN_MARKER}\n"
    "## GPT Insights (maintained by Auracoil)\n"
    "\n"
    "_No reviews yet. Run `auracoil review` to get the reviewer's analysis._\n"
    f"{END_MARKER}"
)


def _locate(doc: str) -> Optional[Tuple[int, int]]:
    """Return (begin, end) marker offsets, or None when either marker is absent."""
    begin = doc.find(BEGIN_MARKER)
    end = doc.find(END_MARKER)
    if begin == -1 or end == -1:
        return None
    if doc.count(BEGIN_MARKER) > 1 or doc.count(END_MARKER) > 1:
        raise MalformedRegionError("Document contains more than one auracoil region marker pair")
    if end < begin:
        raise MalformedRegionError("Auracoil end marker appears before the begin marker")
    return begin, end


def extract_region(doc: str) -> Optional[str]:
    """Return the trimmed text between the markers, or None when the region is absent."""
    located = _locate(doc)
    if located is None:
        return None
    begin, end = located
    return doc[begin + len(BEGIN_MARKER) : end].strip()


def replace_region(doc: str, new_content: str) -> str:
    """Swap the region body; every byte outside the markers is kept."""
    located = _locate(doc)
    if located is None:
        raise MissingRegionError("Auracoil region markers not found in document")
    begin, end = located
    before = doc[: begin + len(BEGIN_MARKER)]
    after = doc[end:]
    return f"{before}\n{new_content.strip()}\n{after}"


def ensure_region(doc: str) -> str:
    """Append the default region unless a begin marker already exists."""
    if BEGIN_MARKER in doc:
        return doc
    return f"{doc.rstrip()}\n\n{DEFAULT_REGION}\n"


def has_region(doc: str) -> bool:
    return BEGIN_MARKER in doc and END_MARKER in doc


__all__ = [
    "BEGIN_MARKER",
    "DEFAULT_REGION",
    "END_MARKER",
    "ensure_region",
    "extract_region",
    "has_region",
    "replace_region",
]
