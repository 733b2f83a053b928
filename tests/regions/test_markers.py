"""Tests for the auracoil region ownership protocol."""

from __future__ import annotations

import pytest

from auracoil.errors import MalformedRegionError, MissingRegionError, RegionError
from auracoil.regions.markers import (
    BEGIN_MARKER,
    DEFAULT_REGION,
    END_MARKER,
    ensure_region,
    extract_region,
    replace_region,
)

DOC = (
    "# Agents\n\nHand-written intro.\n\n"
    f"{BEGIN_MARKER}\n  old insights  \n{END_MARKER}\n\n## Footer\nKeep me.\n"
)


def test_extract_region_returns_trimmed_body() -> None:
    assert extract_region(DOC) == "old insights"


@pytest.mark.parametrize(
    "doc",
    [
        "# No markers",
        f"# Only begin\n{BEGIN_MARKER}\ncontent",
        f"# Only end\ncontent\n{END_MARKER}",
    ],
)
def test_extract_region_returns_none_without_both_markers(doc: str) -> None:
    assert extract_region(doc) is None


def test_replace_region_preserves_everything_outside_markers() -> None:
    updated = replace_region(DOC, "\n\nnew insights\n\n")

    begin = DOC.index(BEGIN_MARKER) + len(BEGIN_MARKER)
    end = DOC.index(END_MARKER)
    assert updated == DOC[:begin] + "\nnew insights\n" + DOC[end:]
    assert extract_region(updated) == "new insights"


def test_replace_region_is_idempotent() -> None:
    once = replace_region(DOC, "same")

    assert replace_region(once, "same") == once


@pytest.mark.parametrize(
    "doc",
    [
        f"# A\n\n{BEGIN_MARKER}\nbody text\n{END_MARKER}\n\nfooter\n",
        f"{BEGIN_MARKER}\nfirst line\n\nsecond line\n{END_MARKER}",
        f"intro\n{BEGIN_MARKER}\n- item\n{END_MARKER}\ntrailer\n\n",
        DEFAULT_REGION,
    ],
)
def test_replacing_region_with_its_own_body_reproduces_document(doc: str) -> None:
    assert replace_region(doc, extract_region(doc)) == doc


def test_replace_region_without_markers_raises() -> None:
    with pytest.raises(MissingRegionError) as excinfo:
        replace_region("# Plain document\n", "content")

    assert excinfo.value.hint


@pytest.mark.parametrize(
    "doc",
    [
        f"{END_MARKER}\nbody\n{BEGIN_MARKER}\n",
        f"{BEGIN_MARKER}\na\n{END_MARKER}\n{BEGIN_MARKER}\nb\n{END_MARKER}\n",
    ],
)
def test_malformed_regions_are_rejected(doc: str) -> None:
    with pytest.raises(MalformedRegionError):
        extract_region(doc)
    with pytest.raises(RegionError):
        replace_region(doc, "content")


def test_ensure_region_appends_default_region() -> None:
    result = ensure_region("# Agents\n\nIntro.\n\n\n")

    assert result == f"# Agents\n\nIntro.\n\n{DEFAULT_REGION}\n"
    assert extract_region(result).startswith("## GPT Insights (maintained by Auracoil)")


def test_ensure_region_is_idempotent() -> None:
    once = ensure_region("# Agents\n")

    assert ensure_region(once) == once


def test_ensure_region_leaves_begin_only_document_untouched() -> None:
    doc = f"# Agents\n{BEGIN_MARKER}\nunterminated\n"

    assert ensure_region(doc) == doc
    with pytest.raises(MissingRegionError):
        replace_region(ensure_region(doc), "content")
