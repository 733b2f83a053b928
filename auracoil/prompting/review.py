"""Builds the reviewer prompt and region Markdown from Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence

from jinja2 import Environment, FileSystemLoader

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")

MAX_CHANGED_FILES = 30
MAX_COMMITS = 15
MAX_SUGGESTIONS = 10


@dataclass
class ReviewPromptInput:
    """Evidence assembled for a single review."""

    region_text: str
    repo_name: str
    changed_files: List[str] = field(default_factory=list)
    commit_messages: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    document_name: str = "AGENTS.md"


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return a Jinja environment searching `templates_dir` before the bundled templates."""
    directories: List[str] = []
    if templates_dir:
        directories.append(str(templates_dir))
    if str(_DEFAULT_TEMPLATES) not in directories:
        directories.append(str(_DEFAULT_TEMPLATES))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


class ReviewPromptBuilder:
    """Renders the critic prompt sent to the external reviewer."""

    TEMPLATE = "review.md.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = create_environment(templates_dir)

    def build(self, prompt_input: ReviewPromptInput) -> str:
        template = self._env.get_template(self.TEMPLATE)
        return template.render(
            region_text=prompt_input.region_text,
            repo_name=prompt_input.repo_name,
            changed_files=prompt_input.changed_files,
            commit_messages=prompt_input.commit_messages,
            languages=prompt_input.languages,
            document_name=prompt_input.document_name,
            max_changed_files=MAX_CHANGED_FILES,
            max_commits=MAX_COMMITS,
            max_suggestions=MAX_SUGGESTIONS,
        ).strip()


def build_review_prompt(
    region_text: str,
    *,
    repo_name: str,
    changed_files: Sequence[str] = (),
    commit_messages: Sequence[str] = (),
    languages: Sequence[str] = (),
    document_name: str = "AGENTS.md",
) -> str:
    return ReviewPromptBuilder().build(
        ReviewPromptInput(
            region_text=region_text,
            repo_name=repo_name,
            changed_files=list(changed_files),
            commit_messages=list(commit_messages),
            languages=list(languages),
            document_name=document_name,
        )
    )


def render_template(name: str, **context: Any) -> str:
    return create_environment().get_template(name).render(**context).strip()


__all__ = [
    "ReviewPromptBuilder",
    "ReviewPromptInput",
    "build_review_prompt",
    "create_environment",
    "render_template",
]
