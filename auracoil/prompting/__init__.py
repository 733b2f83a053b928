"""Prompt construction for the external reviewer."""

from .review import ReviewPromptBuilder, ReviewPromptInput, build_review_prompt

__all__ = ["ReviewPromptBuilder", "ReviewPromptInput", "build_review_prompt"]
