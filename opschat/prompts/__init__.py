"""Prompt template loading."""

from opschat.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
