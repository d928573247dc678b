"""Prompt construction for model-backed test generation."""

from .builder import PromptBuilder, PromptMessage, PromptRequest, target_case_count

__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest", "target_case_count"]
