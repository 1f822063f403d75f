"""Prompt rendering for provider calls.

Provides ``PromptManager``, a Jinja2-based template engine that renders the
audit, extraction, lookup, advisor and repair prompts.
"""

from legal_intake.prompt.manager import PromptManager

__all__ = ["PromptManager"]
