"""LLM access (Anthropic Claude) for response generation."""

from .llm_provider import ILLMProvider, LLMProvider

__all__ = ["ILLMProvider", "LLMProvider"]
