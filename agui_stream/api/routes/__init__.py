"""API routes."""

from . import chat, health

__all__ = ["chat", "health"]
