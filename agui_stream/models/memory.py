"""Agent memory data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class MemoryEntry:
    """One remembered query."""

    question: str
    used_sources: list[str]
    timestamp: datetime


@dataclass
class AgentMemory:
    """What the agent remembers about one requester."""

    user_id: str
    preferences: dict = field(default_factory=dict)
    recent_queries: list[MemoryEntry] = field(default_factory=list)
    updated_at: datetime | None = None
