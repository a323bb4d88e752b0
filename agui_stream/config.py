"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "agent_memory.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

KNOWN_DATA_SOURCES = ("sql", "vector", "memory")


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ModelSettings:
    """Model names per task."""

    reasoning: str = "claude-3-5-sonnet-20241022"
    generation: str = "claude-3-5-haiku-20241022"


@dataclass
class AgentConfig:
    """Capabilities and switches of the chat agent."""

    name: str = "Velocity Fibre Assistant"
    description: str = (
        "An AI assistant that helps answer questions about Velocity Fibre data"
    )
    models: ModelSettings = field(default_factory=ModelSettings)
    data_source_priority: list[str] = field(
        default_factory=lambda: list(KNOWN_DATA_SOURCES)
    )
    memory_enabled: bool = True
    streaming_enabled: bool = True
    max_tokens: int = 500

    def model_for_task(self, task: str) -> str:
        """Get the model to use for a task ("reasoning" or "generation")."""
        return getattr(self.models, task)


def load_agent_config() -> AgentConfig:
    """Build AgentConfig from environment variables."""
    config = AgentConfig(
        memory_enabled=env_flag("AGENT_MEMORY_ENABLED", True),
        streaming_enabled=env_flag("AGENT_STREAMING_ENABLED", True),
    )

    sources = os.getenv("AGENT_DATA_SOURCES")
    if sources:
        priority = [s.strip().lower() for s in sources.split(",") if s.strip()]
        unknown = [s for s in priority if s not in KNOWN_DATA_SOURCES]
        if unknown:
            raise ValueError(f"Unknown data sources in AGENT_DATA_SOURCES: {unknown}")
        config.data_source_priority = priority

    reasoning_model = os.getenv("AGENT_REASONING_MODEL")
    if reasoning_model:
        config.models.reasoning = reasoning_model

    max_tokens = os.getenv("AGENT_MAX_TOKENS")
    if max_tokens:
        config.max_tokens = int(max_tokens)

    return config
