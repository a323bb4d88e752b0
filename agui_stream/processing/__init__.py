"""Processing module."""

from .processor import (
    FALLBACK_ANSWER,
    NO_HOOKS,
    IDataSource,
    NullHooks,
    QueryProcessor,
    SourceResult,
    build_prompt,
)

__all__ = [
    "FALLBACK_ANSWER",
    "NO_HOOKS",
    "IDataSource",
    "NullHooks",
    "QueryProcessor",
    "SourceResult",
    "build_prompt",
]
