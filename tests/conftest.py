"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def agent_config():
    """Agent configuration with defaults, independent of the environment."""
    from agui_stream.config import AgentConfig

    return AgentConfig()


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from agui_stream.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def mock_llm():
    """Create mock LLM provider with a streamed answer."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")

    async def stream(**kwargs):
        for chunk in ["Test ", "response"]:
            yield chunk

    llm.stream = Mock(side_effect=stream)
    return llm


@pytest.fixture
def recorded_hooks():
    """Hooks that record every call and hand out sequential tool call ids."""
    from helpers import RecordingHooks

    return RecordingHooks()
