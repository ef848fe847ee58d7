"""
Shared fixtures for the test suite.
"""

import os

# Must run before app.config builds its settings
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import httpx
import pytest

from app.core.llm_engine import LLMEngine


@pytest.fixture
def chat_response():
    """Factory for chat-completion responses around a message content."""
    def _build(content, status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            json={"choices": [{"message": {"role": "assistant", "content": content}}]}
        )
    return _build


@pytest.fixture
def make_engine():
    """Factory for engines wired to an in-process mock transport."""
    def _build(handler, api_key: str = "test-key") -> LLMEngine:
        return LLMEngine(
            api_key=api_key,
            base_url="https://llm.test/api/v1",
            model="test-model",
            transport=httpx.MockTransport(handler)
        )
    return _build
