"""Shared test fixtures."""

from __future__ import annotations

import pytest

from voicecoder.ledger import UsageLedger
from voicecoder.models import Message
from voicecoder.providers.registry import get_provider_config
from voicecoder.storage import MemoryStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep real keys and endpoints out of every test."""
    for var in (
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "GOOGLE_API_KEY",
        "OLLAMA_BASE_URL",
        "OLLAMA_TIMEOUT",
        "VOICECODER_PROVIDER",
        "VOICECODER_MODEL",
        "VOICECODER_STATE_DIR",
    ):
        monkeypatch.delenv(var, raising=False)


def bound_config(provider_id: str, credential: str | None = "test-key"):
    """Registry config for ``provider_id`` with a credential attached."""
    return get_provider_config(provider_id).with_credential(credential)


class ChunkCollector:
    """Sink that records every streamed fragment."""

    def __init__(self):
        self.chunks: list[str] = []

    def __call__(self, text: str) -> None:
        self.chunks.append(text)


@pytest.fixture
def collector():
    return ChunkCollector()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def ledger(memory_store):
    return UsageLedger(memory_store)


@pytest.fixture
def conversation():
    """System prompt, one exchange, and a follow-up question."""
    return [
        Message(role="system", content="You are a code reviewer."),
        Message(role="user", content="What does `x += 1` do?"),
        Message(role="assistant", content="It increments x."),
        Message(role="user", content="And `x -= 1`?"),
    ]
