"""Command surface the host binds to: select a provider, ask about code,
show usage.

Usage:
    async with CodeAssistant(config, state, keys) as assistant:
        answer = await assistant.ask_about_code(code, "What does this do?")
        print(answer.document)
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from .config import AssistantConfig
from .credentials import KeyManager
from .errors import MissingCredentialError, UnknownProviderError
from .ledger import UsageLedger
from .models import ChatOptions, ChatResponse, ProviderConfig
from .prompts import build_code_question_messages, render_answer
from .providers.base import BaseProvider, ChunkSink
from .providers.factory import ProviderFactory
from .providers.registry import PROVIDERS, get_provider_config
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

SELECTED_PROVIDER_KEY = "voicecoder.provider"


class Answer(BaseModel):
    """Result of one ask-about-code round-trip."""

    provider_id: str
    provider_name: str
    response: ChatResponse
    cost: float
    document: str


class CodeAssistant:
    """Composes the factory, key manager and usage ledger for the host."""

    def __init__(
        self,
        config: AssistantConfig,
        state: KeyValueStore,
        keys: KeyManager,
        factory: Optional[ProviderFactory] = None,
        ledger: Optional[UsageLedger] = None,
    ) -> None:
        self.config = config
        self._state = state
        self.keys = keys
        self.factory = factory or ProviderFactory()
        self.ledger = ledger or UsageLedger(state)

    async def __aenter__(self) -> CodeAssistant:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.factory.close()

    @property
    def selected_provider(self) -> str:
        return self._state.get(SELECTED_PROVIDER_KEY) or self.config.provider

    @staticmethod
    def list_providers() -> list[ProviderConfig]:
        return list(PROVIDERS)

    async def select_provider(
        self, provider_id: str, api_key: Optional[str] = None
    ) -> ProviderConfig:
        """Make ``provider_id`` the default and optionally store its key.

        A replaced key evicts the adapter bound to the old one.
        """
        provider_config = get_provider_config(provider_id)
        if provider_config is None:
            raise UnknownProviderError(provider_id)

        if api_key:
            old_key = await self.keys.get_api_key(provider_id)
            if old_key and old_key != api_key:
                self.factory.remove_provider(provider_id, old_key)
            await self.keys.set_api_key(provider_id, api_key)

        await self._state.update(SELECTED_PROVIDER_KEY, provider_id)
        logger.info("Provider set to %s", provider_config.name)
        return provider_config

    async def get_provider(self, provider_id: Optional[str] = None) -> BaseProvider:
        """Resolve the adapter for ``provider_id`` (or the selected one)."""
        provider_id = provider_id or self.selected_provider
        provider_config = get_provider_config(provider_id)
        if provider_config is None:
            raise UnknownProviderError(provider_id)

        api_key = None
        if provider_config.requires_credential:
            api_key = await self.keys.get_api_key(provider_id)
            if not api_key:
                raise MissingCredentialError(provider_config.name)
        return self.factory.get_provider(provider_id, api_key)

    async def ask_about_code(
        self,
        code: str,
        question: str,
        language: str = "",
        provider_id: Optional[str] = None,
        on_chunk: Optional[ChunkSink] = None,
    ) -> Answer:
        """Ask a question about ``code`` and record the usage.

        Streams through ``on_chunk`` when given, otherwise makes one
        round-trip.
        """
        if not code.strip():
            raise ValueError("No code selected")
        if not question.strip():
            raise ValueError("No question given")

        provider = await self.get_provider(provider_id)
        messages = build_code_question_messages(code, question, language)
        options = ChatOptions(
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            stream=on_chunk is not None,
        )

        if on_chunk is not None:
            response = await provider.stream_chat(messages, on_chunk, options)
        else:
            response = await provider.chat(messages, options)

        cost = provider.estimate_cost(
            response.usage.input_tokens, response.usage.output_tokens
        )
        await self.ledger.track(
            provider.id,
            response.usage.input_tokens,
            response.usage.output_tokens,
            cost,
        )

        return Answer(
            provider_id=provider.id,
            provider_name=provider.name,
            response=response,
            cost=cost,
            document=render_answer(question, response, provider.name, cost),
        )

    def show_usage(self) -> str:
        return self.ledger.get_summary()

    async def reset_usage(self, provider_id: Optional[str] = None) -> None:
        if provider_id:
            await self.ledger.reset_provider(provider_id)
        else:
            await self.ledger.reset()
