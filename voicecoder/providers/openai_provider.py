"""OpenAI provider (GPT models)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Optional

from ..models import ChatOptions, ChatResponse, Message, ProviderConfig, TokenUsage
from .base import BaseProvider, ChunkSink

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    """Provider for OpenAI models. Direct OpenAI-compatible API.

    System messages travel as ordinary messages. Token usage is only
    available on non-streamed responses; streamed calls report 0/0.
    """

    DEFAULT_MODEL = "gpt-4-turbo"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        import openai

        kwargs: dict = {"api_key": config.credential}
        if config.base_url:
            kwargs["base_url"] = config.base_url
        self._client = openai.AsyncOpenAI(**kwargs)

    def _build_request(
        self, messages: Sequence[Message], options: Optional[ChatOptions]
    ) -> dict:
        model, temperature, max_tokens = self._resolve_options(options)
        return {
            "model": model,
            "messages": [{"role": m.role.value, "content": m.text} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        kwargs = self._build_request(messages, options)

        start = time.perf_counter()
        with self._translate_errors("chat"):
            response = await self._client.chat.completions.create(**kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1000

        with self._translate_errors("chat"):
            choice = response.choices[0]
            content = choice.message.content or ""
            usage = TokenUsage()
            if response.usage:
                usage = TokenUsage(
                    input_tokens=response.usage.prompt_tokens or 0,
                    output_tokens=response.usage.completion_tokens or 0,
                )

        logger.info(
            "%s chat completed in %.0fms (%d in / %d out)",
            self.name, elapsed_ms, usage.input_tokens, usage.output_tokens,
        )
        return ChatResponse(
            content=content,
            usage=usage,
            model=response.model or kwargs["model"],
        )

    async def stream_chat(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkSink,
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        kwargs = self._build_request(messages, options)

        parts: list[str] = []
        model = kwargs["model"]

        with self._translate_errors("stream"):
            stream = await self._client.chat.completions.create(**kwargs, stream=True)
            async with stream:
                async for chunk in stream:
                    if chunk.model:
                        model = chunk.model
                    if not chunk.choices:
                        continue
                    text = chunk.choices[0].delta.content
                    if text:
                        parts.append(text)
                        self._emit(on_chunk, text)

        # No usage is sent on streamed completions
        return ChatResponse(content="".join(parts), usage=TokenUsage(), model=model)

    async def close(self) -> None:
        await self._client.close()
