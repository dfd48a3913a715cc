"""Anthropic provider (Claude models)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Optional

from ..models import ChatOptions, ChatResponse, Message, ProviderConfig, Role, TokenUsage
from .base import BaseProvider, ChunkSink

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseProvider):
    """Provider for Anthropic Claude models.

    Handles the Anthropic-specific system message extraction
    (system is a top-level param, not a message role). Usage is exact in
    both modes: while streaming, ``message_start`` carries the input count
    and ``message_delta`` the running output count.
    """

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        import anthropic

        self._client = anthropic.AsyncAnthropic(api_key=config.credential)

    def _build_request(
        self, messages: Sequence[Message], options: Optional[ChatOptions]
    ) -> dict:
        model, temperature, max_tokens = self._resolve_options(options)

        # System turns are joined into the top-level `system` param
        system_parts = [m.text for m in messages if m.role == Role.SYSTEM]
        chat_messages = [
            {"role": m.role.value, "content": m.text}
            for m in messages
            if m.role != Role.SYSTEM
        ]
        return {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": "\n".join(system_parts),
            "messages": chat_messages,
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
            response = await self._client.messages.create(**kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1000

        with self._translate_errors("chat"):
            content = "".join(
                block.text for block in response.content if block.type == "text"
            )
            usage = TokenUsage()
            if response.usage:
                usage = TokenUsage(
                    input_tokens=response.usage.input_tokens or 0,
                    output_tokens=response.usage.output_tokens or 0,
                )
            model = response.model or kwargs["model"]

        logger.info(
            "%s chat completed in %.0fms (%d in / %d out)",
            self.name, elapsed_ms, usage.input_tokens, usage.output_tokens,
        )
        return ChatResponse(content=content, usage=usage, model=model)

    async def stream_chat(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkSink,
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        kwargs = self._build_request(messages, options)

        parts: list[str] = []
        input_tokens = 0
        output_tokens = 0
        model = kwargs["model"]

        with self._translate_errors("stream"):
            stream = await self._client.messages.create(**kwargs, stream=True)
            async with stream:
                async for event in stream:
                    if event.type == "message_start":
                        input_tokens = event.message.usage.input_tokens or 0
                        output_tokens = event.message.usage.output_tokens or 0
                        model = event.message.model or model
                    elif event.type == "content_block_delta":
                        if event.delta.type == "text_delta" and event.delta.text:
                            parts.append(event.delta.text)
                            self._emit(on_chunk, event.delta.text)
                    elif event.type == "message_delta":
                        # output_tokens here is cumulative, not an increment
                        output_tokens = event.usage.output_tokens or output_tokens

        return ChatResponse(
            content="".join(parts),
            usage=TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens),
            model=model,
        )

    async def close(self) -> None:
        await self._client.close()
