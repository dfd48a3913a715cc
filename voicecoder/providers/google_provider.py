"""Google provider (Gemini models)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from contextlib import aclosing
from typing import Any, Optional

from ..models import ChatOptions, ChatResponse, Message, ProviderConfig, Role, TokenUsage
from .base import BaseProvider, ChunkSink

logger = logging.getLogger(__name__)


class GoogleProvider(BaseProvider):
    """Provider for Google Gemini models.

    Uses the google-generativeai SDK chat sessions. Gemini has no system
    role, so the conversation is collapsed into a user/model history and
    the last message is sent as the active turn. The backend reports no
    usage through this path; responses always carry 0/0.
    """

    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        from google import generativeai as genai

        self._genai = genai

    @staticmethod
    def _split_history(messages: Sequence[Message]) -> tuple[list[dict], str]:
        history = [
            {
                "role": "model" if m.role == Role.ASSISTANT else "user",
                "parts": [m.text],
            }
            for m in messages[:-1]
        ]
        return history, messages[-1].text

    def _start_chat(self, model: str, history: list[dict]) -> Any:
        # genai keeps its client configuration process-global; bind this
        # adapter's key right before the model picks up its client.
        self._genai.configure(api_key=self.config.credential)
        gen_model = self._genai.GenerativeModel(model_name=model)
        return gen_model.start_chat(history=history)

    def _generation_config(self, temperature: float, max_tokens: int) -> Any:
        return self._genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        model, temperature, max_tokens = self._resolve_options(options)
        history, last = self._split_history(messages)

        start = time.perf_counter()
        with self._translate_errors("chat"):
            session = self._start_chat(model, history)
            response = await session.send_message_async(
                last,
                generation_config=self._generation_config(temperature, max_tokens),
            )
        elapsed_ms = (time.perf_counter() - start) * 1000

        with self._translate_errors("chat"):
            content = response.text

        logger.info("%s chat completed in %.0fms", self.name, elapsed_ms)
        return ChatResponse(content=content or "", usage=TokenUsage(), model=model)

    async def stream_chat(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkSink,
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        model, temperature, max_tokens = self._resolve_options(options)
        history, last = self._split_history(messages)

        parts: list[str] = []
        with self._translate_errors("stream"):
            session = self._start_chat(model, history)
            response = await session.send_message_async(
                last,
                generation_config=self._generation_config(temperature, max_tokens),
                stream=True,
            )
            async with aclosing(response.__aiter__()) as chunks:
                async for chunk in chunks:
                    text = _chunk_text(chunk)
                    if text:
                        parts.append(text)
                        self._emit(on_chunk, text)

        return ChatResponse(content="".join(parts), usage=TokenUsage(), model=model)


def _chunk_text(chunk: Any) -> str:
    """Text of a streamed chunk; chunks with no text parts yield ''."""
    try:
        return chunk.text or ""
    except ValueError:
        return ""
