"""Local Ollama provider.

Talks to an Ollama server's native ``/api/chat`` endpoint. Streamed
replies arrive as newline-delimited JSON, one object per fragment.

Environment variables:
    OLLAMA_BASE_URL: Server base URL (overrides the registry default)
    OLLAMA_TIMEOUT: Request timeout in seconds (default: 300)
"""

from __future__ import annotations

import json
import logging
import math
import os
import time
from collections.abc import Sequence
from typing import Optional

import httpx

from ..errors import (
    ConfigurationError,
    LocalServerNotRunningError,
    ProtocolError,
    TransportError,
)
from ..models import ChatOptions, ChatResponse, Message, ProviderConfig, TokenUsage
from .base import BaseProvider, ChunkSink

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_TIMEOUT = 300.0


class OllamaProvider(BaseProvider):
    """Provider for models served by a local Ollama instance.

    Roles are sent verbatim. Ollama does not report usage on this path,
    so responses always carry 0/0. An ``httpx.AsyncClient`` is created per
    request; ``transport`` lets callers swap the network layer.
    """

    DEFAULT_MODEL = "codellama"

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config)
        self.base_url = (
            os.environ.get("OLLAMA_BASE_URL")
            or config.base_url
            or DEFAULT_BASE_URL
        ).rstrip("/")
        self._timeout = _timeout_from_env()
        self._transport = transport

    def _http_client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self._timeout,
            transport=self._transport,
        )

    def _build_payload(
        self, messages: Sequence[Message], options: Optional[ChatOptions], stream: bool
    ) -> dict:
        model, temperature, max_tokens = self._resolve_options(options)
        return {
            "model": model,
            "messages": [{"role": m.role.value, "content": m.text} for m in messages],
            "stream": stream,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }

    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        payload = self._build_payload(messages, options, stream=False)
        url = f"{self.base_url}/api/chat"

        start = time.perf_counter()
        with self._translate_errors("chat"):
            try:
                async with self._http_client() as client:
                    resp = await client.post(url, json=payload)
            except httpx.ConnectError as e:
                raise LocalServerNotRunningError(self.name, self.base_url) from e
            if resp.status_code >= 400:
                raise TransportError(
                    self.name, f"server returned {resp.status_code}: {resp.text[:500]}"
                )
            data = resp.json()
        elapsed_ms = (time.perf_counter() - start) * 1000

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ProtocolError(self.name, "response has no message content")

        logger.info("%s chat completed in %.0fms", self.name, elapsed_ms)
        return ChatResponse(
            content=content,
            usage=TokenUsage(),
            model=data.get("model") or payload["model"],
        )

    async def stream_chat(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkSink,
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        self._require_messages(messages)
        payload = self._build_payload(messages, options, stream=True)
        url = f"{self.base_url}/api/chat"

        parts: list[str] = []
        model = payload["model"]

        with self._translate_errors("stream"):
            try:
                async with self._http_client() as client:
                    async with client.stream("POST", url, json=payload) as resp:
                        if resp.status_code >= 400:
                            body = (await resp.aread()).decode(errors="replace")
                            raise TransportError(
                                self.name,
                                f"server returned {resp.status_code}: {body[:500]}",
                            )
                        async for line in resp.aiter_lines():
                            data = _parse_line(line)
                            if data is None:
                                continue
                            if data.get("error"):
                                raise TransportError(self.name, str(data["error"]))
                            if data.get("model"):
                                model = data["model"]
                            message = data.get("message")
                            text = message.get("content") if isinstance(message, dict) else None
                            if isinstance(text, str) and text:
                                parts.append(text)
                                self._emit(on_chunk, text)
            except httpx.ConnectError as e:
                raise LocalServerNotRunningError(self.name, self.base_url) from e

        return ChatResponse(content="".join(parts), usage=TokenUsage(), model=model)

    async def check_health(self) -> dict:
        """Check server health and return installed model names.

        Returns dict with 'ok' bool and 'models' list of model names,
        or 'ok': False with 'error' on failure.
        """
        url = f"{self.base_url}/api/tags"
        try:
            async with self._http_client(timeout=10) as client:
                resp = await client.get(url)
                if resp.status_code >= 400:
                    return {"ok": False, "error": f"HTTP {resp.status_code}"}
                data = resp.json()
                models = [m.get("name", "") for m in data.get("models", [])]
                return {"ok": True, "models": models}
        except Exception as e:
            return {"ok": False, "error": str(e)}


def _parse_line(line: str) -> Optional[dict]:
    """Decode one NDJSON line. Blank, malformed and non-object lines give None."""
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Skipping malformed stream line: %.80s", line)
        return None
    if not isinstance(data, dict):
        logger.debug("Skipping non-object stream line: %.80s", line)
        return None
    return data


def _timeout_from_env() -> float:
    """Request timeout from OLLAMA_TIMEOUT; unset or blank means the default."""
    raw = os.environ.get("OLLAMA_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigurationError(
            f"OLLAMA_TIMEOUT must be a positive number of seconds, got {raw!r}"
        )
    return timeout
