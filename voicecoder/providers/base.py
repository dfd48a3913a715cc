"""Abstract provider interface for LLM backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Optional

from ..errors import MissingCredentialError, ProtocolError, TransportError, VoiceCoderError
from ..models import ChatOptions, ChatResponse, Message, ModelConfig, ProviderConfig

ChunkSink = Callable[[str], None]

DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.7


class BaseProvider(ABC):
    """Abstract interface all providers implement.

    Subclasses translate the uniform ``Message`` list into their vendor's
    wire format. Anything vendor specific (system prompt placement, token
    accounting, stream framing) stays inside the subclass.
    """

    # Used only when the registry entry lists no models.
    DEFAULT_MODEL: str = ""

    def __init__(self, config: ProviderConfig) -> None:
        if config.requires_credential and not config.credential:
            raise MissingCredentialError(config.name)
        self.config = config

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        """Send a chat request. Returns unified ChatResponse."""
        ...

    @abstractmethod
    async def stream_chat(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkSink,
        options: Optional[ChatOptions] = None,
    ) -> ChatResponse:
        """Stream a chat request, pushing text fragments to ``on_chunk`` in
        arrival order. Resolves to the same shape as ``chat``; usage is 0/0
        when the backend does not report it while streaming."""
        ...

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Estimate cost in USD from token counts."""
        pricing = self.config.pricing
        return (
            input_tokens / 1000 * pricing.input_per_1k
            + output_tokens / 1000 * pricing.output_per_1k
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def models(self) -> tuple[ModelConfig, ...]:
        return self.config.models

    def has_free_tier(self) -> bool:
        return self.config.free_tier is not None

    @property
    def default_model(self) -> str:
        if self.config.models:
            return self.config.models[0].id
        return self.DEFAULT_MODEL

    def _resolve_options(self, options: Optional[ChatOptions]) -> tuple[str, float, int]:
        """Return (model, temperature, max_tokens) with defaults applied."""
        options = options or ChatOptions()
        model = options.model or self.default_model
        temperature = (
            options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
        )
        max_tokens = options.max_tokens or DEFAULT_MAX_TOKENS
        return model, temperature, max_tokens

    @staticmethod
    def _require_messages(messages: Sequence[Message]) -> None:
        if not messages:
            raise ValueError("At least one message is required")

    @staticmethod
    def _emit(on_chunk: ChunkSink, text: str) -> None:
        """Hand one fragment to the caller. Sink failures skip translation."""
        try:
            on_chunk(text)
        except Exception as e:
            raise _SinkError(e) from e

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        """Rewrap SDK / transport / parsing failures with this backend's name.

        Exceptions raised by the caller's chunk sink propagate unchanged.
        """
        try:
            yield
        except _SinkError as e:
            raise e.error from None
        except VoiceCoderError:
            raise
        except (KeyError, IndexError, AttributeError, TypeError, ValueError) as e:
            raise ProtocolError(self.name, f"unexpected {action} response: {e}") from e
        except Exception as e:
            raise TransportError(self.name, f"{action} failed: {e}") from e

    async def close(self) -> None:
        """Cleanup async client resources. Override if needed."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r})"


class _SinkError(Exception):
    """Carries an exception raised by a chunk sink past error translation."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error
