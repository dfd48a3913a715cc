"""Core data models for VoiceCoder."""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Who authored a message in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ContentPart(BaseModel):
    """One typed part of a structured message body."""

    type: str = "text"  # "text" | "image"
    text: Optional[str] = None
    image_url: Optional[str] = None


class Message(BaseModel):
    """A single conversation turn."""

    role: Role
    content: Union[str, list[ContentPart]]

    @property
    def text(self) -> str:
        """Plain-text view of the content. Image parts are dropped."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(
            part.text for part in self.content if part.type == "text" and part.text
        )


class ChatOptions(BaseModel):
    """Per-request overrides. Unset fields fall back to adapter defaults."""

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    model: Optional[str] = None
    stream: bool = False


class TokenUsage(BaseModel):
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)


class ChatResponse(BaseModel):
    """Unified response from any provider."""

    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str


class ModelConfig(BaseModel):
    """Static metadata for one model offered by a provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    context_window: int


class Pricing(BaseModel):
    """USD per 1k tokens."""

    model_config = ConfigDict(frozen=True)

    input_per_1k: float = 0.0
    output_per_1k: float = 0.0


class FreeTier(BaseModel):
    """Informational free-usage allowance. Never enforced."""

    model_config = ConfigDict(frozen=True)

    tokens_per_month: Optional[float] = None
    requests_per_minute: Optional[int] = None

    @property
    def unlimited(self) -> bool:
        return self.tokens_per_month is not None and math.isinf(self.tokens_per_month)


class ProviderConfig(BaseModel):
    """Static configuration for one backend, keyed by ``id``.

    Instances are frozen; a credential is attached by copying the config
    (``model_copy(update={"credential": ...})``) when an adapter is built.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    credential: Optional[str] = Field(default=None, repr=False)
    base_url: Optional[str] = None
    requires_credential: bool = True
    models: tuple[ModelConfig, ...] = ()
    pricing: Pricing = Field(default_factory=Pricing)
    free_tier: Optional[FreeTier] = None

    def with_credential(self, credential: Optional[str]) -> ProviderConfig:
        return self.model_copy(update={"credential": credential})


class UsageRecord(BaseModel):
    """Accumulated usage for one provider.

    Serialized with camelCase keys (``inputTokens`` ...) in the persisted
    snapshot.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    estimated_cost: float = Field(default=0.0, ge=0.0)


class TokenTotals(BaseModel):
    input: int = 0
    output: int = 0
