"""VoiceCoder: one interface over several LLM backends, with a usage ledger."""

from .errors import (
    ConfigurationError,
    LocalServerNotRunningError,
    MissingCredentialError,
    ProtocolError,
    ProviderError,
    TransportError,
    UnknownProviderError,
    VoiceCoderError,
)
from .ledger import UsageLedger
from .models import ChatOptions, ChatResponse, Message, Role, TokenUsage

__all__ = [
    "ChatOptions",
    "ChatResponse",
    "ConfigurationError",
    "LocalServerNotRunningError",
    "Message",
    "MissingCredentialError",
    "ProtocolError",
    "ProviderError",
    "Role",
    "TokenUsage",
    "TransportError",
    "UnknownProviderError",
    "UsageLedger",
    "VoiceCoderError",
]
