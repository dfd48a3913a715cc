"""Exception hierarchy for VoiceCoder."""

from __future__ import annotations


class VoiceCoderError(Exception):
    """Base class for every error raised by the core."""


class ConfigurationError(VoiceCoderError):
    """The requested operation cannot start with the current configuration."""


class MissingCredentialError(ConfigurationError):
    """A backend that needs an API key was built without one."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"{provider} API key is required")
        self.provider = provider


class UnknownProviderError(ConfigurationError):
    """No registry entry or adapter exists for a provider id."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Unknown provider: {provider_id}")
        self.provider_id = provider_id


class ProviderError(VoiceCoderError):
    """A backend call failed. ``provider`` names the backend."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider} error: {message}")
        self.provider = provider
        self.detail = message


class TransportError(ProviderError):
    """Network, HTTP or SDK failure while talking to a backend."""


class LocalServerNotRunningError(TransportError):
    """The local inference server refused the connection."""

    def __init__(self, provider: str, base_url: str) -> None:
        super().__init__(
            provider,
            f"server not running at {base_url}. Start it with: ollama serve",
        )
        self.base_url = base_url


class ProtocolError(ProviderError):
    """A backend answered with a shape the adapter cannot parse."""
