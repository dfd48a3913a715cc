"""Provider factory: builds adapters and caches them per (id, credential)."""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from typing import Optional

from ..errors import UnknownProviderError
from ..models import ProviderConfig
from .base import BaseProvider
from .registry import get_provider_config

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Optional[str]]


class ProviderFactory:
    """Creates provider adapters and hands back the same instance for the
    same provider id and credential.

    The credential is part of the cache key (``None`` marks "no
    credential"), so swapping API keys never returns an adapter bound to
    the old key. Lookups never suspend, so concurrent callers cannot build
    two adapters for one key.
    """

    def __init__(
        self,
        cache: Optional[MutableMapping[CacheKey, BaseProvider]] = None,
        lookup: Callable[[str], Optional[ProviderConfig]] = get_provider_config,
    ) -> None:
        self._providers: MutableMapping[CacheKey, BaseProvider] = (
            cache if cache is not None else {}
        )
        self._lookup = lookup

    def get_provider(self, provider_id: str, credential: Optional[str] = None) -> BaseProvider:
        """Return the cached adapter for this id/credential, building it on a miss."""
        key = (provider_id, credential or None)
        provider = self._providers.get(key)
        if provider is not None:
            return provider

        config = self._lookup(provider_id)
        if config is None:
            raise UnknownProviderError(provider_id)

        provider = self._build_adapter(config.with_credential(credential or config.credential))
        self._providers[key] = provider
        logger.debug("Created %s adapter (%d cached)", provider_id, len(self._providers))
        return provider

    @staticmethod
    def _build_adapter(config: ProviderConfig) -> BaseProvider:
        if config.id == "anthropic":
            from .anthropic_provider import AnthropicProvider

            return AnthropicProvider(config)

        if config.id == "openai":
            from .openai_provider import OpenAIProvider

            return OpenAIProvider(config)

        if config.id == "google":
            from .google_provider import GoogleProvider

            return GoogleProvider(config)

        if config.id == "ollama":
            from .ollama_provider import OllamaProvider

            return OllamaProvider(config)

        raise UnknownProviderError(config.id)

    def clear_cache(self) -> None:
        """Drop every cached adapter. Use when API keys change."""
        self._providers.clear()

    def remove_provider(self, provider_id: str, credential: Optional[str] = None) -> None:
        """Drop the cached adapter for one id/credential pair, if any."""
        self._providers.pop((provider_id, credential or None), None)

    @property
    def cached_count(self) -> int:
        return len(self._providers)

    async def close(self) -> None:
        """Close all cached provider clients and empty the cache."""
        providers = list(self._providers.values())
        self._providers.clear()
        for provider in providers:
            await provider.close()
