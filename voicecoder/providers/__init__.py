"""LLM provider adapters, registry and factory."""

from .base import BaseProvider, ChunkSink
from .factory import ProviderFactory
from .registry import PROVIDERS, get_provider_config, get_provider_ids

__all__ = [
    "BaseProvider",
    "ChunkSink",
    "PROVIDERS",
    "ProviderFactory",
    "get_provider_config",
    "get_provider_ids",
]
