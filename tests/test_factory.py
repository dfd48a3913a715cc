"""Tests for the provider factory and its cache."""

from __future__ import annotations

import pytest

from voicecoder.errors import ConfigurationError, MissingCredentialError, UnknownProviderError
from voicecoder.models import ProviderConfig
from voicecoder.providers.anthropic_provider import AnthropicProvider
from voicecoder.providers.factory import ProviderFactory
from voicecoder.providers.ollama_provider import OllamaProvider


def test_same_arguments_return_same_instance():
    factory = ProviderFactory()
    first = factory.get_provider("anthropic", "sk-a")
    second = factory.get_provider("anthropic", "sk-a")
    assert first is second
    assert isinstance(first, AnthropicProvider)


def test_different_credentials_return_distinct_instances():
    factory = ProviderFactory()
    a = factory.get_provider("anthropic", "sk-a")
    b = factory.get_provider("anthropic", "sk-b")
    assert a is not b
    assert a.config.credential == "sk-a"
    assert b.config.credential == "sk-b"
    assert factory.cached_count == 2


def test_no_credential_is_its_own_key():
    factory = ProviderFactory()
    keyless = factory.get_provider("ollama")
    keyed = factory.get_provider("ollama", "default")
    assert isinstance(keyless, OllamaProvider)
    assert keyless is not keyed
    assert factory.get_provider("ollama", "") is keyless


def test_clear_cache_builds_new_instance():
    factory = ProviderFactory()
    first = factory.get_provider("openai", "sk-a")
    factory.clear_cache()
    assert factory.cached_count == 0
    assert factory.get_provider("openai", "sk-a") is not first


def test_remove_provider_evicts_only_that_entry():
    factory = ProviderFactory()
    a = factory.get_provider("openai", "sk-a")
    b = factory.get_provider("openai", "sk-b")
    factory.remove_provider("openai", "sk-a")
    assert factory.get_provider("openai", "sk-b") is b
    assert factory.get_provider("openai", "sk-a") is not a


def test_remove_missing_provider_is_noop():
    factory = ProviderFactory()
    factory.remove_provider("openai", "never-cached")
    assert factory.cached_count == 0


def test_unknown_provider_raises_and_caches_nothing():
    factory = ProviderFactory()
    with pytest.raises(ConfigurationError, match="Unknown provider: nonexistent"):
        factory.get_provider("nonexistent")
    assert factory.cached_count == 0


def test_registry_entry_without_adapter_is_unknown():
    factory = ProviderFactory(lookup=lambda pid: ProviderConfig(id=pid, name="Mystery"))
    with pytest.raises(UnknownProviderError):
        factory.get_provider("mystery", "k")
    assert factory.cached_count == 0


def test_missing_credential_fails_before_caching():
    factory = ProviderFactory()
    with pytest.raises(MissingCredentialError, match="Anthropic Claude API key is required"):
        factory.get_provider("anthropic")
    assert factory.cached_count == 0


def test_config_credential_used_when_none_supplied():
    def lookup(pid):
        return ProviderConfig(id="openai", name="OpenAI", credential="sk-from-config")

    provider = ProviderFactory(lookup=lookup).get_provider("openai")
    assert provider.config.credential == "sk-from-config"


def test_injected_cache_is_used():
    cache: dict = {}
    factory = ProviderFactory(cache=cache)
    provider = factory.get_provider("ollama")
    assert cache == {("ollama", None): provider}


@pytest.mark.asyncio
async def test_close_closes_every_adapter():
    closed = []

    class _Closable:
        def __init__(self, name):
            self.name = name

        async def close(self):
            closed.append(self.name)

    cache = {("a", None): _Closable("a"), ("b", "k"): _Closable("b")}
    factory = ProviderFactory(cache=cache)
    await factory.close()
    assert sorted(closed) == ["a", "b"]
    assert factory.cached_count == 0
