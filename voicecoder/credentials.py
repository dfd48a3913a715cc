"""API key management on top of a host key-value store."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional

from .storage import KeyValueStore

SECRET_STORAGE_KEY = "voicecoder.apiKeys"

# Vendor env vars consulted when no key has been stored
ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
}


class KeyManager:
    """Stores and retrieves per-provider API keys.

    Keys live under ``voicecoder.apiKeys.<provider>`` in the given store.
    Lookups fall back to the vendor environment variable.
    """

    def __init__(
        self,
        secrets: KeyValueStore,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._secrets = secrets
        self._environ = os.environ if environ is None else environ

    @staticmethod
    def _key(provider: str) -> str:
        return f"{SECRET_STORAGE_KEY}.{provider}"

    async def get_api_key(self, provider: str) -> Optional[str]:
        stored = self._secrets.get(self._key(provider))
        if stored:
            return stored
        env_var = ENV_VARS.get(provider)
        if env_var is None:
            return None
        return self._environ.get(env_var) or None

    async def set_api_key(self, provider: str, api_key: str) -> None:
        if not api_key:
            raise ValueError("API key must not be empty")
        await self._secrets.update(self._key(provider), api_key)

    async def delete_api_key(self, provider: str) -> None:
        await self._secrets.update(self._key(provider), None)

    async def has_api_key(self, provider: str) -> bool:
        return bool(await self.get_api_key(provider))
