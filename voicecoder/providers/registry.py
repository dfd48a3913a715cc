"""Static table of every known provider.

This table is the only source of pricing, so cost figures are
reproducible from token counts alone.
"""

from __future__ import annotations

import math
from typing import Optional

from ..models import FreeTier, ModelConfig, Pricing, ProviderConfig

PROVIDERS: tuple[ProviderConfig, ...] = (
    ProviderConfig(
        id="anthropic",
        name="Anthropic Claude",
        models=(
            ModelConfig(
                id="claude-sonnet-4-5-20250929",
                name="Claude Sonnet 4.5",
                context_window=200_000,
            ),
            ModelConfig(
                id="claude-opus-4-5-20251101",
                name="Claude Opus 4.5",
                context_window=200_000,
            ),
        ),
        pricing=Pricing(input_per_1k=0.003, output_per_1k=0.015),
        free_tier=FreeTier(tokens_per_month=250_000),
    ),
    ProviderConfig(
        id="openai",
        name="OpenAI",
        models=(
            ModelConfig(id="gpt-4-turbo", name="GPT-4 Turbo", context_window=128_000),
            ModelConfig(id="gpt-4o", name="GPT-4o", context_window=128_000),
            ModelConfig(id="gpt-3.5-turbo", name="GPT-3.5 Turbo", context_window=16_000),
        ),
        pricing=Pricing(input_per_1k=0.01, output_per_1k=0.03),
    ),
    ProviderConfig(
        id="google",
        name="Google Gemini",
        models=(
            ModelConfig(
                id="gemini-2.5-flash",
                name="Gemini 2.5 Flash",
                context_window=1_000_000,
            ),
            ModelConfig(
                id="gemini-2.5-pro",
                name="Gemini 2.5 Pro",
                context_window=1_000_000,
            ),
        ),
        pricing=Pricing(input_per_1k=0.00125, output_per_1k=0.005),
        free_tier=FreeTier(requests_per_minute=15),
    ),
    ProviderConfig(
        id="ollama",
        name="Ollama (Local)",
        base_url="http://localhost:11434",
        requires_credential=False,
        models=(
            ModelConfig(id="codellama", name="CodeLlama 7B", context_window=16_000),
            ModelConfig(
                id="deepseek-coder",
                name="DeepSeek Coder 6.7B",
                context_window=16_000,
            ),
            ModelConfig(
                id="qwen2.5-coder",
                name="Qwen2.5 Coder 7B",
                context_window=32_000,
            ),
        ),
        pricing=Pricing(input_per_1k=0.0, output_per_1k=0.0),
        free_tier=FreeTier(tokens_per_month=math.inf),
    ),
)

_BY_ID = {p.id: p for p in PROVIDERS}


def get_provider_config(provider_id: str) -> Optional[ProviderConfig]:
    """Look up a provider by id. Unknown ids return None."""
    return _BY_ID.get(provider_id)


def get_provider_ids() -> list[str]:
    return [p.id for p in PROVIDERS]
