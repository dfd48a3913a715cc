"""Tests for the usage ledger."""

from __future__ import annotations

import asyncio
import itertools
import logging

import pytest

from voicecoder.ledger import USAGE_STATE_KEY, UsageLedger
from voicecoder.models import UsageRecord
from voicecoder.storage import JsonFileStore, MemoryStore


@pytest.mark.asyncio
async def test_track_then_zero_track_keeps_totals(ledger):
    await ledger.track("anthropic", 1000, 500, 0.0105)
    await ledger.track("anthropic", 0, 0, 0)

    usage = ledger.get_usage("anthropic")
    assert usage.input_tokens == 1000
    assert usage.output_tokens == 500
    assert usage.estimated_cost == pytest.approx(0.0105)


@pytest.mark.asyncio
async def test_track_returns_updated_record(ledger):
    record = await ledger.track("openai", 10, 20, 0.5)
    assert record == UsageRecord(input_tokens=10, output_tokens=20, estimated_cost=0.5)


@pytest.mark.asyncio
async def test_totals_independent_of_order():
    calls = [
        ("anthropic", 100, 50, 0.1),
        ("openai", 200, 10, 0.2),
        ("anthropic", 5, 5, 0.01),
        ("ollama", 0, 0, 0.0),
    ]
    results = set()
    for order in itertools.permutations(calls):
        ledger = UsageLedger(MemoryStore())
        for call in order:
            await ledger.track(*call)
        totals = ledger.get_total_tokens()
        assert totals.input == 305
        assert totals.output == 65
        results.add(round(ledger.get_total_cost(), 10))
    assert results == {0.31}


@pytest.mark.asyncio
async def test_negative_delta_rejected(ledger):
    with pytest.raises(ValueError, match="non-negative"):
        await ledger.track("openai", -1, 0, 0)
    assert ledger.get_usage() == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("cost", [float("nan"), float("inf")])
async def test_non_finite_cost_rejected(ledger, memory_store, cost):
    await ledger.track("openai", 10, 5, 0.5)

    with pytest.raises(ValueError, match="finite"):
        await ledger.track("openai", 1, 1, cost)

    await ledger.track("openai", 10, 5, 0.5)
    assert ledger.get_total_cost() == pytest.approx(1.0)
    assert memory_store.get(USAGE_STATE_KEY)["openai"]["estimatedCost"] == pytest.approx(1.0)


@pytest.mark.asyncio
@pytest.mark.parametrize("tokens", [1.5, "10", True])
async def test_non_integer_token_delta_rejected(ledger, tokens):
    with pytest.raises(ValueError, match="integers"):
        await ledger.track("openai", tokens, 0, 0.0)
    with pytest.raises(ValueError, match="integers"):
        await ledger.track("openai", 0, tokens, 0.0)
    assert ledger.get_usage() == {}


@pytest.mark.asyncio
async def test_reset_clears_everything(ledger, memory_store):
    await ledger.track("anthropic", 1, 2, 0.3)
    await ledger.track("openai", 4, 5, 0.6)
    await ledger.reset()

    assert ledger.get_total_cost() == 0
    assert ledger.get_usage() == {}
    assert memory_store.get(USAGE_STATE_KEY) == {}


@pytest.mark.asyncio
async def test_reset_provider_leaves_others(ledger):
    await ledger.track("anthropic", 1, 2, 0.3)
    await ledger.track("openai", 4, 5, 0.6)
    await ledger.reset_provider("anthropic")

    assert list(ledger.get_usage()) == ["openai"]
    assert ledger.get_usage("openai").input_tokens == 4
    assert ledger.get_usage("anthropic") == UsageRecord()


def test_unknown_provider_usage_is_zeroed(ledger):
    assert ledger.get_usage("google") == UsageRecord()


@pytest.mark.asyncio
async def test_returned_records_are_copies(ledger):
    await ledger.track("openai", 10, 10, 1.0)
    snapshot = ledger.get_usage("openai")
    snapshot.input_tokens = 999
    ledger.get_usage()["openai"].output_tokens = 999

    assert ledger.get_usage("openai").input_tokens == 10
    assert ledger.get_usage("openai").output_tokens == 10


@pytest.mark.asyncio
async def test_every_mutation_is_persisted(memory_store):
    ledger = UsageLedger(memory_store)
    await ledger.track("anthropic", 1000, 500, 0.0105)
    assert memory_store.get(USAGE_STATE_KEY) == {
        "anthropic": {"inputTokens": 1000, "outputTokens": 500, "estimatedCost": 0.0105}
    }


@pytest.mark.asyncio
async def test_state_survives_restart(memory_store):
    first = UsageLedger(memory_store)
    await first.track("anthropic", 10, 20, 0.25)
    await first.track("ollama", 7, 8, 0.0)

    second = UsageLedger(memory_store)
    assert second.get_usage("anthropic").output_tokens == 20
    assert list(second.get_usage()) == ["anthropic", "ollama"]
    await second.track("anthropic", 1, 1, 0.25)
    assert second.get_usage("anthropic").estimated_cost == pytest.approx(0.5)


def test_malformed_snapshot_entries_are_dropped(caplog):
    store = MemoryStore({
        USAGE_STATE_KEY: {
            "anthropic": {"inputTokens": 5, "outputTokens": 6, "estimatedCost": 0.1},
            "openai": {"inputTokens": "lots"},
        }
    })
    with caplog.at_level(logging.WARNING, logger="voicecoder.ledger"):
        ledger = UsageLedger(store)
    assert list(ledger.get_usage()) == ["anthropic"]
    assert "openai" in caplog.text


def test_non_mapping_snapshot_is_ignored():
    ledger = UsageLedger(MemoryStore({USAGE_STATE_KEY: ["not", "a", "dict"]}))
    assert ledger.get_usage() == {}


class _SlowStore(MemoryStore):
    """Yields to the event loop on every write."""

    async def update(self, key, value):
        await asyncio.sleep(0)
        await super().update(key, value)


@pytest.mark.asyncio
async def test_interleaved_tracks_lose_no_updates():
    store = _SlowStore()
    ledger = UsageLedger(store)
    await asyncio.gather(*(ledger.track("openai", 1, 2, 0.5) for _ in range(50)))

    usage = ledger.get_usage("openai")
    assert usage.input_tokens == 50
    assert usage.output_tokens == 100
    assert usage.estimated_cost == pytest.approx(25.0)
    assert store.get(USAGE_STATE_KEY)["openai"]["inputTokens"] == 50


@pytest.mark.asyncio
async def test_interleaved_tracks_on_disk_match_memory(tmp_path):
    path = tmp_path / "state.json"
    ledger = UsageLedger(JsonFileStore(path))
    await asyncio.gather(
        *(ledger.track(pid, 3, 1, 0.25) for pid in ("openai", "google") * 20)
    )

    reloaded = UsageLedger(JsonFileStore(path))
    assert reloaded.get_usage() == ledger.get_usage()
    assert reloaded.get_total_tokens().input == 120
    assert not path.with_suffix(".json.tmp").exists()


@pytest.mark.asyncio
async def test_summary_format(ledger):
    await ledger.track("anthropic", 1000, 500, 0.0105)
    await ledger.track("ollama", 2500, 1200, 0.0)

    assert ledger.get_summary() == "\n".join([
        "VoiceCoder Usage Summary",
        "=" * 40,
        "",
        "Provider: anthropic",
        "  Input tokens: 1,000",
        "  Output tokens: 500",
        "  Estimated cost: $0.0105",
        "",
        "Provider: ollama",
        "  Input tokens: 2,500",
        "  Output tokens: 1,200",
        "  Estimated cost: $0.0000",
        "",
        "=" * 40,
        "Total input tokens: 3,500",
        "Total output tokens: 1,700",
        "Total estimated cost: $0.0105",
    ])


def test_summary_when_empty(ledger):
    summary = ledger.get_summary()
    assert summary.startswith("VoiceCoder Usage Summary")
    assert "Provider:" not in summary
    assert summary.endswith("Total estimated cost: $0.0000")
