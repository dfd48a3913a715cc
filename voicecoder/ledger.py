"""Usage ledger: per-provider token and cost totals that survive restarts."""

from __future__ import annotations

import logging
import math
from typing import Optional, Union

from pydantic import ValidationError

from .models import TokenTotals, UsageRecord
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

USAGE_STATE_KEY = "voicecoder.usage"
SUMMARY_RULE = "=" * 40


class UsageLedger:
    """Accumulates token usage and estimated cost per provider id.

    The mapping is loaded from ``store`` once and written back in full after
    every mutation. Each mutation finishes updating memory before it awaits
    the store, so interleaved ``track`` calls never lose updates.
    """

    def __init__(self, store: KeyValueStore, key: str = USAGE_STATE_KEY) -> None:
        self._store = store
        self._key = key
        self._usage: dict[str, UsageRecord] = {}
        self._load()

    def _load(self) -> None:
        stored = self._store.get(self._key)
        if not stored:
            return
        if not isinstance(stored, dict):
            logger.warning("Ignoring usage snapshot of type %s", type(stored).__name__)
            return
        for provider_id, raw in stored.items():
            try:
                self._usage[provider_id] = UsageRecord.model_validate(raw)
            except ValidationError as e:
                logger.warning("Dropping unreadable usage entry for %s: %s", provider_id, e)

    def _snapshot(self) -> dict[str, dict]:
        return {
            provider_id: record.model_dump(by_alias=True)
            for provider_id, record in self._usage.items()
        }

    async def _persist(self) -> None:
        await self._store.update(self._key, self._snapshot())

    async def track(
        self,
        provider_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> UsageRecord:
        """Add one request's usage to ``provider_id`` and persist.

        Returns a copy of the updated record.
        """
        for tokens in (input_tokens, output_tokens):
            if isinstance(tokens, bool) or not isinstance(tokens, int):
                raise ValueError(f"Token deltas must be integers, got {tokens!r}")
        if not math.isfinite(cost):
            raise ValueError(f"Cost delta must be finite, got {cost!r}")
        if input_tokens < 0 or output_tokens < 0 or cost < 0:
            raise ValueError("Usage deltas must be non-negative")

        record = self._usage.setdefault(provider_id, UsageRecord())
        record.input_tokens += input_tokens
        record.output_tokens += output_tokens
        record.estimated_cost += cost
        updated = record.model_copy()

        await self._persist()
        return updated

    def get_usage(
        self, provider_id: Optional[str] = None
    ) -> Union[UsageRecord, dict[str, UsageRecord]]:
        """One provider's record (zeroed if never tracked) or all records.

        Returned records are copies; mutating them does not touch the ledger.
        """
        if provider_id is not None:
            record = self._usage.get(provider_id)
            return record.model_copy() if record else UsageRecord()
        return {pid: record.model_copy() for pid, record in self._usage.items()}

    def get_total_cost(self) -> float:
        return sum(record.estimated_cost for record in self._usage.values())

    def get_total_tokens(self) -> TokenTotals:
        return TokenTotals(
            input=sum(record.input_tokens for record in self._usage.values()),
            output=sum(record.output_tokens for record in self._usage.values()),
        )

    async def reset(self) -> None:
        """Clear all usage data."""
        self._usage = {}
        await self._persist()
        logger.info("Usage data reset")

    async def reset_provider(self, provider_id: str) -> None:
        """Clear usage data for one provider."""
        self._usage.pop(provider_id, None)
        await self._persist()
        logger.info("Usage data reset for %s", provider_id)

    def get_summary(self) -> str:
        """Human-readable usage report."""
        lines = ["VoiceCoder Usage Summary", SUMMARY_RULE]

        for provider_id, record in self._usage.items():
            lines.append("")
            lines.append(f"Provider: {provider_id}")
            lines.append(f"  Input tokens: {record.input_tokens:,}")
            lines.append(f"  Output tokens: {record.output_tokens:,}")
            lines.append(f"  Estimated cost: ${record.estimated_cost:.4f}")

        totals = self.get_total_tokens()
        lines.append("")
        lines.append(SUMMARY_RULE)
        lines.append(f"Total input tokens: {totals.input:,}")
        lines.append(f"Total output tokens: {totals.output:,}")
        lines.append(f"Total estimated cost: ${self.get_total_cost():.4f}")

        return "\n".join(lines)
