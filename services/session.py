"""
Scanner session context: settings, stats and usage counters.

Replaces the extension's global settings object with an explicit context
that is loaded once at session start, handed to every component, and
written back only on an explicit save (settings) or after an enrichment /
proxy call completes (stats, usage counters).

Storage is a simple async key-value store. JsonFileStore persists to a
JSON file on disk; MemoryStore is for tests and throwaway sessions.
"""

import json
import logging
import time
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Any, Optional, Iterable

from config import DEFAULT_SETTINGS, SETTINGS_PATH, QUOTA

logger = logging.getLogger(__name__)


# ============================================================
# Key-value stores
# ============================================================

class KeyValueStore:
    """Async get/set of JSON-serializable values."""

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        raise NotImplementedError

    async def set(self, values: Dict[str, Any]) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(initial or {})

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        return {k: self.data[k] for k in keys if k in self.data}

    async def set(self, values: Dict[str, Any]) -> None:
        self.data.update(values)


class JsonFileStore(KeyValueStore):
    """Whole-file JSON store; every set() rewrites the file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or SETTINGS_PATH)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"[SETTINGS] Failed to read {self.path}: {e}")
            return {}

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        data = self._read()
        return {k: data[k] for k in keys if k in data}

    async def set(self, values: Dict[str, Any]) -> None:
        data = self._read()
        data.update(values)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)


# ============================================================
# Settings & stats
# ============================================================

SETTINGS_KEYS = ("enabled", "minProfitThreshold", "showNegativeProfits", "apiToken", "openaiApiKey")
STATS_KEYS = ("productsAnalyzed", "profitableDeals", "totalPotentialProfit", "apiUsageCount", "lastApiCall")


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    try:
        return Decimal(str(value)) if value is not None and value != "" else default
    except (InvalidOperation, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    """User-facing scanner settings."""
    enabled: bool = True
    min_profit_threshold: Decimal = Decimal(DEFAULT_SETTINGS["minProfitThreshold"])
    show_negative_profits: bool = True
    api_token: str = ""
    openai_api_key: str = ""

    @classmethod
    def from_store(cls, data: Dict[str, Any]) -> "Settings":
        # Missing flags default to on; a zero/blank threshold falls back to the default
        threshold = _to_decimal(data.get("minProfitThreshold"), Decimal(DEFAULT_SETTINGS["minProfitThreshold"]))
        if threshold == 0 and not data.get("minProfitThreshold"):
            threshold = Decimal(DEFAULT_SETTINGS["minProfitThreshold"])
        return cls(
            enabled=data.get("enabled") is not False,
            min_profit_threshold=threshold,
            show_negative_profits=data.get("showNegativeProfits") is not False,
            api_token=(data.get("apiToken") or "").strip(),
            openai_api_key=(data.get("openaiApiKey") or "").strip(),
        )

    def to_store(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "minProfitThreshold": int(self.min_profit_threshold)
            if self.min_profit_threshold == self.min_profit_threshold.to_integral_value()
            else float(self.min_profit_threshold),
            "showNegativeProfits": self.show_negative_profits,
            "apiToken": self.api_token,
            "openaiApiKey": self.openai_api_key,
        }


@dataclass
class SessionStats:
    listings_analyzed: int = 0
    profitable_deals: int = 0
    total_potential_profit: Decimal = Decimal("0")
    api_usage_count: int = 0
    last_api_call: Optional[float] = None

    @classmethod
    def from_store(cls, data: Dict[str, Any]) -> "SessionStats":
        return cls(
            listings_analyzed=int(data.get("productsAnalyzed") or 0),
            profitable_deals=int(data.get("profitableDeals") or 0),
            total_potential_profit=_to_decimal(data.get("totalPotentialProfit"), Decimal("0")),
            api_usage_count=int(data.get("apiUsageCount") or 0),
            last_api_call=data.get("lastApiCall"),
        )

    def to_store(self) -> Dict[str, Any]:
        return {
            "productsAnalyzed": self.listings_analyzed,
            "profitableDeals": self.profitable_deals,
            "totalPotentialProfit": float(self.total_potential_profit),
            "apiUsageCount": self.api_usage_count,
            "lastApiCall": self.last_api_call,
        }


# ============================================================
# Session context
# ============================================================

@dataclass
class SessionContext:
    """
    Explicit replacement for global extension state.

    Lifecycle:
        session = await SessionContext.load(store)   # session start
        session.update_settings(enabled=False)
        await session.save()                         # explicit user save
    """

    store: KeyValueStore
    settings: Settings = field(default_factory=Settings)
    stats: SessionStats = field(default_factory=SessionStats)
    usage_limit: int = QUOTA.monthly_limit

    @classmethod
    async def load(cls, store: KeyValueStore, usage_limit: Optional[int] = None) -> "SessionContext":
        data = await store.get(SETTINGS_KEYS + STATS_KEYS)

        # First run: write defaults
        missing = {k: v for k, v in DEFAULT_SETTINGS.items() if k not in data}
        if missing:
            await store.set(missing)
            data.update(missing)
            logger.info(f"[SETTINGS] Initialized defaults: {sorted(missing)}")

        session = cls(
            store=store,
            settings=Settings.from_store(data),
            stats=SessionStats.from_store(data),
            usage_limit=usage_limit or QUOTA.monthly_limit,
        )
        logger.info(
            f"[SETTINGS] Loaded (enabled={session.settings.enabled}, "
            f"threshold=${session.settings.min_profit_threshold}, "
            f"usage={session.stats.api_usage_count}/{session.usage_limit})"
        )
        return session

    def update_settings(self, **changes: Any) -> Settings:
        """Change settings in memory; call save() to persist."""
        if "min_profit_threshold" in changes:
            changes["min_profit_threshold"] = _to_decimal(
                changes["min_profit_threshold"], Decimal(DEFAULT_SETTINGS["minProfitThreshold"])
            )
        self.settings = replace(self.settings, **changes)
        return self.settings

    async def save(self) -> None:
        await self.store.set(self.settings.to_store())
        logger.info("[SETTINGS] Saved")

    # ============================================================
    # Counters
    # ============================================================

    @property
    def usage_warning(self) -> bool:
        return self.stats.api_usage_count > self.usage_limit * QUOTA.warn_ratio

    async def record_api_call(self) -> None:
        self.stats.api_usage_count += 1
        self.stats.last_api_call = time.time()
        await self.store.set({
            "apiUsageCount": self.stats.api_usage_count,
            "lastApiCall": self.stats.last_api_call,
        })
        if self.usage_warning:
            logger.warning(
                f"[USAGE] {self.stats.api_usage_count}/{self.usage_limit} API calls used this month"
            )

    async def record_enrichment(self, profit: Decimal) -> None:
        """Count a successful enrichment and persist the stats."""
        self.stats.listings_analyzed += 1
        if profit >= self.settings.min_profit_threshold:
            self.stats.profitable_deals += 1
            self.stats.total_potential_profit += profit
        await self.store.set(self.stats.to_store())

    async def reset_stats(self) -> None:
        """Zero the scan counters. API usage is left alone."""
        self.stats.listings_analyzed = 0
        self.stats.profitable_deals = 0
        self.stats.total_potential_profit = Decimal("0")
        await self.store.set({
            "productsAnalyzed": 0,
            "profitableDeals": 0,
            "totalPotentialProfit": 0,
        })
        logger.info("[SETTINGS] Stats reset")
