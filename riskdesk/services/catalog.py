from dataclasses import fields
from typing import Dict, List, Optional, Union

from riskdesk.core.exceptions import ValidationError
from riskdesk.infrastructure.mock_market import (
    HISTORY_EVENTS,
    MARKETS,
    REVERSION_SIGNALS,
    SHORT_TERM_SIGNALS,
    HistoryEvent,
    HistoryEventType,
    MarketData,
    Signal,
)

MARKET_COLUMNS = tuple(f.name for f in fields(MarketData))

class CatalogService:
    """Read-only views over the static market, signal and event tables."""

    @staticmethod
    def markets(
        quote: str = "USDT",
        search: str = "",
        sort_key: str = "volume",
        descending: bool = True,
    ) -> List[MarketData]:
        quote = quote.upper()
        if quote not in MARKETS:
            raise ValidationError(f"Unknown quote currency: {quote}")
        if sort_key not in MARKET_COLUMNS:
            raise ValidationError(f"Cannot sort markets by {sort_key!r}")

        term = search.strip().lower()
        rows = [m for m in MARKETS[quote] if term in m.pair.lower()]
        return sorted(rows, key=lambda m: getattr(m, sort_key), reverse=descending)

    @staticmethod
    def signals() -> Dict[str, List[Signal]]:
        return {
            "Señales Reversión (1h)": list(REVERSION_SIGNALS),
            "Señales Velas Cortas (5-15m)": list(SHORT_TERM_SIGNALS),
        }

    @staticmethod
    def history(
        event_type: Optional[Union[HistoryEventType, str]] = None,
        search: str = "",
        descending: bool = True,
    ) -> List[HistoryEvent]:
        if event_type in (None, "", "All"):
            wanted = None
        else:
            try:
                wanted = HistoryEventType(event_type)
            except ValueError:
                raise ValidationError(f"Unknown event type: {event_type}")

        term = search.strip().lower()
        rows = [
            e for e in HISTORY_EVENTS
            if (wanted is None or e.type is wanted) and term in e.description.lower()
        ]
        return sorted(rows, key=lambda e: e.timestamp, reverse=descending)
