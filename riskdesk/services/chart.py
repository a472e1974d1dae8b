import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from riskdesk.core.exceptions import ValidationError

EMBED_SCRIPT_URL = "https://s3.tradingview.com/external-embedding/embed-widget-advanced-chart.js"

class ChartInterval(str, Enum):
    """Interval codes understood by the embedded chart widget."""
    HOUR = "60"
    DAY = "D"
    WEEK = "W"
    MONTH = "M"

    @property
    def label(self) -> str:
        return {"60": "1h", "D": "24h", "W": "7d", "M": "30d"}[self.value]

    @classmethod
    def parse(cls, value: str) -> "ChartInterval":
        """Accepts a widget code ("D") or a label ("24h", "1D")."""
        aliases = {"1h": "60", "24h": "D", "1d": "D", "7d": "W", "1w": "W", "30d": "M", "1m": "M"}
        code = aliases.get(value.strip().lower(), value.strip().upper())
        try:
            return cls(code)
        except ValueError:
            raise ValidationError(f"Unknown chart interval: {value}")

def _container_id() -> str:
    return f"tradingview_widget_{uuid.uuid4().hex[:9]}"

@dataclass(frozen=True)
class ChartWidgetConfig:
    """
    Configuration handed to the embeddable chart widget. The widget is opaque:
    we only supply symbol and interval and never read data back from it.
    """
    symbol: str = "BINANCE:BTCUSDT"
    interval: ChartInterval = ChartInterval.DAY
    container_id: str = field(default_factory=_container_id)

    def with_interval(self, interval: ChartInterval) -> "ChartWidgetConfig":
        # container id stays stable so the widget re-renders in place
        return ChartWidgetConfig(symbol=self.symbol, interval=ChartInterval(interval), container_id=self.container_id)

    def to_embed_config(self) -> Dict[str, Any]:
        return {
            "autosize": True,
            "symbol": self.symbol,
            "interval": self.interval.value,
            "timezone": "Etc/UTC",
            "theme": "dark",
            "style": "1",
            "locale": "es",
            "enable_publishing": False,
            "hide_side_toolbar": False,
            "allow_symbol_change": True,
            "container_id": self.container_id,
        }

    def to_embed_html(self) -> str:
        return (
            f'<div id="{self.container_id}" style="height:100%;width:100%">'
            f'<script type="text/javascript" src="{EMBED_SCRIPT_URL}" async>'
            f"{json.dumps(self.to_embed_config())}"
            "</script></div>"
        )
