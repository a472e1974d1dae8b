from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List

@dataclass(frozen=True)
class MarketData:
    pair: str
    volume: float
    change24h: float
    liquidity: float
    change1h: float
    change1d: float
    change1w: float

@dataclass(frozen=True)
class Signal:
    pair: str
    pattern: str
    time: str
    variation: float
    liquidity: float
    is_hot: bool = False

class HistoryEventType(str, Enum):
    TRADE = "Trade"
    API = "API"
    SYSTEM = "System"
    ALERT = "Alert"

@dataclass(frozen=True)
class HistoryEvent:
    timestamp: datetime
    type: HistoryEventType
    description: str

# 靜態資料，沒有真實行情來源
MARKETS: Dict[str, List[MarketData]] = {
    "USDT": [
        MarketData("BTC/USDT", 1500000000, 2.5, 500.5, 0.5, 2.5, 5.8),
        MarketData("ETH/USDT", 800000000, -1.2, 300.2, -0.2, -1.2, 3.1),
        MarketData("SOL/USDT", 450000000, 5.8, 150.0, 1.1, 5.8, 12.3),
        MarketData("XRP/USDT", 300000000, 0.1, 100.7, 0.0, 0.1, -2.4),
        MarketData("ADA/USDT", 150000000, -3.4, 80.1, -0.8, -3.4, -5.0),
        MarketData("DOGE/USDT", 250000000, 10.2, 95.3, 2.5, 10.2, 25.6),
    ],
    "USDC": [
        MarketData("BTC/USDC", 1200000000, 2.6, 450.5, 0.6, 2.6, 6.0),
        MarketData("ETH/USDC", 750000000, -1.1, 280.9, -0.1, -1.1, 3.3),
        MarketData("LINK/USDC", 90000000, 4.5, 50.1, 0.9, 4.5, 9.8),
        MarketData("AVAX/USDC", 120000000, -2.0, 65.4, -0.5, -2.0, 1.2),
    ],
}

REVERSION_SIGNALS: List[Signal] = [
    Signal("ETH/USDT", "Doble Suelo", "14:30", 2.1, 300.2, is_hot=True),
    Signal("ADA/USDT", "Hombro Cabeza Hombro", "12:15", -3.5, 80.1),
    Signal("LINK/USDT", "Cuña Ascendente", "11:05", -1.8, 50.1),
    Signal("MATIC/USDT", "Triángulo Simétrico", "10:45", 1.5, 45.3),
]

SHORT_TERM_SIGNALS: List[Signal] = [
    Signal("SOL/USDT", "Bandera Alcista", "15:05", 1.2, 150.0, is_hot=True),
    Signal("DOGE/USDT", "Engulfing Bajista", "15:02", -0.8, 95.3),
    Signal("XRP/USDT", "Martillo", "14:55", 0.5, 100.7),
]

HISTORY_EVENTS: List[HistoryEvent] = [
    HistoryEvent(datetime(2023, 10, 27, 15, 30, 5), HistoryEventType.TRADE, "BUY BTC/USDT @ 65,123.45"),
    HistoryEvent(datetime(2023, 10, 27, 14, 55, 10), HistoryEventType.ALERT, "Signal detected: Doble Suelo en ETH/USDT"),
    HistoryEvent(datetime(2023, 10, 27, 14, 0, 0), HistoryEventType.SYSTEM, "System reboot initiated for maintenance."),
    HistoryEvent(datetime(2023, 10, 26, 22, 10, 30), HistoryEventType.API, "Binance API key updated successfully."),
    HistoryEvent(datetime(2023, 10, 26, 18, 45, 15), HistoryEventType.TRADE, "SELL SOL/USDT @ 155.80"),
    HistoryEvent(datetime(2023, 10, 26, 18, 30, 0), HistoryEventType.ALERT, "Liquidity warning for ADA/USDT."),
]
