from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"

class ProfitLevel(str, Enum):
    """平倉價位：OB1/OB2/OB3 為 1x/2x/3x 波動目標，SL 為停損。"""
    OB1 = "OB1"
    OB2 = "OB2"
    OB3 = "OB3"
    SL = "SL"

    @property
    def multiple(self) -> int:
        """UDR 倍數 (udrGanados)。"""
        return {"OB1": 1, "OB2": 2, "OB3": 3, "SL": -1}[self.value]

@dataclass(frozen=True)
class TradeInputs:
    """
    登記交易時的輸入快照 (Gestión TRADING + Orden Limit)。
    """
    pair: str                  # 交易對 (e.g., "BTC/USDT")
    capital_inicial: Decimal   # 初始資金
    riesgo: Decimal            # 風險 %
    fluctuacion: Decimal       # 目標波動 %
    orden_limit: Decimal       # 進場價 (OL)

@dataclass(frozen=True)
class SizingMetrics:
    """
    部位大小相關數值，只依賴 capital / riesgo / fluctuacion (及手續費)。
    """
    inversion: Decimal
    udr: Decimal
    udr_a_favor: Decimal
    relacion: str
    profit_ob1: Decimal
    profit_ob2: Decimal
    profit_ob3: Decimal

    # 舊紀錄可能沒有以下欄位
    total_operaciones: Optional[Decimal] = None
    slt_profit: Optional[Decimal] = None
    capital_final: Optional[Decimal] = None
    liquidez: Optional[Decimal] = None
    delta: Optional[Decimal] = None
    trailing_stop: Optional[Decimal] = None

    def profit_ob(self, level: ProfitLevel) -> Decimal:
        return {
            ProfitLevel.OB1: self.profit_ob1,
            ProfitLevel.OB2: self.profit_ob2,
            ProfitLevel.OB3: self.profit_ob3,
        }[level]

@dataclass(frozen=True)
class PriceLevels:
    """
    價位相關數值，只依賴 orden_limit 與 fluctuacion。
    """
    stop_loss: Decimal
    profit1: Decimal
    profit2: Decimal
    profit3: Decimal
    stop_loss_trailing: Optional[Decimal] = None

@dataclass(frozen=True)
class DerivedMetrics:
    sizing: SizingMetrics
    levels: PriceLevels

@dataclass(frozen=True)
class TradeClosing:
    """平倉結果，整組寫入，不允許部分欄位存在。"""
    profit_level: ProfitLevel
    ganancia: Decimal      # 淨損益 (已扣手續費)
    comision: Decimal      # 開倉 + 平倉手續費
    udr_ganados: int       # +1/+2/+3 或 -1
    closed_at: Optional[datetime] = None

@dataclass(frozen=True)
class Trade:
    """
    核心交易模型 (Domain Model)。
    inputs 與 metrics 在登記時凍結，之後全域參數變動不影響歷史交易。
    """
    inputs: TradeInputs
    metrics: DerivedMetrics
    timestamp: datetime    # 建立時間，同時是唯一識別碼與排序鍵
    status: TradeStatus = TradeStatus.OPEN
    closing: Optional[TradeClosing] = None

    def __post_init__(self):
        if (self.status is TradeStatus.CLOSED) != (self.closing is not None):
            raise ValueError(
                f"Trade {self.trade_id}: closing fields must be present iff status is closed"
            )

    @property
    def trade_id(self) -> str:
        return self.timestamp.isoformat()

    @property
    def pair(self) -> str:
        return self.inputs.pair

    @property
    def is_closed(self) -> bool:
        return self.status is TradeStatus.CLOSED

    @property
    def ganancia(self) -> Optional[Decimal]:
        return self.closing.ganancia if self.closing else None

    def is_profit(self) -> bool:
        return self.closing is not None and self.closing.ganancia > 0

    def close(self, closing: TradeClosing) -> "Trade":
        """回傳新的已平倉紀錄，原紀錄不變。"""
        return replace(self, status=TradeStatus.CLOSED, closing=closing)
