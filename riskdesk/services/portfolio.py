from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

import pandas as pd

from riskdesk.core.models import Trade

class TimeWindow(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def span(self) -> timedelta:
        return {
            "day": timedelta(days=1),
            "week": timedelta(days=7),
            "month": timedelta(days=30),
            "year": timedelta(days=365),
        }[self.value]

@dataclass(frozen=True)
class PortfolioSummary:
    initial_capital: Decimal
    total_trades: int
    open_trades: int
    closed_trades: int
    winning_trades: int
    losing_trades: int
    net_pnl: Decimal
    total_commission: Decimal
    net_udr: int
    accumulated_balance: Decimal

    @property
    def return_pct(self) -> Decimal:
        if not self.initial_capital:
            return Decimal(0)
        return self.net_pnl / self.initial_capital * 100

@dataclass(frozen=True)
class SeriesPoint:
    timestamp: datetime
    pnl_pct: float

def _closed_at(trade: Trade) -> datetime:
    # 舊紀錄沒有 closedAt，以建立時間代替
    return trade.closing.closed_at or trade.timestamp

class PortfolioAggregator:
    """
    Derives balances and statistics from the ledger.

    Nothing is cached; every call recomputes from the trades it is given, so
    callers just ask again after the ledger changes.
    """

    @staticmethod
    def accumulated_balance(trades: Iterable[Trade], initial_capital: Decimal) -> Decimal:
        realized = sum((t.closing.ganancia for t in trades if t.is_closed), Decimal(0))
        return initial_capital + realized

    @classmethod
    def summarize(cls, trades: Iterable[Trade], initial_capital: Decimal) -> PortfolioSummary:
        trades = list(trades)
        closed = [t for t in trades if t.is_closed]
        net_pnl = sum((t.closing.ganancia for t in closed), Decimal(0))

        return PortfolioSummary(
            initial_capital=initial_capital,
            total_trades=len(trades),
            open_trades=len(trades) - len(closed),
            closed_trades=len(closed),
            winning_trades=sum(1 for t in closed if t.closing.ganancia > 0),
            losing_trades=sum(1 for t in closed if t.closing.ganancia <= 0),
            net_pnl=net_pnl,
            total_commission=sum((t.closing.comision for t in closed), Decimal(0)),
            net_udr=sum(t.closing.udr_ganados for t in closed),
            accumulated_balance=initial_capital + net_pnl,
        )

    @staticmethod
    def pnl_series(
        trades: Iterable[Trade],
        initial_capital: Decimal,
        window: TimeWindow = TimeWindow.MONTH,
        now: Optional[datetime] = None,
    ) -> List[SeriesPoint]:
        """
        Cumulative realized P&L as a percentage of initial capital, for the
        trades closed inside `window`. The first point is a synthetic 0% at
        the start of the window.
        """
        window = TimeWindow(window)
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        start = now - window.span
        origin = [SeriesPoint(timestamp=start, pnl_pct=0.0)]

        rows = [
            {"closed_at": _closed_at(t), "ganancia": float(t.closing.ganancia)}
            for t in trades
            if t.is_closed
        ]
        if not rows or not initial_capital:
            return origin

        df = pd.DataFrame(rows)
        df["closed_at"] = pd.to_datetime(df["closed_at"], utc=True)
        df = df[(df["closed_at"] >= start) & (df["closed_at"] <= now)]
        if df.empty:
            return origin

        df = df.sort_values("closed_at", kind="stable")
        df["pnl_pct"] = df["ganancia"].cumsum() / float(initial_capital) * 100

        return origin + [
            SeriesPoint(timestamp=row.closed_at.to_pydatetime(), pnl_pct=float(row.pnl_pct))
            for row in df.itertuples(index=False)
        ]
