import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, Union

from riskdesk.config.logging import logger
from riskdesk.core.exceptions import (
    StorageError,
    TradeAlreadyClosedError,
    TradeNotFoundError,
    ValidationError,
)
from riskdesk.core.models import DerivedMetrics, ProfitLevel, Trade, TradeInputs
from riskdesk.infrastructure.mapper import LedgerMapper
from riskdesk.infrastructure.storage import LocalStore
from riskdesk.services.calculator import DEFAULT_COMMISSION_RATE, RiskCalculator

DEFAULT_STORAGE_KEY = "udr_trading_history"

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class TradeLedger:
    """
    交易紀錄 (newest first)。
    負責開倉 / 平倉狀態轉換，每次變動後整份寫回 LocalStore。
    """

    def __init__(
        self,
        store: LocalStore,
        storage_key: str = DEFAULT_STORAGE_KEY,
        commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.storage_key = storage_key
        self.commission_rate = commission_rate
        self.clock = clock
        self._trades: List[Trade] = self._load()

    # ---- persistence ----

    def _load(self) -> List[Trade]:
        """讀取先前狀態；store 不存在或損毀時退回空 ledger。"""
        try:
            raw = self.store.get(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to read trading history, starting empty: {e}")
            return []
        if not raw:
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Trading history is not valid JSON, starting empty: {e}")
            return []
        if not isinstance(records, list):
            logger.error("Trading history is not a list, starting empty.")
            return []

        trades = []
        seen = set()
        for record in records:
            try:
                trade = LedgerMapper.record_to_trade(record)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping unreadable trade record: {e}")
                continue
            if trade.timestamp in seen:
                logger.warning(f"Skipping duplicate trade {trade.trade_id}")
                continue
            seen.add(trade.timestamp)
            trades.append(trade)

        trades.sort(key=lambda t: t.timestamp, reverse=True)
        logger.info(f"Loaded {len(trades)} trades from history.")
        return trades

    def _persist(self):
        """整份序列化寫回；寫入失敗只記錄 log，不回滾記憶體狀態。"""
        payload = json.dumps(
            [LedgerMapper.trade_to_record(t) for t in self._trades],
            ensure_ascii=False,
        )
        try:
            self.store.set(self.storage_key, payload)
        except StorageError as e:
            logger.error(f"Failed to persist trading history: {e}")

    # ---- read access ----

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    def get(self, trade_id: Union[str, datetime]) -> Optional[Trade]:
        for trade in self._trades:
            if self._matches(trade, trade_id):
                return trade
        return None

    def position(self, trade_id: Union[str, datetime]) -> Optional[int]:
        """1-based position in the newest-first ledger, the number `#N` refers to."""
        for index, trade in enumerate(self._trades, 1):
            if self._matches(trade, trade_id):
                return index
        return None

    def open_trades(self) -> List[Trade]:
        return [t for t in self._trades if not t.is_closed]

    def closed_trades(self) -> List[Trade]:
        return [t for t in self._trades if t.is_closed]

    def sorted_by(self, key: Callable[[Trade], object], descending: bool = True) -> List[Trade]:
        """顯示用的重新排序，不改變 ledger 本身的順序。"""
        return sorted(self._trades, key=key, reverse=descending)

    # ---- mutations ----

    def _next_timestamp(self) -> datetime:
        now = self.clock()
        if self._trades and now <= self._trades[0].timestamp:
            # 時鐘重複或倒退時往後推 1 微秒，維持唯一且遞增
            now = self._trades[0].timestamp + timedelta(microseconds=1)
        return now

    def add_trade(self, inputs: TradeInputs, metrics: DerivedMetrics) -> Trade:
        if not inputs.pair or not inputs.pair.strip():
            raise ValidationError("Pair is required.")
        if inputs.orden_limit is None or inputs.orden_limit <= 0:
            raise ValidationError("Orden Limit must be a positive price.")

        trade = Trade(inputs=inputs, metrics=metrics, timestamp=self._next_timestamp())
        self._trades.insert(0, trade)
        logger.info(f"Registered trade {trade.trade_id} {trade.pair} @ {inputs.orden_limit}")
        self._persist()
        return trade

    def close_trade(self, trade_id: Union[str, datetime], level: Union[ProfitLevel, str]) -> Trade:
        try:
            level = ProfitLevel(level)
        except ValueError:
            raise ValidationError(f"Unknown profit level: {level}")

        for index, trade in enumerate(self._trades):
            if not self._matches(trade, trade_id):
                continue
            if trade.is_closed:
                raise TradeAlreadyClosedError(f"Trade {trade.trade_id} is already closed.")

            closing = RiskCalculator.settle(
                trade.metrics.sizing,
                level,
                commission_rate=self.commission_rate,
                closed_at=self.clock(),
            )
            closed = trade.close(closing)
            self._trades[index] = closed
            logger.info(
                f"Closed trade {closed.trade_id} at {level.value}: "
                f"ganancia={closing.ganancia} comision={closing.comision}"
            )
            self._persist()
            return closed

        raise TradeNotFoundError(f"Trade {trade_id} not found.")

    @staticmethod
    def _matches(trade: Trade, trade_id: Union[str, datetime]) -> bool:
        if isinstance(trade_id, datetime):
            return trade.timestamp == trade_id
        return trade.trade_id == trade_id
