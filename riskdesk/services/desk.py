from decimal import Decimal
from typing import Dict, List, Optional, Union

from riskdesk.config.logging import logger
from riskdesk.core.exceptions import BusinessLogicError, ValidationError
from riskdesk.core.models import ProfitLevel, Trade
from riskdesk.services.alerts import AlertChannel
from riskdesk.services.analytics import AnalyticsService
from riskdesk.services.ledger import TradeLedger
from riskdesk.services.planner import RiskPlanner
from riskdesk.services.portfolio import PortfolioAggregator, PortfolioSummary, SeriesPoint, TimeWindow

class TradingDesk:
    """
    Application root. Owns the planner, the ledger and the alert channel and
    hands them to whoever needs them; there is no global state.

    User actions never raise: validation and lifecycle errors become error
    alerts and the action returns None with nothing mutated.
    """

    def __init__(
        self,
        ledger: TradeLedger,
        alerts: AlertChannel,
        planner: Optional[RiskPlanner] = None,
        initial_capital: Decimal = Decimal("10000"),
    ):
        self.ledger = ledger
        self.alerts = alerts
        self.planner = planner or RiskPlanner()
        self.initial_capital = initial_capital

    def register_trade(self, pair: str) -> Optional[Trade]:
        """Snapshot the current plan as a new open trade."""
        try:
            inputs = self.planner.trade_inputs(pair)
            if not inputs.pair:
                raise ValidationError("Introduce un par válido (ej. BTC/USDT).")
            if inputs.orden_limit is None or inputs.orden_limit <= 0:
                raise ValidationError("La Orden Limit debe ser un precio positivo.")
            metrics = self.planner.metrics
            if metrics is None:
                raise ValidationError("Completa capital, riesgo y fluctuación antes de registrar.")
            trade = self.ledger.add_trade(inputs, metrics)
        except ValidationError as e:
            logger.warning(f"Trade registration rejected: {e}")
            self.alerts.error(str(e))
            return None

        self.alerts.success(f"Operación {trade.pair} registrada.")
        return trade

    def close_trade(self, trade_id: str, level: Union[ProfitLevel, str]) -> Optional[Trade]:
        try:
            trade = self.ledger.close_trade(trade_id, level)
        except (ValidationError, BusinessLogicError) as e:
            logger.warning(f"Close rejected for {trade_id}: {e}")
            self.alerts.error(str(e))
            return None

        self.alerts.success(
            f"Operación {trade.pair} cerrada en {trade.closing.profit_level.value}."
        )
        return trade

    @property
    def balance(self) -> Decimal:
        return PortfolioAggregator.accumulated_balance(self.ledger.trades, self.initial_capital)

    def summary(self) -> PortfolioSummary:
        return PortfolioAggregator.summarize(self.ledger.trades, self.initial_capital)

    def stats(self) -> Dict:
        return AnalyticsService.calculate_stats(self.ledger.trades)

    def series(self, window: TimeWindow = TimeWindow.MONTH) -> List[SeriesPoint]:
        return PortfolioAggregator.pnl_series(self.ledger.trades, self.initial_capital, window)

    def close(self):
        self.alerts.close()
