from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Union

from riskdesk.core.models import PriceLevels, SizingMetrics, Trade
from riskdesk.infrastructure.gemini_client import TrendSignal
from riskdesk.infrastructure.mock_market import HistoryEvent, MarketData, Signal
from riskdesk.services.planner import PlanningInputs
from riskdesk.services.portfolio import PortfolioSummary, SeriesPoint

NA = "N/A"
CENT = Decimal("0.01")

def _two(value: Union[Decimal, float, int]) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)

def format_number(value: Optional[Union[Decimal, float, int]]) -> str:
    """Two fraction digits with thousands separators, N/A when missing."""
    if value is None:
        return NA
    return f"{_two(value):,.2f}"

def format_currency(value: Optional[Union[Decimal, float, int]]) -> str:
    if value is None:
        return NA
    amount = _two(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"

def format_signed(value: Optional[Union[Decimal, float, int]]) -> str:
    if value is None:
        return NA
    amount = _two(value)
    sign = "+" if amount > 0 else ""
    return f"{sign}{amount:,.2f}"

class ReportFormatter:
    @staticmethod
    def format_planning_sheet(
        inputs: PlanningInputs,
        sizing: Optional[SizingMetrics],
        levels: Optional[PriceLevels],
    ) -> str:
        """
        Renders the SISTEMA GESTION UDR sheet. Missing groups (incomplete
        inputs) show N/A instead of an error.
        """
        s = sizing
        lines = ["📐 SISTEMA GESTION UDR", ""]

        lines.append("Gestión TRADING")
        lines.append(f"Capital (Inicial) ($)：{inputs.capital_inicial or NA}")
        lines.append(f"Riesgo (%)：{inputs.riesgo or NA}")
        lines.append(f"Fluctuación (%)：{inputs.fluctuacion or NA}")
        lines.append(f"FEE (Compra) (%)：{inputs.fee_compra or NA}")
        lines.append(f"FEE (Venta) (%)：{inputs.fee_venta or NA}")
        lines.append("")

        lines.append("GESTION OPERACION")
        lines.append(f"INVERSIÓN：{format_currency(s.inversion if s else None)}")
        lines.append(f"Capital (Final)：{format_currency(s.capital_final if s else None)}")
        lines.append(f"Liquidez：{format_currency(s.liquidez if s else None)}")
        lines.append(f"UDR：{format_number(s.udr if s else None)}")
        lines.append(f"UDR a Favor：{format_number(s.udr_a_favor if s else None)}")
        lines.append(f"Total Operaciones：{format_number(s.total_operaciones if s else None)}")
        lines.append(f"Relación：{s.relacion if s else '0:0'}")
        lines.append(f"Trailing Stop (%)：{format_number(s.trailing_stop if s else None)}")
        lines.append(f"Delta (%)：{format_number(s.delta if s else None)}")
        lines.append("")

        lines.append("Profit")
        lines.append(f"Profit (OB1)：{format_currency(s.profit_ob1 if s else None)}")
        lines.append(f"Profit (OB2)：{format_currency(s.profit_ob2 if s else None)}")
        lines.append(f"Profit (OB3)：{format_currency(s.profit_ob3 if s else None)}")
        lines.append(f"Stop Loss Trailing (SLT)：{format_currency(s.slt_profit if s else None)}")
        lines.append("")

        lines.append("TRADING")
        lines.append(f"Orden Limit (OL)：{inputs.orden_limit or NA}")
        lines.append(f"Profit (OB1)：{format_currency(levels.profit1 if levels else None)}")
        lines.append(f"Profit (OB2)：{format_currency(levels.profit2 if levels else None)}")
        lines.append(f"Profit (OB3)：{format_currency(levels.profit3 if levels else None)}")
        lines.append(f"Stop Loss (SL)：{format_currency(levels.stop_loss if levels else None)}")
        lines.append(f"Stop Loss Trailing (SLT)：{format_currency(levels.stop_loss_trailing if levels else None)}")

        return "\n".join(lines)

    @staticmethod
    def format_trade_line(index: int, trade: Trade) -> str:
        s = trade.metrics.sizing
        head = (
            f"{index}) [{trade.trade_id}] {trade.pair} "
            f"OL {format_currency(trade.inputs.orden_limit)} "
            f"INV {format_currency(s.inversion)} UDR {format_number(s.udr)}"
        )
        if not trade.is_closed:
            return f"{head} 🟢 abierta"

        c = trade.closing
        udr_sign = "+" if c.udr_ganados > 0 else ""
        return (
            f"{head} ⚪ cerrada {c.profit_level.value} "
            f"ganancia {format_currency(c.ganancia)} "
            f"comisión {format_currency(c.comision)} "
            f"({udr_sign}{c.udr_ganados} UDR)"
        )

    @classmethod
    def format_ledger(cls, trades: Iterable[Trade], positions: Optional[Dict[str, int]] = None) -> str:
        """
        positions maps trade_id to the number shown in front of each row;
        without it rows are numbered in the order given.
        """
        trades = list(trades)
        if not trades:
            return "🧾 Historial de operaciones\n\nSin operaciones registradas 💤"
        lines = ["🧾 Historial de operaciones"]
        for i, t in enumerate(trades, 1):
            number = positions.get(t.trade_id, i) if positions else i
            lines.append(cls.format_trade_line(number, t))
        return "\n".join(lines)

    @staticmethod
    def format_close_options(trade: Trade) -> str:
        """Choices offered when closing: price and result per level."""
        s = trade.metrics.sizing
        lv = trade.metrics.levels
        lines = [f"Cerrar Operación {trade.pair} [{trade.trade_id}]"]
        for name, value, price in (
            ("OB1", s.profit_ob1, lv.profit1),
            ("OB2", s.profit_ob2, lv.profit2),
            ("OB3", s.profit_ob3, lv.profit3),
        ):
            lines.append(
                f"{name}：Precio {format_currency(price)} | Ganancia {format_currency(value - s.inversion)}"
            )
        lines.append(f"SL：Precio {format_currency(lv.stop_loss)} | Pérdida {format_currency(s.udr)}")
        return "\n".join(lines)

    @staticmethod
    def format_summary(summary: PortfolioSummary, stats: Dict) -> str:
        lines = ["📊 Resumen de cartera"]
        lines.append(f"Capital Inicial：{format_currency(summary.initial_capital)}")
        lines.append(f"Liquidez Actual：{format_currency(summary.accumulated_balance)} ({format_signed(summary.return_pct)}%)")
        lines.append(f"Total Operaciones：{summary.total_trades} (abiertas {summary.open_trades}, cerradas {summary.closed_trades})")
        lines.append(f"Ganadoras：{summary.winning_trades}")
        lines.append(f"Perdedoras：{summary.losing_trades}")
        lines.append(f"Ganancia neta：{format_currency(summary.net_pnl)}")
        lines.append(f"Comisiones：{format_currency(summary.total_commission)}")
        lines.append("")

        lines.append("🔢 UDR")
        total_sign = '+' if stats['total_udr'] > 0 else ''
        lines.append(f"Total UDR：{total_sign}{stats['total_udr']}")
        avg_sign = '+' if stats['avg_udr'] > 0 else ''
        lines.append(f"UDR promedio：{avg_sign}{stats['avg_udr']}")
        lines.append(f"Tasa de acierto：{stats['win_rate']}%")
        lines.append(f"Máx. pérdidas consecutivas：{stats['max_consecutive_loss']}")
        lines.append(f"Máx. drawdown：{stats['max_drawdown']} UDR")
        return "\n".join(lines)

    @staticmethod
    def format_series(points: List[SeriesPoint]) -> str:
        lines = ["📈 Ganancia acumulada (%)"]
        for p in points:
            lines.append(f"{p.timestamp.strftime('%Y-%m-%d %H:%M')}  {format_signed(p.pnl_pct)}%")
        return "\n".join(lines)

    @staticmethod
    def format_trend(signal: TrendSignal) -> str:
        if not signal.available:
            return "BTC/USD：No disponible"
        label = "Tendencia Alcista" if signal.is_bullish else "Tendencia Bajista"
        suffix = f" (confianza: {signal.confidence})" if signal.confidence else ""
        if signal.source == "fallback":
            suffix += " [aleatorio]"
        return f"BTC/USD：{label}{suffix}"

    @staticmethod
    def format_markets(rows: List[MarketData]) -> str:
        lines = ["Par | Volumen 24h | % Cambio | Liquidez | 1h | 1d | 1w"]
        for m in rows:
            lines.append(
                f"{m.pair} | {format_currency(m.volume)} | {format_signed(m.change24h)}% | "
                f"{format_number(m.liquidity)}M | {format_signed(m.change1h)}% | "
                f"{format_signed(m.change1d)}% | {format_signed(m.change1w)}%"
            )
        return "\n".join(lines)

    @staticmethod
    def format_signals(tables: Dict[str, List[Signal]]) -> str:
        lines = []
        for title, rows in tables.items():
            lines.append(title)
            for s in rows:
                hot = " 🔥" if s.is_hot else ""
                lines.append(f"  {s.time} {s.pair}{hot} {s.pattern} {format_signed(s.variation)}%")
            lines.append("")
        return "\n".join(lines).rstrip()

    @staticmethod
    def format_history(events: List[HistoryEvent]) -> str:
        if not events:
            return "Sin eventos."
        return "\n".join(
            f"{e.timestamp.strftime('%Y-%m-%d %H:%M:%S')} [{e.type.value}] {e.description}"
            for e in events
        )
