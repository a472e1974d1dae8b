import argparse
import json
import sys
from typing import Optional

from riskdesk.config.settings import settings
from riskdesk.config.logging import logger
from riskdesk.core.exceptions import AppError
from riskdesk.core.models import ProfitLevel
from riskdesk.infrastructure.gemini_client import GeminiClient
from riskdesk.infrastructure.mock_market import HistoryEventType
from riskdesk.infrastructure.storage import LocalStore
from riskdesk.services.alerts import Alert, AlertChannel, AlertKind
from riskdesk.services.catalog import CatalogService, MARKET_COLUMNS
from riskdesk.services.chart import ChartInterval, ChartWidgetConfig
from riskdesk.services.desk import TradingDesk
from riskdesk.services.ledger import TradeLedger
from riskdesk.services.planner import PlanningInputs, RiskPlanner
from riskdesk.services.portfolio import TimeWindow
from riskdesk.services.report_formatter import ReportFormatter, format_currency
from riskdesk.services.reporter import ReporterService, SUPPORTED_FORMATS

def print_alert(alert: Alert):
    if not alert.visible:
        return
    icon = "✅" if alert.kind is AlertKind.SUCCESS else "❌"
    print(f"{icon} {alert.message}")

def planning_inputs(args) -> PlanningInputs:
    return PlanningInputs(
        capital_inicial=str(args.capital if args.capital is not None else settings.INITIAL_CAPITAL),
        riesgo=str(args.riesgo if args.riesgo is not None else settings.DEFAULT_RIESGO),
        fluctuacion=str(args.fluctuacion if args.fluctuacion is not None else settings.DEFAULT_FLUCTUACION),
        fee_compra=str(args.fee_compra if args.fee_compra is not None else settings.DEFAULT_FEE_COMPRA),
        fee_venta=str(args.fee_venta if args.fee_venta is not None else settings.DEFAULT_FEE_VENTA),
        orden_limit=str(args.orden_limit if args.orden_limit is not None else settings.DEFAULT_ORDEN_LIMIT),
    )

def build_desk(inputs: Optional[PlanningInputs] = None) -> TradingDesk:
    """Wire one desk per invocation from the settings."""
    alerts = AlertChannel(hide_after=settings.ALERT_HIDE_SECONDS)
    alerts.subscribe(print_alert)
    ledger = TradeLedger(
        LocalStore(settings.LEDGER_PATH),
        storage_key=settings.LEDGER_STORAGE_KEY,
        commission_rate=settings.COMMISSION_RATE,
    )
    return TradingDesk(
        ledger=ledger,
        alerts=alerts,
        planner=RiskPlanner(inputs),
        initial_capital=settings.INITIAL_CAPITAL,
    )

def resolve_trade_id(desk: TradingDesk, ref: str) -> str:
    """
    Accepts a full trade id or '#N'. N is the position in the full
    newest-first ledger; listings print that number whatever their filter
    or order.
    """
    if ref.startswith("#") and ref[1:].isdigit():
        index = int(ref[1:]) - 1
        trades = desk.ledger.trades
        if 0 <= index < len(trades):
            return trades[index].trade_id
    return ref

def add_planning_args(parser: argparse.ArgumentParser):
    parser.add_argument("--capital", help="Capital (Inicial) ($)")
    parser.add_argument("--riesgo", help="Riesgo (%%)")
    parser.add_argument("--fluctuacion", help="Fluctuación (%%)")
    parser.add_argument("--fee-compra", dest="fee_compra", help="FEE (Compra) (%%)")
    parser.add_argument("--fee-venta", dest="fee_venta", help="FEE (Venta) (%%)")
    parser.add_argument("--orden-limit", dest="orden_limit", help="Orden Limit (OL)")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="UDR risk desk & trading journal")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plan_parser = subparsers.add_parser("plan", help="Show the risk planning sheet")
    add_planning_args(plan_parser)

    open_parser = subparsers.add_parser("open", help="Register the planned trade as open")
    open_parser.add_argument("pair", help="Trading pair, e.g. BTC/USDT")
    add_planning_args(open_parser)

    close_parser = subparsers.add_parser("close", help="Close an open trade at a level")
    close_parser.add_argument("trade", help="Trade id or #N from the listing")
    close_parser.add_argument("level", nargs="?", choices=[p.value for p in ProfitLevel],
                              help="OB1, OB2, OB3 or SL (omit to list the options)")

    trades_parser = subparsers.add_parser("trades", help="List the trade ledger")
    trades_parser.add_argument("--status", choices=["open", "closed"])
    trades_parser.add_argument("--oldest-first", action="store_true")

    subparsers.add_parser("summary", help="Portfolio balance and UDR statistics")

    series_parser = subparsers.add_parser("series", help="Cumulative P&L %% over a window")
    series_parser.add_argument("--window", choices=[w.value for w in TimeWindow], default=TimeWindow.MONTH.value)

    export_parser = subparsers.add_parser("export", help="Export the ledger")
    export_parser.add_argument("path")
    export_parser.add_argument("--format", dest="output_format", choices=SUPPORTED_FORMATS, default="csv")

    subparsers.add_parser("trend", help="BTC trend signal (Gemini)")

    markets_parser = subparsers.add_parser("markets", help="Market table")
    markets_parser.add_argument("--quote", default="USDT", choices=["USDT", "USDC"])
    markets_parser.add_argument("--search", default="")
    markets_parser.add_argument("--sort", default="volume", choices=MARKET_COLUMNS)
    markets_parser.add_argument("--asc", action="store_true")

    subparsers.add_parser("signals", help="Pattern signals")

    history_parser = subparsers.add_parser("history", help="Event log")
    history_parser.add_argument("--type", dest="event_type", choices=["All"] + [t.value for t in HistoryEventType])
    history_parser.add_argument("--search", default="")
    history_parser.add_argument("--asc", action="store_true")

    chart_parser = subparsers.add_parser("chart", help="Chart widget embed config")
    chart_parser.add_argument("--symbol", default=None)
    chart_parser.add_argument("--interval", default=None, help="1h, 24h, 7d, 30d (or 60, D, W, M)")
    chart_parser.add_argument("--html", action="store_true")

    return parser

def run(args) -> int:
    if args.command == "plan":
        planner = RiskPlanner(planning_inputs(args))
        print(ReportFormatter.format_planning_sheet(planner.inputs, planner.sizing, planner.levels))
        return 0

    if args.command == "open":
        desk = build_desk(planning_inputs(args))
        try:
            trade = desk.register_trade(args.pair)
            if trade is None:
                return 1
            print(ReportFormatter.format_trade_line(desk.ledger.position(trade.trade_id), trade))
            return 0
        finally:
            desk.close()

    if args.command == "close":
        desk = build_desk()
        try:
            trade_id = resolve_trade_id(desk, args.trade)
            if args.level is None:
                trade = desk.ledger.get(trade_id)
                if trade is None:
                    print(f"❌ Trade {args.trade} not found.")
                    return 1
                print(ReportFormatter.format_close_options(trade))
                return 0
            trade = desk.close_trade(trade_id, args.level)
            if trade is None:
                return 1
            print(ReportFormatter.format_trade_line(desk.ledger.position(trade.trade_id), trade))
            print(f"Liquidez Actual：{format_currency(desk.balance)}")
            return 0
        finally:
            desk.close()

    if args.command == "trades":
        desk = build_desk()
        trades = desk.ledger.sorted_by(lambda t: t.timestamp, descending=not args.oldest_first)
        if args.status:
            trades = [t for t in trades if t.status.value == args.status]
        positions = {t.trade_id: i for i, t in enumerate(desk.ledger.trades, 1)}
        print(ReportFormatter.format_ledger(trades, positions))
        return 0

    if args.command == "summary":
        desk = build_desk()
        print(ReportFormatter.format_summary(desk.summary(), desk.stats()))
        return 0

    if args.command == "series":
        desk = build_desk()
        print(ReportFormatter.format_series(desk.series(TimeWindow(args.window))))
        return 0

    if args.command == "export":
        desk = build_desk()
        ReporterService.export_ledger(desk.ledger.trades, args.path, args.output_format)
        print(f"Exported {len(desk.ledger)} trades to {args.path}")
        return 0

    if args.command == "trend":
        client = GeminiClient(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, settings.TREND_RANDOM_FALLBACK)
        print(ReportFormatter.format_trend(client.get_btc_trend_signal()))
        return 0

    if args.command == "markets":
        rows = CatalogService.markets(args.quote, args.search, args.sort, descending=not args.asc)
        print(ReportFormatter.format_markets(rows))
        return 0

    if args.command == "signals":
        print(ReportFormatter.format_signals(CatalogService.signals()))
        return 0

    if args.command == "history":
        events = CatalogService.history(args.event_type, args.search, descending=not args.asc)
        print(ReportFormatter.format_history(events))
        return 0

    if args.command == "chart":
        config = ChartWidgetConfig(
            symbol=args.symbol or settings.CHART_SYMBOL,
            interval=ChartInterval.parse(args.interval or settings.CHART_INTERVAL),
        )
        if args.html:
            print(config.to_embed_html())
        else:
            print(json.dumps(config.to_embed_config(), indent=2))
        return 0

    return 1

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if settings is None:
        logger.critical("Configuration could not be loaded. Exiting.")
        sys.exit(1)

    try:
        code = run(args)
    except AppError as e:
        logger.error(f"{args.command} failed: {e}")
        code = 1
    sys.exit(code)

if __name__ == "__main__":
    main()
