from datetime import timedelta
from decimal import Decimal

import pytest
from riskdesk.services.portfolio import PortfolioAggregator, TimeWindow

CAPITAL = Decimal("10000")

def _close_after(ledger, clock, make_plan, level, pair="BTC/USDT", **advance):
    trade = ledger.add_trade(*make_plan(pair))
    clock.advance(**advance)
    return ledger.close_trade(trade.trade_id, level)

def test_balance_without_closed_trades(ledger, make_plan):
    assert PortfolioAggregator.accumulated_balance(ledger.trades, CAPITAL) == CAPITAL
    ledger.add_trade(*make_plan())
    assert PortfolioAggregator.accumulated_balance(ledger.trades, CAPITAL) == CAPITAL

def test_balance_adds_net_ganancia(ledger, clock, make_plan):
    _close_after(ledger, clock, make_plan, "OB1", minutes=1)
    _close_after(ledger, clock, make_plan, "SL", minutes=1)
    # 189.8 - 209.8
    assert PortfolioAggregator.accumulated_balance(ledger.trades, CAPITAL) == Decimal("9980")

def test_summary_counts(ledger, clock, make_plan):
    _close_after(ledger, clock, make_plan, "OB2", minutes=1)
    _close_after(ledger, clock, make_plan, "SL", minutes=1)
    ledger.add_trade(*make_plan("ETH/USDT"))

    summary = PortfolioAggregator.summarize(ledger.trades, CAPITAL)

    assert summary.total_trades == 3
    assert summary.open_trades == 1
    assert summary.closed_trades == 2
    assert summary.winning_trades == 1
    assert summary.losing_trades == 1
    assert summary.net_udr == 1
    assert summary.net_pnl == summary.accumulated_balance - CAPITAL
    assert summary.total_commission == Decimal("10.4") + Decimal("9.8")

def test_return_pct_with_zero_capital(ledger):
    assert PortfolioAggregator.summarize(ledger.trades, Decimal(0)).return_pct == 0

def test_series_starts_at_zero(ledger, clock):
    points = PortfolioAggregator.pnl_series(ledger.trades, CAPITAL, TimeWindow.WEEK, now=clock.now)
    assert len(points) == 1
    assert points[0].pnl_pct == 0.0
    assert points[0].timestamp == clock.now - timedelta(days=7)

def test_series_is_cumulative_percentage(ledger, clock, make_plan):
    _close_after(ledger, clock, make_plan, "OB1", hours=1)
    _close_after(ledger, clock, make_plan, "SL", hours=1)

    points = PortfolioAggregator.pnl_series(ledger.trades, CAPITAL, "day", now=clock.now)

    assert [p.pnl_pct for p in points] == pytest.approx([0.0, 1.898, -0.2])
    assert points[1].timestamp < points[2].timestamp

def test_series_filters_by_window(ledger, clock, make_plan):
    _close_after(ledger, clock, make_plan, "OB3", minutes=1)
    clock.advance(days=3)
    _close_after(ledger, clock, make_plan, "OB1", minutes=1)

    day = PortfolioAggregator.pnl_series(ledger.trades, CAPITAL, TimeWindow.DAY, now=clock.now)
    week = PortfolioAggregator.pnl_series(ledger.trades, CAPITAL, TimeWindow.WEEK, now=clock.now)

    assert len(day) == 2
    assert day[1].pnl_pct == pytest.approx(1.898)
    assert len(week) == 3

def test_series_accepts_naive_now(ledger, clock, make_plan):
    _close_after(ledger, clock, make_plan, "OB1", minutes=1)
    naive = clock.now.replace(tzinfo=None)
    assert len(PortfolioAggregator.pnl_series(ledger.trades, CAPITAL, now=naive)) == 2
