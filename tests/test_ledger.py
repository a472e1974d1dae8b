import json
from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest
from riskdesk.core.exceptions import (
    StorageError,
    TradeAlreadyClosedError,
    TradeNotFoundError,
    ValidationError,
)
from riskdesk.core.models import ProfitLevel, TradeStatus
from riskdesk.infrastructure.storage import LocalStore
from riskdesk.services.ledger import DEFAULT_STORAGE_KEY, TradeLedger
from riskdesk.services.portfolio import PortfolioAggregator

def test_add_trade_is_open_and_newest_first(ledger, clock, make_plan):
    first = ledger.add_trade(*make_plan("BTC/USDT"))
    clock.advance(minutes=5)
    second = ledger.add_trade(*make_plan("ETH/USDT"))

    assert first.status is TradeStatus.OPEN
    assert first.closing is None
    assert [t.pair for t in ledger.trades] == ["ETH/USDT", "BTC/USDT"]
    assert second.timestamp > first.timestamp

def test_timestamps_are_unique_when_clock_repeats(ledger, make_plan):
    a = ledger.add_trade(*make_plan())
    b = ledger.add_trade(*make_plan())
    c = ledger.add_trade(*make_plan())
    assert len({a.trade_id, b.trade_id, c.trade_id}) == 3
    assert b.timestamp - a.timestamp == timedelta(microseconds=1)
    assert ledger.trades[0] is c

@pytest.mark.parametrize("pair,price", [("", "65000"), ("   ", "65000"), ("BTC/USDT", "0"), ("BTC/USDT", "-1")])
def test_add_trade_validation(ledger, store, make_plan, pair, price):
    inputs, metrics = make_plan()
    inputs = replace(inputs, pair=pair, orden_limit=Decimal(price))
    with pytest.raises(ValidationError):
        ledger.add_trade(inputs, metrics)
    assert len(ledger) == 0
    assert store.get(DEFAULT_STORAGE_KEY) is None

def test_close_trade_ob2(store, clock, make_plan):
    ledger = TradeLedger(store, clock=clock)
    trade = ledger.add_trade(*make_plan(capital="2000"))
    clock.advance(hours=3)

    closed = ledger.close_trade(trade.trade_id, ProfitLevel.OB2)

    assert closed.status is TradeStatus.CLOSED
    assert closed.closing.profit_level is ProfitLevel.OB2
    assert closed.closing.ganancia == Decimal("77.92")
    assert closed.closing.comision == Decimal("2.08")
    assert closed.closing.udr_ganados == 2
    assert closed.closing.closed_at == clock.now
    # metrics snapshot untouched
    assert closed.metrics == trade.metrics
    assert ledger.get(trade.trade_id) == closed

def test_close_only_touches_matched_trade(ledger, clock, make_plan):
    a = ledger.add_trade(*make_plan("BTC/USDT"))
    clock.advance(seconds=1)
    b = ledger.add_trade(*make_plan("ETH/USDT"))

    ledger.close_trade(a.trade_id, "SL")

    assert ledger.get(b.trade_id) == b
    assert ledger.get(a.trade_id).closing.udr_ganados == -1
    assert ledger.get(a.trade_id).closing.ganancia == Decimal("-209.8")

def test_close_by_datetime(ledger, make_plan):
    trade = ledger.add_trade(*make_plan())
    assert ledger.close_trade(trade.timestamp, "OB1").is_closed

def test_close_unknown_trade(ledger, make_plan):
    ledger.add_trade(*make_plan())
    with pytest.raises(TradeNotFoundError):
        ledger.close_trade("2000-01-01T00:00:00+00:00", "OB1")

def test_close_unknown_level(ledger, make_plan):
    trade = ledger.add_trade(*make_plan())
    with pytest.raises(ValidationError):
        ledger.close_trade(trade.trade_id, "OB4")
    assert not ledger.get(trade.trade_id).is_closed

def test_second_close_is_rejected(ledger, make_plan):
    trade = ledger.add_trade(*make_plan())
    first = ledger.close_trade(trade.trade_id, "OB3")
    balance = PortfolioAggregator.accumulated_balance(ledger.trades, Decimal("10000"))

    with pytest.raises(TradeAlreadyClosedError):
        ledger.close_trade(trade.trade_id, "SL")

    assert ledger.get(trade.trade_id) == first
    assert PortfolioAggregator.accumulated_balance(ledger.trades, Decimal("10000")) == balance

def test_round_trip_through_store(store, clock, make_plan):
    ledger = TradeLedger(store, clock=clock)
    a = ledger.add_trade(*make_plan("BTC/USDT"))
    clock.advance(minutes=1)
    ledger.add_trade(*make_plan("SOL/USDT", capital="3000", riesgo="1.5", fluctuacion="6", orden_limit="155.8"))
    clock.advance(minutes=1)
    ledger.close_trade(a.trade_id, "OB1")

    reloaded = TradeLedger(store, clock=clock)
    assert reloaded.trades == ledger.trades

def test_every_mutation_is_persisted(ledger, store, make_plan):
    trade = ledger.add_trade(*make_plan())
    records = json.loads(store.get(DEFAULT_STORAGE_KEY))
    assert records[0]["status"] == "open"

    ledger.close_trade(trade.trade_id, "OB1")
    records = json.loads(store.get(DEFAULT_STORAGE_KEY))
    assert records[0]["status"] == "closed"
    assert records[0]["closingProfitLevel"] == "OB1"

def test_missing_store_starts_empty(tmp_path):
    ledger = TradeLedger(LocalStore(str(tmp_path / "nope" / "store.json")))
    assert ledger.trades == ()

def test_corrupt_store_starts_empty(tmp_path, make_plan):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    ledger = TradeLedger(LocalStore(str(path)))
    assert ledger.trades == ()

    # the next write replaces the corrupt file
    ledger.add_trade(*make_plan())
    assert len(TradeLedger(LocalStore(str(path)))) == 1

def test_corrupt_history_value_starts_empty(store):
    store.set(DEFAULT_STORAGE_KEY, "[{broken")
    assert TradeLedger(store).trades == ()

    store.set(DEFAULT_STORAGE_KEY, json.dumps({"not": "a list"}))
    assert TradeLedger(store).trades == ()

def test_legacy_records_load_with_optional_fields_missing(store):
    legacy = [
        {
            "pair": "BTC/USDT", "capitalInicial": "10000", "riesgo": "2", "fluctuacion": "4",
            "ordenLimit": "65000.00", "inversion": "5000.00", "udr": "200.00", "udrAFavor": "50.00",
            "relacion": "4:2", "profitOB1": "5200.00", "profitOB2": "5400.00", "profitOB3": "5600.00",
            "profit1": "67600.00", "profit2": "70200.00", "profit3": "72800.00", "stopLoss": "62400.00",
            "timestamp": "2023-10-27T15:30:05.123Z",
            "closingProfitLevel": "OB1", "ganancia": "189.80", "comision": "10.20", "udrGanados": 1,
        },
        {
            "pair": "ETH/USDT", "capitalInicial": "10000", "riesgo": "2", "fluctuacion": "4",
            "ordenLimit": "1800", "inversion": "5000.00", "udr": "200.00", "udrAFavor": "50.00",
            "relacion": "4:2", "profitOB1": "5200.00", "profitOB2": "5400.00", "profitOB3": "5600.00",
            "profit1": "1872", "profit2": "1944", "profit3": "2016", "stopLoss": "1728",
            "timestamp": "2023-10-28T09:00:00.000Z",
        },
    ]
    store.set(DEFAULT_STORAGE_KEY, json.dumps(legacy))

    ledger = TradeLedger(store)

    eth, btc = ledger.trades
    assert eth.pair == "ETH/USDT" and eth.status is TradeStatus.OPEN
    assert btc.status is TradeStatus.CLOSED
    assert btc.closing.closed_at is None
    assert btc.metrics.sizing.slt_profit is None
    assert btc.metrics.levels.stop_loss_trailing is None

def test_malformed_records_are_skipped(ledger, store, make_plan):
    trade = ledger.add_trade(*make_plan())
    good = ledger.close_trade(trade.trade_id, "OB1")
    records = json.loads(store.get(DEFAULT_STORAGE_KEY))
    records.append({"pair": "XRP/USDT", "timestamp": "2024-01-01T00:00:00+00:00"})
    records.append("garbage")
    for day, (field, value) in enumerate((("ganancia", "NaN"), ("inversion", "Infinity"), ("profit1", "-Infinity")), 1):
        bad = dict(records[0], timestamp=f"2024-02-0{day}T00:00:00+00:00")
        bad[field] = value
        records.append(bad)
    store.set(DEFAULT_STORAGE_KEY, json.dumps(records))

    reloaded = TradeLedger(store)

    assert reloaded.trades == (good,)
    # non-finite numbers never reach the aggregations
    summary = PortfolioAggregator.summarize(reloaded.trades, Decimal("10000"))
    assert summary.winning_trades == 1

def test_position_is_newest_first(ledger, clock, make_plan):
    a = ledger.add_trade(*make_plan("BTC/USDT"))
    clock.advance(seconds=1)
    b = ledger.add_trade(*make_plan("ETH/USDT"))
    assert ledger.position(b.trade_id) == 1
    assert ledger.position(a.timestamp) == 2
    assert ledger.position("2000-01-01T00:00:00+00:00") is None

class BrokenStore(LocalStore):
    def set(self, key, value):
        raise StorageError("disk full")

def test_write_failure_keeps_in_memory_state(tmp_path, make_plan):
    ledger = TradeLedger(BrokenStore(str(tmp_path / "store.json")))
    trade = ledger.add_trade(*make_plan())
    assert ledger.trades == (trade,)
    closed = ledger.close_trade(trade.trade_id, "OB2")
    assert ledger.trades == (closed,)

def test_open_closed_views_and_resort(ledger, clock, make_plan):
    a = ledger.add_trade(*make_plan("BTC/USDT"))
    clock.advance(seconds=1)
    b = ledger.add_trade(*make_plan("ETH/USDT"))
    ledger.close_trade(a.trade_id, "OB1")

    assert [t.pair for t in ledger.open_trades()] == ["ETH/USDT"]
    assert [t.pair for t in ledger.closed_trades()] == ["BTC/USDT"]
    assert [t.pair for t in ledger.sorted_by(lambda t: t.timestamp, descending=False)] == ["BTC/USDT", "ETH/USDT"]
    # display re-sort leaves the ledger order alone
    assert ledger.trades[0].trade_id == b.trade_id
