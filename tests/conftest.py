from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from riskdesk.core.models import TradeInputs
from riskdesk.infrastructure.storage import LocalStore
from riskdesk.services.calculator import RiskCalculator
from riskdesk.services.ledger import TradeLedger


class FakeClock:
    """Returns a fixed instant; advance() moves it forward."""

    def __init__(self, start=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "store.json"))


@pytest.fixture
def ledger(store, clock):
    return TradeLedger(store, clock=clock)


@pytest.fixture
def timers():
    created = []

    def factory(interval, function):
        timer = FakeTimer(interval, function)
        created.append(timer)
        return timer

    factory.created = created
    return factory


def plan(pair="BTC/USDT", capital="10000", riesgo="2", fluctuacion="4", orden_limit="65000"):
    inputs = TradeInputs(
        pair=pair,
        capital_inicial=Decimal(capital),
        riesgo=Decimal(riesgo),
        fluctuacion=Decimal(fluctuacion),
        orden_limit=Decimal(orden_limit),
    )
    metrics = RiskCalculator.compute(capital, riesgo, fluctuacion, orden_limit)
    return inputs, metrics


@pytest.fixture
def make_plan():
    return plan
