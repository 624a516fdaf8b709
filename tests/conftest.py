"""
Shared fixtures: a small catalog and a 35-day stock-movement history.

History layout (day 0 = 2024-01-01, last day = 2024-02-04):
    A100  sells 2 units every day            -> 70 units, rate 2.0/day
    B200  never moves                        -> rate 0
    C300  sells 2 units every 5th day, one receipt of 100 units on day 3
    D400  sells 1 unit on day 20, now out of stock
"""

from datetime import date, timedelta

import pytest

from forecast_core import ForecastSettings, InventoryItem, PredictiveInventoryEngine, TransactionEvent

START = date(2024, 1, 1)


def day(offset: int) -> date:
    return START + timedelta(days=offset)


def make_event(sku: str, offset: int, quantity: int, kind: str = "sale", unit_price: float | None = None) -> TransactionEvent:
    return TransactionEvent(
        sku=sku, timestamp=day(offset), quantity=quantity, kind=kind, unit_price=unit_price
    )


def daily_history(days: int, sku: str = "A100", quantity: int = -1) -> list[TransactionEvent]:
    return [make_event(sku, offset, quantity) for offset in range(days)]


@pytest.fixture
def items() -> list[InventoryItem]:
    return [
        InventoryItem(id="1", sku="A100", name="Pallet Wrap", current_stock=5, low_stock_threshold=10, unit_price=4.0),
        InventoryItem(id="2", sku="B200", name="Label Printer", current_stock=50, low_stock_threshold=10, unit_price=10.0),
        InventoryItem(id="3", sku="C300", name="Box Cutter", current_stock=40, low_stock_threshold=10, unit_price=2.5),
        InventoryItem(id="4", sku="D400", name="Packing Tape", current_stock=0, low_stock_threshold=5, unit_price=3.0),
    ]


@pytest.fixture
def history() -> list[TransactionEvent]:
    events = [make_event("A100", offset, -2) for offset in range(35)]
    events += [make_event("C300", offset, -2) for offset in range(0, 35, 5)]
    events.append(make_event("C300", 3, 100, kind="receipt"))
    events.append(make_event("D400", 20, -1))
    return events


@pytest.fixture
def short_history() -> list[TransactionEvent]:
    return [make_event("A100", offset, -2) for offset in range(20)]


@pytest.fixture
def engine() -> PredictiveInventoryEngine:
    return PredictiveInventoryEngine(ForecastSettings(cache_size=0))
