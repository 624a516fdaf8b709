"""
Daily consumption rates per SKU.

A rate is total outflow inside the observation window divided by the
window's length in days. Receipts and positive adjustments only move stock,
which the catalog snapshot already reflects, so they never count as usage.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

import numpy as np
import pandas as pd

from .schemas import TransactionEvent, TransactionKind

USAGE_COLUMNS = [
    "total_outflow",
    "outflow_events",
    "daily_usage_rate",
    "outflow_cv",
    "last_outflow_date",
]


@dataclass(frozen=True)
class ObservationWindow:
    """Inclusive range of calendar days a computation looks at."""

    start: date
    end: date

    @property
    def elapsed_days(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def observation_window(
    events: Sequence[TransactionEvent],
    as_of: date | None = None,
    lookback_days: int | None = None,
    extra_days: Sequence[date] = (),
) -> ObservationWindow | None:
    """
    Window spanning the snapshot: first event through `as_of`.

    Args:
        as_of: Last day of the window. Defaults to the latest event date.
        lookback_days: Optional cap on the window length, counted back from as_of.
        extra_days: Activity dates that have no event of their own
    """
    days = [event.timestamp for event in events] + list(extra_days)
    if not days:
        return None if as_of is None else ObservationWindow(as_of, as_of)

    end = as_of or max(days)
    start = min(min(days), end)
    if lookback_days:
        start = max(start, end - timedelta(days=lookback_days - 1))
    return ObservationWindow(start=start, end=end)


def events_in_window(
    events: Iterable[TransactionEvent], window: ObservationWindow | None
) -> list[TransactionEvent]:
    if window is None:
        return []
    return [event for event in events if window.contains(event.timestamp)]


def events_to_frame(events: Iterable[TransactionEvent]) -> pd.DataFrame:
    """One row per event; `outflow` holds absolute units leaving stock."""
    rows = [
        {
            "sku": event.sku,
            "timestamp": event.timestamp,
            "quantity": event.quantity,
            "kind": event.kind.value,
            "unit_price": event.unit_price,
            "outflow": event.outflow_units,
        }
        for event in events
    ]
    columns = ["sku", "timestamp", "quantity", "kind", "unit_price", "outflow"]
    return pd.DataFrame(rows, columns=columns)


class UsageRateEstimator:
    """
    Estimates how many units per day each SKU consumes.

    Args:
        min_window_days: Lower bound on the divisor, so a short history
            cannot inflate the rate (the sufficiency gate length by default).
        count_negative_adjustments: Treat negative stock corrections as usage.
    """

    def __init__(self, min_window_days: int = 30, count_negative_adjustments: bool = False):
        self.min_window_days = min_window_days
        self.count_negative_adjustments = count_negative_adjustments

    @property
    def usage_kinds(self) -> list[TransactionKind]:
        kinds = [TransactionKind.SALE, TransactionKind.DAMAGE]
        if self.count_negative_adjustments:
            kinds.append(TransactionKind.ADJUSTMENT)
        return kinds

    def divisor(self, window: ObservationWindow | None) -> int:
        elapsed = window.elapsed_days if window is not None else 0
        return max(1, elapsed, self.min_window_days)

    def is_usage(self, event: TransactionEvent) -> bool:
        return event.quantity < 0 and event.kind in self.usage_kinds

    def daily_usage_rate(
        self, events: Iterable[TransactionEvent], window: ObservationWindow | None
    ) -> float:
        """Rate for one SKU's events; events outside the window are ignored."""
        if window is None:
            return 0.0
        total = sum(
            event.outflow_units
            for event in events
            if window.contains(event.timestamp) and self.is_usage(event)
        )
        return total / self.divisor(window)

    def usage_statistics(
        self, events: Sequence[TransactionEvent], window: ObservationWindow | None
    ) -> pd.DataFrame:
        """
        Per-SKU usage over the window, indexed by SKU.

        Returns DataFrame with:
        - total_outflow
        - outflow_events (count of usage transactions)
        - daily_usage_rate
        - outflow_cv (coefficient of variation of daily outflow, zero-filled days included)
        - last_outflow_date
        """
        empty = pd.DataFrame(columns=USAGE_COLUMNS, index=pd.Index([], name="sku"))
        if window is None:
            return empty

        frame = events_to_frame(events)
        if frame.empty:
            return empty

        in_window = frame["timestamp"].map(window.contains).astype(bool)
        usage_kinds = [kind.value for kind in self.usage_kinds]
        usage = frame[in_window & frame["kind"].isin(usage_kinds) & (frame["quantity"] < 0)]
        if usage.empty:
            return empty

        daily = usage.groupby(["sku", "timestamp"])["outflow"].sum().reset_index()
        daily["outflow_sq"] = daily["outflow"].astype(float) ** 2

        stats = daily.groupby("sku").agg(
            total_outflow=("outflow", "sum"),
            outflow_sq=("outflow_sq", "sum"),
            last_outflow_date=("timestamp", "max"),
        )
        stats["outflow_events"] = usage.groupby("sku").size()

        # Mean and variance over every day of the window, idle days counting as zero
        days = self.divisor(window)
        rate = stats["total_outflow"].astype(float) / days
        variance = (stats["outflow_sq"] / days - rate**2).clip(lower=0)
        stats["daily_usage_rate"] = rate
        stats["outflow_cv"] = np.where(rate > 0, np.sqrt(variance) / rate.where(rate > 0, 1), 0.0)

        return stats[USAGE_COLUMNS]
