"""
Restock forecasts and urgency tiers.

Stock-level conditions are evaluated before days-of-cover conditions:
an empty shelf is critical no matter what the usage history says, and an
item with no measured demand is never more than normal.
"""

import math
from datetime import date, timedelta

from .schemas import UNBOUNDED_DAYS, InventoryItem, Prediction, RestockUrgency


class RestockPredictor:
    """
    Combines current stock, threshold and usage rate into a `Prediction`.

    Args:
        critical_days: Days of cover at or below which an item is critical
        warning_days: Days of cover at or below which an item needs replenishing soon
        coverage_days: Days of demand a suggested order should cover
    """

    def __init__(self, critical_days: float = 7, warning_days: float = 14, coverage_days: int = 28):
        self.critical_days = critical_days
        self.warning_days = warning_days
        self.coverage_days = coverage_days

    @staticmethod
    def days_until_restock(current_stock: int, daily_usage_rate: float) -> float:
        if daily_usage_rate <= 0:
            return UNBOUNDED_DAYS
        return current_stock / daily_usage_rate

    def classify(
        self,
        current_stock: int,
        low_stock_threshold: int,
        daily_usage_rate: float,
        days_until_restock: float,
    ) -> RestockUrgency:
        if current_stock == 0:
            return "critical"
        if daily_usage_rate <= 0:
            return "normal"
        if days_until_restock <= self.critical_days:
            return "critical"
        if current_stock <= low_stock_threshold or days_until_restock <= self.warning_days:
            return "warning"
        return "normal"

    def suggested_order_quantity(self, daily_usage_rate: float) -> int:
        if daily_usage_rate <= 0:
            return 0
        return math.ceil(daily_usage_rate * self.coverage_days)

    @staticmethod
    def restock_date(as_of: date | None, days_until_restock: float) -> date | None:
        if as_of is None or math.isinf(days_until_restock):
            return None
        offset = math.floor(days_until_restock)
        if offset > (date.max - as_of).days:
            return None
        return as_of + timedelta(days=offset)

    def predict(
        self,
        item: InventoryItem,
        daily_usage_rate: float,
        confidence: float = 0.0,
        as_of: date | None = None,
    ) -> Prediction:
        rate = max(0.0, float(daily_usage_rate))
        days = self.days_until_restock(item.current_stock, rate)

        return Prediction(
            item_id=item.id,
            sku=item.sku,
            name=item.name,
            current_stock=item.current_stock,
            low_stock_threshold=item.low_stock_threshold,
            daily_usage_rate=rate,
            weekly_usage_rate=rate * 7,
            days_until_restock=days,
            predicted_restock_date=self.restock_date(as_of, days),
            restock_urgency=self.classify(
                item.current_stock, item.low_stock_threshold, rate, days
            ),
            confidence=confidence,
            suggested_order_quantity=self.suggested_order_quantity(rate),
        )
