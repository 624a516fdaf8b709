"""
Result container and the list views the inventory screens are built from.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from .normalizer import NormalizationResult
from .parsers import ProductNameNormalizer
from .schemas import URGENCY_ORDER, DataSufficiencyResult, Prediction, RankedSalesEntry

_names = ProductNameNormalizer()

SORT_KEYS = {
    "urgency": lambda p: (URGENCY_ORDER[p.restock_urgency], p.days_until_restock, p.sku),
    "name": lambda p: (_names.normalize(p.name), p.sku),
    "stock": lambda p: (p.current_stock, p.sku),
    "usage": lambda p: (-p.daily_usage_rate, p.sku),
    "confidence": lambda p: (-p.confidence, p.sku),
}


def sort_predictions(predictions: Iterable[Prediction], by: str = "urgency") -> list[Prediction]:
    """Sort by one of SORT_KEYS; every ordering ends on the SKU."""
    if by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {by!r}; expected one of {sorted(SORT_KEYS)}")
    return sorted(predictions, key=SORT_KEYS[by])


def filter_predictions(
    predictions: Iterable[Prediction],
    search: str | None = None,
    urgency: str | None = None,
    within_days: float | None = None,
) -> list[Prediction]:
    """
    Narrow a prediction list the way the predictive inventory screen does.

    Args:
        search: Case-insensitive substring of the product name or SKU
        urgency: Keep only this tier ("critical", "warning", "normal")
        within_days: Keep items whose stock runs out within this many days
    """
    needle = _names.normalize(search) if search else ""
    result = []
    for prediction in predictions:
        if needle and needle not in _names.normalize(prediction.name) and needle not in prediction.sku.lower():
            continue
        if urgency and prediction.restock_urgency != urgency:
            continue
        if within_days is not None and prediction.days_until_restock > within_days:
            continue
        result.append(prediction)
    return result


@dataclass
class ForecastReport:
    """Everything one pipeline run produces for a snapshot."""

    sufficiency: DataSufficiencyResult
    predictions: list[Prediction] = field(default_factory=list)
    best_sellers: list[RankedSalesEntry] = field(default_factory=list)
    slow_movers: list[RankedSalesEntry] = field(default_factory=list)
    normalization: NormalizationResult | None = None
    unknown_skus: list[str] = field(default_factory=list)
    unresolved_records: int = 0
    as_of: date | None = None

    @property
    def skipped_records(self) -> int:
        return self.normalization.skipped if self.normalization else 0

    def urgency_counts(self) -> dict[str, int]:
        counts = {tier: 0 for tier in URGENCY_ORDER}
        for prediction in self.predictions:
            counts[prediction.restock_urgency] += 1
        return counts

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "has_sufficient_data": self.sufficiency.has_sufficient_data,
            "days_with_data": self.sufficiency.days_with_data,
            "days_until_ready": self.sufficiency.days_until_ready,
            "message": self.sufficiency.message,
            "predictions": len(self.predictions),
            **self.urgency_counts(),
            "skipped_records": self.skipped_records,
            "unknown_skus": len(self.unknown_skus),
            "unresolved_records": self.unresolved_records,
        }

    def predictions_frame(self) -> pd.DataFrame:
        return _models_frame(self.predictions, Prediction)

    def best_sellers_frame(self) -> pd.DataFrame:
        return _models_frame(self.best_sellers, RankedSalesEntry)

    def slow_movers_frame(self) -> pd.DataFrame:
        return _models_frame(self.slow_movers, RankedSalesEntry)


def _models_frame(models: Sequence, model_cls) -> pd.DataFrame:
    columns = list(model_cls.model_fields.keys())
    return pd.DataFrame([m.model_dump() for m in models], columns=columns)
