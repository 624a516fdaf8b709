"""
The predictive inventory pipeline.

snapshot -> normalize -> sufficiency gate -> usage rates
         -> restock prediction + confidence -> rankings

Every entry point takes the snapshot explicitly and reads no ambient state,
so calls are pure and idempotent: the same snapshot always yields the same
output in the same order. Refreshing means calling again with a new snapshot.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from .cache import SnapshotCache, snapshot_digest
from .confidence import ConfidenceScorer
from .normalizer import NormalizationResult, TransactionNormalizer, normalize_inventory_items
from .parsers import SKUNormalizer
from .predictor import RestockPredictor
from .ranking import RankingEngine
from .reporting import ForecastReport, sort_predictions
from .schemas import DataSufficiencyResult, InventoryItem, Prediction, RankedSalesEntry, TransactionEvent
from .settings import ForecastSettings
from .sufficiency import DataSufficiencyEvaluator
from .usage import ObservationWindow, UsageRateEstimator, events_in_window, observation_window

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Normalized, windowed inputs for one computation."""

    items: list[InventoryItem]
    catalog: dict[str, InventoryItem]  # normalized SKU -> item
    normalization: NormalizationResult
    window: ObservationWindow | None
    events: list[TransactionEvent]  # every event in the window
    known_events: list[TransactionEvent]  # events whose SKU is in the catalog
    unknown_skus: list[str]
    unresolved_days: list[date]  # item-id-only records the catalog cannot resolve
    sufficiency: DataSufficiencyResult


class PredictiveInventoryEngine:
    """
    Wires the pipeline components together from one `ForecastSettings`.

    Usage:
        engine = PredictiveInventoryEngine()
        report = engine.run(items, transactions)
        report.predictions, report.best_sellers, report.slow_movers
    """

    def __init__(self, settings: ForecastSettings | None = None):
        self.settings = settings or ForecastSettings()
        s = self.settings

        self.sku_normalizer = SKUNormalizer()
        self.evaluator = DataSufficiencyEvaluator(required_days=s.required_days)
        self.estimator = UsageRateEstimator(
            min_window_days=s.min_window_days,
            count_negative_adjustments=s.count_negative_adjustments,
        )
        self.predictor = RestockPredictor(
            critical_days=s.critical_days,
            warning_days=s.warning_days,
            coverage_days=s.coverage_days,
        )
        self.scorer = ConfidenceScorer(
            full_confidence_transactions=s.full_confidence_transactions,
            required_days=s.required_days,
            variance_weight=s.variance_weight,
        )
        self.ranker = RankingEngine(top_n=s.top_n)
        self.cache = SnapshotCache(maxsize=s.cache_size) if s.cache_size else None

    # --- Snapshot preparation ---

    def prepare(self, items, transactions, as_of: date | None = None) -> Snapshot:
        """Normalize both inputs and apply the observation window."""
        catalog_items = normalize_inventory_items(
            items,
            default_low_stock_threshold=self.settings.default_low_stock_threshold,
            sku_normalizer=self.sku_normalizer,
        )
        catalog = {self.sku_normalizer.normalize(item.sku): item for item in catalog_items}

        normalizer = TransactionNormalizer(
            sku_normalizer=self.sku_normalizer,
            item_skus={item.id: item.sku for item in catalog_items},
        )
        normalization = normalizer.normalize(transactions)

        window = observation_window(
            normalization.events,
            as_of=as_of,
            lookback_days=self.settings.lookback_days,
            extra_days=normalization.unresolved_days,
        )
        events = events_in_window(normalization.events, window)
        unresolved_days = [
            day for day in normalization.unresolved_days if window is not None and window.contains(day)
        ]
        if unresolved_days:
            logger.warning(
                f"{len(unresolved_days):,} records reference item ids missing from the "
                f"inventory snapshot; counted toward data sufficiency only"
            )
        known_events = [event for event in events if event.sku in catalog]

        unknown_skus = sorted({event.sku for event in events} - catalog.keys())
        if unknown_skus:
            sample = ", ".join(unknown_skus[:5])
            logger.warning(
                f"Dropping {len(events) - len(known_events):,} events for "
                f"{len(unknown_skus)} SKUs missing from the inventory snapshot ({sample})"
            )

        return Snapshot(
            items=catalog_items,
            catalog=catalog,
            normalization=normalization,
            window=window,
            events=events,
            known_events=known_events,
            unknown_skus=unknown_skus,
            unresolved_days=unresolved_days,
            sufficiency=self.evaluator.evaluate(events, unresolved_days),
        )

    # --- Public operations ---

    def evaluate_data_sufficiency(
        self, transactions, items=None, as_of: date | None = None
    ) -> DataSufficiencyResult:
        """
        Args:
            items: Optional catalog. Records that only carry an item id count
                toward the gate whether or not the catalog resolves them.
        """
        return self.prepare(items or [], transactions, as_of).sufficiency

    def generate_predictions(self, items, transactions, as_of: date | None = None) -> list[Prediction]:
        """One prediction per catalog item, or [] while history is insufficient."""
        return self.predictions_for(self.prepare(items, transactions, as_of))

    def rank_best_sellers(
        self,
        predictions: Sequence[Prediction],
        transactions,
        items,
        top_n: int | None = None,
        as_of: date | None = None,
    ) -> list[RankedSalesEntry]:
        self.ranker.resolve_top_n(top_n)
        snapshot = self.prepare(items, transactions, as_of)
        if not snapshot.sufficiency.has_sufficient_data:
            return []
        return self.ranker.best_sellers(snapshot.catalog, snapshot.known_events, predictions, top_n)

    def rank_slow_movers(
        self,
        predictions: Sequence[Prediction],
        transactions,
        items,
        top_n: int | None = None,
        as_of: date | None = None,
    ) -> list[RankedSalesEntry]:
        self.ranker.resolve_top_n(top_n)
        snapshot = self.prepare(items, transactions, as_of)
        if not snapshot.sufficiency.has_sufficient_data:
            return []
        return self.ranker.slow_movers(snapshot.catalog, snapshot.known_events, predictions, top_n)

    def run(self, items, transactions, as_of: date | None = None) -> ForecastReport:
        """Full pipeline over a single normalization pass."""
        snapshot = self.prepare(items, transactions, as_of)
        report = ForecastReport(
            sufficiency=snapshot.sufficiency,
            normalization=snapshot.normalization,
            unknown_skus=snapshot.unknown_skus,
            unresolved_records=len(snapshot.unresolved_days),
            as_of=snapshot.window.end if snapshot.window else None,
        )
        if not snapshot.sufficiency.has_sufficient_data:
            logger.info(f"Forecast skipped. {snapshot.sufficiency.message}")
            return report

        report.predictions = self.predictions_for(snapshot)
        report.best_sellers = self.ranker.best_sellers(
            snapshot.catalog, snapshot.known_events, report.predictions
        )
        report.slow_movers = self.ranker.slow_movers(
            snapshot.catalog, snapshot.known_events, report.predictions
        )
        counts = report.urgency_counts()
        logger.info(
            f"Forecast ready: {len(report.predictions)} items "
            f"({counts['critical']} critical, {counts['warning']} warning, {counts['normal']} normal)"
        )
        return report

    # --- Internals ---

    def predictions_for(self, snapshot: Snapshot) -> list[Prediction]:
        if not snapshot.sufficiency.has_sufficient_data:
            return []
        if self.cache is None:
            return self._compute_predictions(snapshot)

        key = snapshot_digest(
            snapshot.items,
            snapshot.events,
            as_of=snapshot.window.end if snapshot.window else None,
            settings=self.settings,
            start=snapshot.window.start if snapshot.window else None,
        )
        return list(self.cache.get_or_compute(key, lambda: tuple(self._compute_predictions(snapshot))))

    def _compute_predictions(self, snapshot: Snapshot) -> list[Prediction]:
        stats = self.estimator.usage_statistics(snapshot.known_events, snapshot.window)
        days_with_data = snapshot.sufficiency.days_with_data
        as_of = snapshot.window.end if snapshot.window else None

        predictions = []
        for key, item in snapshot.catalog.items():
            if key in stats.index:
                rate = float(stats.at[key, "daily_usage_rate"])
                count = int(stats.at[key, "outflow_events"])
                cv = float(stats.at[key, "outflow_cv"])
            else:
                rate, count, cv = 0.0, 0, 0.0

            confidence = self.scorer.score(count, days_with_data, cv)
            predictions.append(self.predictor.predict(item, rate, confidence, as_of=as_of))

        return sort_predictions(predictions, by="urgency")


_default_engine: PredictiveInventoryEngine | None = None


def default_engine() -> PredictiveInventoryEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = PredictiveInventoryEngine()
    return _default_engine


def evaluate_data_sufficiency(transactions, items=None, as_of: date | None = None) -> DataSufficiencyResult:
    return default_engine().evaluate_data_sufficiency(transactions, items=items, as_of=as_of)


def generate_predictions(items, transactions, as_of: date | None = None) -> list[Prediction]:
    return default_engine().generate_predictions(items, transactions, as_of=as_of)


def rank_best_sellers(
    predictions, transactions, items, top_n: int = 5, as_of: date | None = None
) -> list[RankedSalesEntry]:
    return default_engine().rank_best_sellers(predictions, transactions, items, top_n=top_n, as_of=as_of)


def rank_slow_movers(
    predictions, transactions, items, top_n: int = 5, as_of: date | None = None
) -> list[RankedSalesEntry]:
    return default_engine().rank_slow_movers(predictions, transactions, items, top_n=top_n, as_of=as_of)
