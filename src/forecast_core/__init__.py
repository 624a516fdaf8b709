# Predictive inventory engine: restock forecasts, urgency tiers, confidence
# scores and sales rankings from a warehouse's stock-movement history.

from .schemas import (
    UNBOUNDED_DAYS,
    DataSufficiencyResult,
    InventoryItem,
    Prediction,
    RankedSalesEntry,
    TransactionEvent,
    TransactionKind,
)
from .settings import ForecastSettings
from .parsers import DateParser, SKUNormalizer, ProductNameNormalizer
from .quality import DataQualityChecker, DataQualityIssue, DataQualityReport
from .normalizer import (
    NormalizationResult,
    TransactionNormalizer,
    normalize_inventory_items,
    normalize_transactions,
)
from .sufficiency import DataSufficiencyEvaluator
from .usage import ObservationWindow, UsageRateEstimator, observation_window
from .predictor import RestockPredictor
from .confidence import ConfidenceScorer
from .ranking import RankingEngine, aggregate_sales_by_sku
from .cache import SnapshotCache, snapshot_digest
from .reporting import ForecastReport, filter_predictions, sort_predictions
from .engine import (
    PredictiveInventoryEngine,
    evaluate_data_sufficiency,
    generate_predictions,
    rank_best_sellers,
    rank_slow_movers,
)

__all__ = [
    "UNBOUNDED_DAYS",
    "DataSufficiencyResult",
    "InventoryItem",
    "Prediction",
    "RankedSalesEntry",
    "TransactionEvent",
    "TransactionKind",
    "ForecastSettings",
    "DateParser",
    "SKUNormalizer",
    "ProductNameNormalizer",
    "DataQualityChecker",
    "DataQualityIssue",
    "DataQualityReport",
    "NormalizationResult",
    "TransactionNormalizer",
    "normalize_inventory_items",
    "normalize_transactions",
    "DataSufficiencyEvaluator",
    "ObservationWindow",
    "UsageRateEstimator",
    "observation_window",
    "RestockPredictor",
    "ConfidenceScorer",
    "RankingEngine",
    "aggregate_sales_by_sku",
    "SnapshotCache",
    "snapshot_digest",
    "ForecastReport",
    "filter_predictions",
    "sort_predictions",
    "PredictiveInventoryEngine",
    "evaluate_data_sufficiency",
    "generate_predictions",
    "rank_best_sellers",
    "rank_slow_movers",
]
