"""
Run the forecast over an export directory.

Usage: run-forecast data/exports --as-of 2024-06-30 --top-n 10
"""

import argparse
import logging
import sys
from datetime import date

import pandas as pd

from forecast_core.engine import PredictiveInventoryEngine
from forecast_core.logger import setup_logger
from forecast_core.settings import ForecastSettings

from .warehouse_export import WarehouseExportLoader

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a count >= 0, got {value}")
    return number


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Restock forecast for a warehouse export")
    parser.add_argument("data_dir", help="Directory holding products and inventory_transactions exports")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Forecast date (YYYY-MM-DD)")
    parser.add_argument("--top-n", type=_non_negative_int, default=None, help="Length of the ranked lists")
    parser.add_argument("--env-file", default=None, help="Optional .env with FORECAST_* settings")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logger(log_level=logging.DEBUG if args.verbose else logging.INFO)

    settings = ForecastSettings.from_env(args.env_file)
    if args.top_n is not None:
        settings = settings.model_copy(update={"top_n": args.top_n})

    loader = WarehouseExportLoader(
        args.data_dir, default_low_stock_threshold=settings.default_low_stock_threshold
    )
    try:
        snapshot = loader.load_all()
    except FileNotFoundError as e:
        logger.error(f"Cannot load export: {e}")
        return 1

    report = PredictiveInventoryEngine(settings).run(
        snapshot.items, snapshot.transactions, as_of=args.as_of
    )

    logger.info("\n--- Summary ---")
    for key, value in report.summary().items():
        logger.info(f"{key}: {value}")

    if not report.sufficiency.has_sufficient_data:
        return 0

    with pd.option_context("display.width", 160, "display.max_columns", 20):
        logger.info("\n--- Restock Predictions ---")
        logger.info(
            report.predictions_frame()[
                ["sku", "name", "current_stock", "daily_usage_rate", "days_until_restock",
                 "restock_urgency", "confidence", "suggested_order_quantity"]
            ].to_string(index=False)
        )
        logger.info("\n--- Best Sellers ---")
        logger.info(report.best_sellers_frame().to_string(index=False))
        logger.info("\n--- Slow Movers ---")
        logger.info(report.slow_movers_frame().to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
