"""
Loader for the warehouse application's data exports.

THIS FILE CONTAINS SOURCE-SPECIFIC LOGIC:
- File names and column names of the warehouse app's product and
  inventory_transactions tables
- Transaction types as the app stores them (incoming / outgoing / damaged)
- The JSON export envelope ({"transactions": [...]})

To adapt for another source system:
1. Copy this file as a template
2. Update the file names and column mappings
3. The forecast_core normalizer and quality checker can be reused as-is
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from forecast_core.normalizer import normalize_inventory_items
from forecast_core.parsers import DateParser
from forecast_core.quality import DataQualityChecker, DataQualityReport
from forecast_core.schemas import InventoryItem

logger = logging.getLogger(__name__)


@dataclass
class LoadedSnapshot:
    """Catalog and raw transaction history read from one export directory."""

    items: list[InventoryItem]
    transactions: pd.DataFrame
    quality_reports: dict[str, DataQualityReport] = field(default_factory=dict)


class WarehouseExportLoader:
    """
    Loads a snapshot exported from the warehouse application.

    Source quirks handled:
    - Products export as CSV or as an Excel sheet from the admin screen
    - Stock is stored in a `quantity` column on products
    - Transactions reference products by `product_id`, not SKU
    - `created_at` is a database timestamp with microseconds and offset
    - JSON exports wrap rows in a {"transactions": [...]} envelope
    """

    PRODUCT_FILES = ["products.csv", "products.xlsx"]
    TRANSACTION_FILES = ["inventory_transactions.csv", "inventory_transactions.json"]

    TRANSACTION_TYPES = {"incoming", "outgoing", "damaged", "adjustment"}

    def __init__(self, data_dir: Path | str, default_low_stock_threshold: int = 10):
        self.data_dir = Path(data_dir)
        self.default_low_stock_threshold = default_low_stock_threshold
        self.date_parser = DateParser()

    def load_all(self) -> LoadedSnapshot:
        """Load both exports and run quality checks on them."""
        products = self.load_products()
        transactions = self.load_transactions()

        quality_reports = {
            "products": self._check_product_quality(products),
            "transactions": self._check_transaction_quality(transactions),
        }
        for report in quality_reports.values():
            summary = report.summary()
            logger.info(
                f"{summary['source']}: {summary['total_rows']:,} rows, "
                f"{summary['critical']} critical / {summary['warnings']} warning issues"
            )

        items = normalize_inventory_items(
            products, default_low_stock_threshold=self.default_low_stock_threshold
        )
        return LoadedSnapshot(
            items=items, transactions=transactions, quality_reports=quality_reports
        )

    def load_products(self) -> pd.DataFrame:
        path = self._find(self.PRODUCT_FILES)
        if path.suffix == ".xlsx":
            df = pd.read_excel(path)
        else:
            df = pd.read_csv(path, encoding="utf-8-sig")

        df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
        # The app keeps on-hand units in `quantity`; `stock` is the newer name
        if "stock" not in df.columns and "quantity" in df.columns:
            df = df.rename(columns={"quantity": "stock"})
        logger.info(f"Loaded {len(df):,} products from {path.name}")
        return df

    def load_transactions(self) -> pd.DataFrame:
        path = self._find(self.TRANSACTION_FILES)
        if path.suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            rows = data.get("transactions", []) if isinstance(data, dict) else data
            df = pd.DataFrame(rows)
        else:
            df = pd.read_csv(path, encoding="utf-8-sig")

        df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
        logger.info(f"Loaded {len(df):,} transactions from {path.name}")
        return df

    def _find(self, candidates: list[str]) -> Path:
        for name in candidates:
            path = self.data_dir / name
            if path.exists():
                return path
        raise FileNotFoundError(
            f"None of {', '.join(candidates)} found in {self.data_dir}"
        )

    def _check_product_quality(self, df: pd.DataFrame) -> DataQualityReport:
        checker = DataQualityChecker("Products", required_columns=["sku"])
        checker.check_duplicates(["sku"], severity="critical")
        checker.check_outliers("stock", min_val=0, severity="critical")
        checker.check_outliers("low_stock_threshold", min_val=0, severity="warning")
        checker.check_outliers("unit_price", min_val=0, severity="warning")
        return checker.run(df)

    def _check_transaction_quality(self, df: pd.DataFrame) -> DataQualityReport:
        df = df.copy()
        date_col = "created_at" if "created_at" in df.columns else "date"
        if date_col in df.columns:
            df["date_parsed"] = self.date_parser.parse_series(df[date_col])

        checker = DataQualityChecker(
            "Inventory Transactions", required_columns=["product_id", date_col, "quantity"]
        )
        checker.check_unparsed(date_col, "date_parsed", issue_type="unparsable_timestamp")
        checker.check_invalid_values(
            "transaction_type", valid_values=self.TRANSACTION_TYPES, severity="warning"
        )
        # Quantities are stored unsigned; the type carries the direction
        checker.check_outliers("quantity", min_val=0, max_val=10_000, severity="warning")
        return checker.run(df)
