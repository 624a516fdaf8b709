"""
Turns raw transaction and catalog rows into the engine's typed inputs.

Every integration names its fields differently (`created_at` vs `date`,
`product_id` vs `sku`, `transaction_type: outgoing` vs `kind: sale`). The
normalizer coalesces the known aliases, parses what it can and skips the
rest, counting every skipped row by reason. It never raises on bad rows.
"""

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date

import pandas as pd
from pydantic import BaseModel

from .parsers import DateParser, SKUNormalizer, map_to_objects
from .quality import DataQualityChecker, DataQualityReport
from .schemas import InventoryItem, TransactionEvent, TransactionKind

logger = logging.getLogger(__name__)

# Canonical field -> accepted source names, first present wins
FIELD_ALIASES: dict[str, list[str]] = {
    "sku": ["sku", "product_sku", "item_sku", "SKU"],
    "item_id": ["item_id", "itemId", "product_id", "productId"],
    "timestamp": ["timestamp", "date", "created_at", "createdAt", "transaction_date"],
    "quantity": ["quantity", "qty", "units"],
    "kind": ["kind", "type", "transaction_type", "transactionType"],
    "unit_price": ["unit_price", "unitPrice", "price"],
    "reference": ["reference", "id", "transaction_id"],
}

KIND_ALIASES: dict[str, TransactionKind] = {
    "sale": TransactionKind.SALE,
    "sold": TransactionKind.SALE,
    "outgoing": TransactionKind.SALE,
    "outbound": TransactionKind.SALE,
    "shipment": TransactionKind.SALE,
    "receipt": TransactionKind.RECEIPT,
    "received": TransactionKind.RECEIPT,
    "incoming": TransactionKind.RECEIPT,
    "inbound": TransactionKind.RECEIPT,
    "restock": TransactionKind.RECEIPT,
    "adjustment": TransactionKind.ADJUSTMENT,
    "adjust": TransactionKind.ADJUSTMENT,
    "correction": TransactionKind.ADJUSTMENT,
    "count": TransactionKind.ADJUSTMENT,
    "damage": TransactionKind.DAMAGE,
    "damaged": TransactionKind.DAMAGE,
    "loss": TransactionKind.DAMAGE,
    "writeoff": TransactionKind.DAMAGE,
    "write_off": TransactionKind.DAMAGE,
    "expired": TransactionKind.DAMAGE,
}

ITEM_FIELD_ALIASES: dict[str, list[str]] = {
    "id": ["id", "item_id", "itemId", "product_id"],
    "sku": ["sku", "SKU", "item_code"],
    "name": ["name", "product_name", "description"],
    "current_stock": ["current_stock", "currentStock", "stock", "quantity", "qty_on_hand"],
    "low_stock_threshold": ["low_stock_threshold", "lowStockThreshold", "reorder_level"],
    "unit_price": ["unit_price", "unitPrice", "price", "retail_price"],
}

SKIP_REASONS = [
    "malformed_record",
    "missing_sku",
    "missing_timestamp",
    "unparsable_timestamp",
    "invalid_quantity",
    "zero_quantity",
    "unknown_kind",
    "unresolved_item_id",
]


@dataclass
class NormalizationResult:
    """
    Normalized events plus what was dropped on the way.

    `unresolved_days` holds one date per otherwise valid record that names
    only an item id missing from the catalog. Those records cannot become
    per-SKU events but still count toward the warehouse's operating history.
    """

    events: list[TransactionEvent]
    skip_reasons: dict[str, int] = field(default_factory=dict)
    quality: DataQualityReport | None = None
    unresolved_days: list[date] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return sum(self.skip_reasons.values())

    @property
    def total_records(self) -> int:
        return len(self.events) + self.skipped


def has_value(value) -> bool:
    """False for None, NaN/NaT and blank strings."""
    if isinstance(value, str):
        return bool(value.strip())
    if value is None:
        return False
    if pd.api.types.is_scalar(value):
        return not pd.isna(value)
    return True


def as_text(value) -> str | None:
    """Identifier as a string; float ids from NaN-holed columns lose their `.0`."""
    if not has_value(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def coalesce(frame: pd.DataFrame, aliases: list[str]) -> pd.Series:
    """First non-blank value across the alias columns, row by row."""
    result = pd.Series(None, index=frame.index, dtype=object)
    for col in aliases:
        if col not in frame.columns:
            continue
        column = frame[col].astype(object)
        fill = result.isna() & column.map(has_value).astype(bool)
        result[fill] = column[fill]
    return result


def _records_to_frame(records) -> tuple[pd.DataFrame, int]:
    """Flatten mappings/models/DataFrames into one frame; count unusable records."""
    if isinstance(records, pd.DataFrame):
        return records.reset_index(drop=True), 0

    rows = []
    malformed = 0
    for record in records or []:
        if isinstance(record, BaseModel):
            rows.append(record.model_dump())
        elif isinstance(record, Mapping):
            rows.append(dict(record))
        else:
            malformed += 1
    return pd.DataFrame.from_records(rows) if rows else pd.DataFrame(), malformed


def _to_int(value) -> int | None:
    if value is None or not pd.api.types.is_scalar(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(round(number))


class TransactionNormalizer:
    """
    Maps heterogeneous transaction records onto `TransactionEvent`s.

    Usage:
        normalizer = TransactionNormalizer(item_skus={"p-1": "A100"})
        result = normalizer.normalize(raw_rows)
        result.events, result.skipped
    """

    def __init__(
        self,
        date_parser: DateParser | None = None,
        sku_normalizer: SKUNormalizer | None = None,
        item_skus: Mapping[str, str] | None = None,
    ):
        """
        Args:
            item_skus: Catalog item id -> SKU, for records that only carry an item id
        """
        self.date_parser = date_parser or DateParser()
        self.sku_normalizer = sku_normalizer or SKUNormalizer()
        self.item_skus = {
            str(item_id): sku for item_id, sku in (item_skus or {}).items()
        }

    def normalize(self, records) -> NormalizationResult:
        frame, malformed = _records_to_frame(records)
        skip_counts: Counter = Counter()
        if malformed:
            skip_counts["malformed_record"] = malformed

        if frame.empty:
            self._log_outcome(0, malformed, skip_counts)
            return NormalizationResult(
                events=[],
                skip_reasons=dict(skip_counts),
                quality=DataQualityReport(source_name="Transactions", total_rows=0),
            )

        df = pd.DataFrame({name: coalesce(frame, aliases) for name, aliases in FIELD_ALIASES.items()})

        df["sku_normalized"] = self.sku_normalizer.normalize_series(df["sku"])
        if self.item_skus:
            by_item = map_to_objects(df["item_id"], self._sku_for_item)
            df["sku_normalized"] = df["sku_normalized"].where(
                df["sku_normalized"].notna(), by_item
            )

        df["date_parsed"] = self.date_parser.parse_series(df["timestamp"])
        df["quantity_parsed"] = map_to_objects(df["quantity"], _to_int)
        df["kind_parsed"] = [
            self._resolve_kind(kind, qty)
            for kind, qty in zip(df["kind"], df["quantity_parsed"])
        ]
        df["skip_reason"] = self._skip_reasons(df)

        for reason, count in df["skip_reason"].value_counts().items():
            skip_counts[reason] += int(count)

        valid = df[df["skip_reason"].isna()]
        events = [
            self._build_event(row)
            for row in valid[
                ["sku_normalized", "date_parsed", "quantity_parsed", "kind_parsed", "unit_price", "reference"]
            ].itertuples(index=False)
        ]
        events.sort(
            key=lambda e: (e.timestamp, e.sku, e.kind.value, e.quantity, e.reference or "")
        )
        unresolved_days = sorted(df.loc[df["skip_reason"] == "unresolved_item_id", "date_parsed"])

        quality = self._check_quality(df)
        self._log_outcome(len(events), len(df) + malformed, skip_counts)
        return NormalizationResult(
            events=events,
            skip_reasons=dict(skip_counts),
            quality=quality,
            unresolved_days=unresolved_days,
        )

    def _sku_for_item(self, item_id) -> str | None:
        key = as_text(item_id)
        if key is None:
            return None
        sku = self.item_skus.get(key)
        return self.sku_normalizer.normalize(sku) if sku is not None else None

    @staticmethod
    def _resolve_kind(kind, quantity) -> TransactionKind | None:
        if isinstance(kind, TransactionKind):
            return kind
        if has_value(kind):
            return KIND_ALIASES.get(str(kind).strip().lower().replace("-", "_").replace(" ", "_"))
        # No kind recorded: the sign tells us the direction
        if not has_value(quantity) or quantity == 0:
            return None
        return TransactionKind.SALE if quantity < 0 else TransactionKind.RECEIPT

    @staticmethod
    def _skip_reasons(df: pd.DataFrame) -> pd.Series:
        missing_sku = df["sku_normalized"].isna()
        has_item_id = df["item_id"].map(has_value).astype(bool)
        conditions = [
            missing_sku & ~has_item_id,
            ~df["timestamp"].map(has_value).astype(bool),
            df["date_parsed"].isna(),
            df["quantity_parsed"].isna(),
            df["quantity_parsed"].map(lambda q: q == 0).astype(bool),
            df["kind_parsed"].isna(),
            # Checked last so only otherwise valid records land in unresolved_days
            missing_sku,
        ]
        # First matching condition names the reason
        reasons = pd.Series(None, index=df.index, dtype=object)
        for condition, reason in zip(conditions, SKIP_REASONS[1:]):
            reasons[reasons.isna() & condition] = reason
        return reasons

    @staticmethod
    def _build_event(row) -> TransactionEvent:
        sku, day, quantity, kind, unit_price, reference = row
        quantity = int(quantity)
        if kind in (TransactionKind.SALE, TransactionKind.DAMAGE):
            quantity = -abs(quantity)
        elif kind == TransactionKind.RECEIPT:
            quantity = abs(quantity)

        price = pd.to_numeric(unit_price, errors="coerce") if has_value(unit_price) else None
        if price is not None and (pd.isna(price) or price < 0 or not math.isfinite(price)):
            price = None

        return TransactionEvent(
            sku=sku,
            timestamp=day,
            quantity=quantity,
            kind=kind,
            unit_price=None if price is None else float(price),
            reference=as_text(reference),
        )

    def _check_quality(self, df: pd.DataFrame) -> DataQualityReport:
        checker = (
            DataQualityChecker("Transactions", required_columns=["sku_normalized", "timestamp"])
            .check_unparsed("timestamp", "date_parsed", issue_type="unparsable_timestamp")
            .check_unparsed("quantity", "quantity_parsed", issue_type="invalid_quantity")
            .check_invalid_values(
                "kind",
                validator=lambda v: isinstance(v, TransactionKind)
                or str(v).strip().lower().replace("-", "_").replace(" ", "_") in KIND_ALIASES,
            )
        )
        return checker.run(df)

    @staticmethod
    def _log_outcome(kept: int, total: int, skip_counts: Counter) -> None:
        skipped = sum(skip_counts.values())
        logger.info(f"Normalized {kept:,} of {total:,} transaction records")
        if skipped:
            detail = ", ".join(f"{reason}={count}" for reason, count in sorted(skip_counts.items()))
            logger.warning(f"Skipped {skipped:,} transaction records ({detail})")


def normalize_transactions(records, item_skus: Mapping[str, str] | None = None) -> NormalizationResult:
    """Shortcut for TransactionNormalizer(item_skus=...).normalize(records)."""
    return TransactionNormalizer(item_skus=item_skus).normalize(records)


def normalize_inventory_items(
    records: Iterable,
    default_low_stock_threshold: int = 10,
    sku_normalizer: SKUNormalizer | None = None,
) -> list[InventoryItem]:
    """
    Coerce catalog rows into `InventoryItem`s.

    Rows without a SKU are skipped, negative stock is clamped to zero and a
    repeated SKU keeps its first row. Each case is logged.
    """
    sku_normalizer = sku_normalizer or SKUNormalizer()
    items: list[InventoryItem] = []
    seen: set[str] = set()

    if isinstance(records, pd.DataFrame):
        records = records.to_dict("records")

    for position, record in enumerate(records or []):
        if isinstance(record, InventoryItem):
            item = record
        elif isinstance(record, Mapping):
            item = _item_from_mapping(record, position, default_low_stock_threshold)
            if item is None:
                continue
        else:
            logger.warning(f"Skipping catalog row {position}: not a mapping")
            continue

        key = sku_normalizer.normalize(item.sku)
        if key in seen:
            logger.warning(f"Duplicate SKU {item.sku!r} in catalog snapshot; keeping first row")
            continue
        seen.add(key)
        items.append(item)

    return items


def _item_from_mapping(record: Mapping, position: int, default_threshold: int) -> InventoryItem | None:
    values = {}
    for name, aliases in ITEM_FIELD_ALIASES.items():
        values[name] = next(
            (record[a] for a in aliases if a in record and has_value(record[a])), None
        )

    sku = values["sku"]
    if sku is None:
        logger.warning(f"Skipping catalog row {position}: missing SKU")
        return None
    if isinstance(sku, float) and sku.is_integer():
        sku = int(sku)
    sku = str(sku).strip()

    stock = _to_int(values["current_stock"]) or 0
    if stock < 0:
        logger.warning(f"Negative stock {stock} for SKU {sku!r}; treating as 0")
        stock = 0

    threshold = _to_int(values["low_stock_threshold"])
    if threshold is None or threshold < 0:
        threshold = default_threshold

    price = pd.to_numeric(values["unit_price"], errors="coerce") if values["unit_price"] is not None else 0.0
    if pd.isna(price) or price < 0 or not math.isfinite(price):
        price = 0.0

    return InventoryItem(
        id=as_text(values["id"]) or sku,
        sku=sku,
        name=str(values["name"]) if values["name"] is not None else "",
        current_stock=stock,
        low_stock_threshold=threshold,
        unit_price=float(price),
    )
