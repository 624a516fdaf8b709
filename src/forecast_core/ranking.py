"""
Best-seller and slow-mover rankings.

Both lists are fully deterministic: every sort ends on the SKU, which is
unique in the catalog.
"""

from collections.abc import Mapping, Sequence

import pandas as pd

from .schemas import InventoryItem, Prediction, RankedSalesEntry, TransactionEvent, TransactionKind
from .usage import events_to_frame

TABLE_COLUMNS = ["id", "sku", "name", "current_stock", "total_sold", "total_revenue", "daily_usage_rate"]


def aggregate_sales_by_sku(
    events: Sequence[TransactionEvent], current_prices: Mapping[str, float]
) -> pd.DataFrame:
    """
    Sale totals per SKU.

    Revenue uses the price recorded on each sale and falls back to the
    item's current price when the sale carries none.

    Returns DataFrame indexed by SKU with:
    - total_sold (absolute units sold)
    - total_revenue
    - sale_count
    """
    frame = events_to_frame(events)
    sales = frame[(frame["kind"] == TransactionKind.SALE.value) & (frame["quantity"] < 0)].copy()
    if sales.empty:
        return pd.DataFrame(
            columns=["total_sold", "total_revenue", "sale_count"],
            index=pd.Index([], name="sku"),
        )

    fallback = sales["sku"].map(lambda sku: current_prices.get(sku, 0.0)).astype(float)
    sales["price"] = sales["unit_price"].astype(float).fillna(fallback)
    sales["revenue"] = sales["outflow"] * sales["price"]

    return sales.groupby("sku").agg(
        total_sold=("outflow", "sum"),
        total_revenue=("revenue", "sum"),
        sale_count=("outflow", "size"),
    )


class RankingEngine:
    """
    Ranks catalog items by units sold.

    `catalog` maps the SKU as it appears on normalized events to its item;
    events for SKUs outside the catalog are ignored.
    """

    def __init__(self, top_n: int = 5):
        self.top_n = top_n

    def sales_table(
        self,
        catalog: Mapping[str, InventoryItem],
        events: Sequence[TransactionEvent],
        predictions: Sequence[Prediction] = (),
    ) -> pd.DataFrame:
        """One row per catalog item, zero-filled for items that never sold."""
        prices = {key: item.unit_price for key, item in catalog.items()}
        totals = aggregate_sales_by_sku(events, prices)
        usage = {p.sku: p.daily_usage_rate for p in predictions}

        rows = []
        for key, item in catalog.items():
            sold = int(totals.at[key, "total_sold"]) if key in totals.index else 0
            revenue = float(totals.at[key, "total_revenue"]) if key in totals.index else 0.0
            rows.append(
                {
                    "id": item.id,
                    "sku": item.sku,
                    "name": item.name,
                    "current_stock": item.current_stock,
                    "total_sold": sold,
                    "total_revenue": round(revenue, 2),
                    "daily_usage_rate": usage.get(item.sku),
                }
            )
        return pd.DataFrame(rows, columns=TABLE_COLUMNS)

    def best_sellers(
        self,
        catalog: Mapping[str, InventoryItem],
        events: Sequence[TransactionEvent],
        predictions: Sequence[Prediction] = (),
        top_n: int | None = None,
    ) -> list[RankedSalesEntry]:
        table = self.sales_table(catalog, events, predictions)
        ranked = table[table["total_sold"] > 0].sort_values(
            ["total_sold", "total_revenue", "sku"], ascending=[False, False, True]
        )
        return self._to_entries(ranked.head(self.resolve_top_n(top_n)))

    def slow_movers(
        self,
        catalog: Mapping[str, InventoryItem],
        events: Sequence[TransactionEvent],
        predictions: Sequence[Prediction] = (),
        top_n: int | None = None,
    ) -> list[RankedSalesEntry]:
        # Items that never sold are the slowest movers, so nothing is filtered out
        table = self.sales_table(catalog, events, predictions)
        ranked = table.sort_values(
            ["total_sold", "current_stock", "sku"], ascending=[True, False, True]
        )
        return self._to_entries(ranked.head(self.resolve_top_n(top_n)))

    def resolve_top_n(self, top_n: int | None) -> int:
        """None means the configured default; 0 is a valid, empty request."""
        limit = self.top_n if top_n is None else top_n
        if limit < 0:
            raise ValueError(f"top_n must be >= 0, got {limit}")
        return limit

    @staticmethod
    def _to_entries(ranked: pd.DataFrame) -> list[RankedSalesEntry]:
        entries = []
        for position, row in enumerate(ranked.itertuples(index=False), start=1):
            entries.append(
                RankedSalesEntry(
                    rank=position,
                    id=row.id,
                    sku=row.sku,
                    name=row.name,
                    total_sold=int(row.total_sold),
                    total_revenue=float(row.total_revenue),
                    current_stock=int(row.current_stock),
                    daily_usage_rate=None if pd.isna(row.daily_usage_rate) else float(row.daily_usage_rate),
                )
            )
        return entries
