"""
Data contracts for the predictive inventory engine.

Every model is frozen: a computation never mutates its inputs and results can
be shared between callers (and cached) safely. Python attributes are
snake_case; the camelCase aliases match what the warehouse UI layer sends and
expects, so `model_dump(by_alias=True)` is ready for it.
"""

import math
from datetime import date
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Sentinel for "no detectable depletion trend"
UNBOUNDED_DAYS = math.inf

RestockUrgency = Literal["critical", "warning", "normal"]

URGENCY_ORDER: dict[str, int] = {"critical": 0, "warning": 1, "normal": 2}


class TransactionKind(str, Enum):
    """What a stock movement represents."""

    SALE = "sale"
    RECEIPT = "receipt"
    ADJUSTMENT = "adjustment"
    DAMAGE = "damage"


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        ser_json_inf_nan="constants",
    )


class InventoryItem(_Frozen):
    """One product row from the warehouse catalog snapshot."""

    id: str
    sku: str = Field(min_length=1)
    name: str = ""
    current_stock: int = Field(ge=0, alias="currentStock")
    low_stock_threshold: int = Field(default=10, ge=0, alias="lowStockThreshold")
    unit_price: float = Field(
        default=0.0,
        ge=0,
        alias="unitPrice",
        description="Current list price, used when a sale carries no price",
    )


class TransactionEvent(_Frozen):
    """A normalized stock movement for one SKU on one calendar day."""

    sku: str = Field(min_length=1)
    timestamp: date
    quantity: int = Field(description="Signed units: negative is outflow")
    kind: TransactionKind
    unit_price: float | None = Field(default=None, ge=0, alias="unitPrice")
    reference: str | None = None

    @property
    def outflow_units(self) -> int:
        return -self.quantity if self.quantity < 0 else 0


class DataSufficiencyResult(_Frozen):
    """Whether the snapshot holds enough operational history to forecast."""

    has_sufficient_data: bool = Field(alias="hasSufficientData")
    days_with_data: int = Field(ge=0, alias="daysWithData")
    days_until_ready: int = Field(ge=0, alias="daysUntilReady")
    message: str
    transaction_count: int = Field(default=0, ge=0, alias="transactionCount")
    required_days: int = Field(default=30, gt=0, alias="requiredDays")


class Prediction(_Frozen):
    """Restock forecast for a single inventory item."""

    item_id: str = Field(alias="itemId")
    sku: str
    name: str
    current_stock: int = Field(ge=0, alias="currentStock")
    low_stock_threshold: int = Field(default=10, ge=0, alias="lowStockThreshold")
    daily_usage_rate: float = Field(ge=0, alias="dailyUsageRate")
    weekly_usage_rate: float = Field(default=0.0, ge=0, alias="weeklyUsageRate")
    days_until_restock: float = Field(
        ge=0,
        alias="daysUntilRestock",
        description="Days of cover left; UNBOUNDED_DAYS when nothing is consumed",
    )
    predicted_restock_date: date | None = Field(
        default=None, alias="predictedRestockDate"
    )
    restock_urgency: RestockUrgency = Field(alias="restockUrgency")
    confidence: float = Field(ge=0, le=1)
    suggested_order_quantity: int = Field(
        default=0, ge=0, alias="suggestedOrderQuantity"
    )

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.days_until_restock)


class RankedSalesEntry(_Frozen):
    """A row of the best-seller or slow-mover list."""

    rank: int = Field(ge=1)
    id: str
    sku: str
    name: str
    total_sold: int = Field(ge=0, alias="totalSold")
    total_revenue: float = Field(ge=0, alias="totalRevenue")
    current_stock: int = Field(ge=0, alias="currentStock")
    daily_usage_rate: float | None = Field(default=None, ge=0, alias="dailyUsageRate")
