"""
Decides whether a snapshot holds enough history to forecast from.

The clock is warehouse-wide: a day counts when any SKU moved, because the
gate is about operational history, not per-product history.
"""

import logging
from collections.abc import Sequence
from datetime import date

from .schemas import DataSufficiencyResult, TransactionEvent

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_DAYS = 30


class DataSufficiencyEvaluator:
    """Hard gate in front of every forecast and ranking."""

    def __init__(self, required_days: int = DEFAULT_REQUIRED_DAYS):
        self.required_days = required_days

    def evaluate(
        self, events: Sequence[TransactionEvent], unresolved_days: Sequence[date] = ()
    ) -> DataSufficiencyResult:
        """
        Args:
            unresolved_days: Dates of valid records whose item could not be
                matched to a SKU; they count like any other transaction
        """
        days_with_data = len({event.timestamp for event in events} | set(unresolved_days))
        transaction_count = len(events) + len(unresolved_days)
        days_until_ready = max(0, self.required_days - days_with_data)
        has_sufficient_data = days_with_data >= self.required_days

        result = DataSufficiencyResult(
            has_sufficient_data=has_sufficient_data,
            days_with_data=days_with_data,
            days_until_ready=days_until_ready,
            message=self.message_for(days_with_data, transaction_count),
            transaction_count=transaction_count,
            required_days=self.required_days,
        )
        logger.debug(result.message)
        return result

    def message_for(self, days_with_data: int, transaction_count: int) -> str:
        if transaction_count == 0:
            return (
                "No transaction data available yet. "
                "Start recording stock movements to enable forecasts."
            )
        if days_with_data < self.required_days:
            remaining = self.required_days - days_with_data
            return (
                f"Insufficient data: {days_with_data}/{self.required_days} days collected "
                f"({transaction_count} transactions). {remaining} more days needed."
            )
        return (
            f"Sufficient data: {days_with_data} days collected "
            f"({transaction_count} transactions)."
        )

