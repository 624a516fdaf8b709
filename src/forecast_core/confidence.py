"""
Advisory reliability score for a forecast.

More observations raise confidence up to a cap; a spiky daily outflow
history pulls it down. The score never changes an urgency tier.
"""

import numpy as np


class ConfidenceScorer:
    """
    confidence = count_factor * history_factor * ((1 - w) + w / (1 + cv))

    - count_factor: min(1, transactions / full_confidence_transactions)
    - history_factor: min(1, days_with_data / required_days)
    - cv: coefficient of variation of daily outflow
    - w: variance_weight, how much of the score consistency can remove

    The engine only scores snapshots that passed the sufficiency gate, which
    uses the same required_days, so history_factor is always 1.0 there. It
    only discounts direct calls made on a shorter history.
    """

    def __init__(
        self,
        full_confidence_transactions: int = 30,
        required_days: int = 30,
        variance_weight: float = 0.5,
    ):
        self.full_confidence_transactions = full_confidence_transactions
        self.required_days = required_days
        self.variance_weight = variance_weight

    def score(self, transaction_count: int, days_with_data: int, outflow_cv: float) -> float:
        count_factor = min(1.0, max(0, transaction_count) / self.full_confidence_transactions)
        history_factor = min(1.0, max(0, days_with_data) / self.required_days)

        cv = float(outflow_cv) if np.isfinite(outflow_cv) and outflow_cv > 0 else 0.0
        consistency = 1.0 / (1.0 + cv)
        weight = self.variance_weight

        confidence = count_factor * history_factor * ((1 - weight) + weight * consistency)
        return round(float(np.clip(confidence, 0.0, 1.0)), 4)
