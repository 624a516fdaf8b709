"""
Parsers for the values that arrive from warehouse integrations.

Transaction feeds disagree on almost everything:
- Dates come as ISO timestamps (with microseconds and offsets), local
  date strings, epoch numbers or already-typed date objects
- SKUs carry stray whitespace, mixed case and vendor prefixes
- Product names differ in spacing and capitalisation
"""

import numbers
import re
import warnings
from datetime import date, datetime, timezone

import numpy as np
import pandas as pd

# Epoch values above this are milliseconds (year 5138 in seconds)
_EPOCH_MS_THRESHOLD = 1e11

_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]")


def map_to_objects(series: pd.Series, func) -> pd.Series:
    """
    Apply `func` elementwise into an object Series.

    Missing results stay `None`; `Series.map` on a string dtype would turn
    them into NaN.
    """
    return pd.Series([func(value) for value in series], index=series.index, dtype=object)


class DateParser:
    """
    Reduces anything date-like to a calendar day.

    Time of day is discarded. Timestamps with an offset keep the calendar
    day of that offset, so an event recorded at 23:30+02:00 stays on its
    local day.
    To extend: add format patterns to DATE_FORMATS.
    """

    # Ordered by specificity; ambiguous day/month strings resolve US-first
    DATE_FORMATS = [
        "%Y-%m-%d",      # ISO: 2024-07-25
        "%m/%d/%Y",      # US: 05/27/2024
        "%d-%m-%Y",      # EU: 25-08-2024
        "%m/%d/%y",      # US short: 03/21/24
        "%d/%m/%Y",      # EU slash: 25/08/2024
        "%d/%m/%y",      # EU short: 25/08/24
        "%Y/%m/%d",      # ISO slash: 2024/07/25
    ]

    def __init__(self, custom_formats: list[str] | None = None):
        """
        Args:
            custom_formats: Additional date formats to try (prepended to defaults)
        """
        self.formats = (custom_formats or []) + self.DATE_FORMATS
        self._cache: dict[str, date | None] = {}

    def parse(self, value) -> date | None:
        """Parse a single value, returning None when it is not a usable date."""
        if value is None or isinstance(value, (bool, np.bool_)):
            return None
        if isinstance(value, np.datetime64):
            value = pd.Timestamp(value)
        if isinstance(value, datetime):
            # Also covers pd.Timestamp; NaT is a datetime subclass
            return None if pd.isna(value) else value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, numbers.Real):
            return self._parse_epoch(value)
        if not isinstance(value, str):
            return None

        text = value.strip()
        if not text:
            return None
        if text in self._cache:
            return self._cache[text]

        result = self._parse_string(text)
        self._cache[text] = result
        return result

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of dates."""
        return map_to_objects(series, self.parse)

    def _parse_string(self, text: str) -> date | None:
        for fmt in self.formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

        # Full timestamps: 2024-05-01T10:00:00.435544+00:00, 2024-05-01 10:00:00Z
        if _ISO_PREFIX.match(text):
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                try:
                    stamp = pd.Timestamp(text)
                except ValueError:
                    return None
            return None if pd.isna(stamp) else stamp.date()

        return None

    @staticmethod
    def _parse_epoch(value: float) -> date | None:
        if pd.isna(value) or value <= 0:
            return None
        seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None


class SKUNormalizer:
    """
    Normalizes SKUs so catalog rows and transaction rows line up.

    The same normalizer is applied to both sides; predictions still report
    the catalog's own spelling of the SKU.

    Patterns handled:
    - " a100 " -> A100
    - SKU-A100 -> A100 (only when "SKU-" is configured as a prefix)
    - 000123 -> 123 (only when strip_leading_zeros is on)
    """

    def __init__(
        self,
        strip_prefixes: list[str] | None = None,
        strip_leading_zeros: bool = False,
        uppercase: bool = True,
    ):
        """
        Args:
            strip_prefixes: Prefixes to remove; none by default
            strip_leading_zeros: Whether to remove leading zeros from numeric SKUs
            uppercase: Whether to uppercase the result
        """
        # Longer prefixes first so "SKU-" wins over "SKU"
        self.prefixes = sorted(strip_prefixes or [], key=len, reverse=True)
        self.strip_leading_zeros = strip_leading_zeros
        self.uppercase = uppercase

    def normalize(self, sku) -> str | None:
        """Normalize a single SKU."""
        if sku is None or isinstance(sku, bool):
            return None
        if not isinstance(sku, str) and pd.api.types.is_scalar(sku) and pd.isna(sku):
            return None
        # Spreadsheet exports turn numeric SKUs into floats
        if isinstance(sku, float) and sku.is_integer():
            sku = int(sku)

        result = " ".join(str(sku).split())
        if not result:
            return None

        if self.uppercase:
            result = result.upper()

        for prefix in self.prefixes:
            prefix_check = prefix.upper() if self.uppercase else prefix
            if result.startswith(prefix_check) and len(result) > len(prefix_check):
                result = result[len(prefix_check):]
                break

        if self.strip_leading_zeros and result.isdigit():
            result = result.lstrip("0") or "0"

        return result

    def normalize_series(self, series: pd.Series) -> pd.Series:
        """Normalize an entire pandas Series of SKUs."""
        return map_to_objects(series, self.normalize)


class ProductNameNormalizer:
    """Case- and whitespace-insensitive product names, for search."""

    def __init__(self, lowercase: bool = True):
        self.lowercase = lowercase

    def normalize(self, name) -> str:
        if name is None or (isinstance(name, float) and pd.isna(name)):
            return ""
        result = " ".join(str(name).split())
        return result.lower() if self.lowercase else result
