"""
Data quality checks for catalog and transaction feeds.

Bad rows never stop a forecast; they are skipped and described here so the
caller can show what was ignored and why. Every check reduces to a boolean
row mask, which `_issue_from_mask` turns into a `DataQualityIssue`.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import pandas as pd

Severity = Literal["critical", "warning", "info"]

Check = Callable[[pd.DataFrame], list["DataQualityIssue"]]


def severity_for(percentage: float) -> Severity:
    """Severity by share of affected rows."""
    if percentage > 20:
        return "critical"
    if percentage > 5:
        return "warning"
    return "info"


@dataclass
class DataQualityIssue:
    """One problem in one column of a feed."""

    column: str
    issue_type: str  # missing, unparsable_timestamp, invalid_quantity, invalid_value, outlier, duplicate
    severity: Severity
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Issues found in a single feed."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    def by_severity(self, severity: Severity) -> list[DataQualityIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return self.by_severity("critical")

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return self.by_severity("warning")

    @property
    def has_critical_issues(self) -> bool:
        return bool(self.critical_issues)

    def summary(self) -> dict:
        counts = Counter(issue.severity for issue in self.issues)
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": counts["critical"],
            "warnings": counts["warning"],
            "info": counts["info"],
        }


def _issue_from_mask(
    df: pd.DataFrame,
    mask: pd.Series,
    column: str,
    issue_type: str,
    description: str,
    severity: Severity | None = None,
    sample_column: str | None = None,
) -> list[DataQualityIssue]:
    """Zero or one issue for the rows selected by `mask`; severity defaults to share-based."""
    count = int(mask.sum())
    if count == 0:
        return []
    pct = count / len(df) * 100
    samples = df.loc[mask, sample_column].head(5).tolist() if sample_column else []
    return [
        DataQualityIssue(
            column=column,
            issue_type=issue_type,
            severity=severity or severity_for(pct),
            count=count,
            percentage=pct,
            sample_values=samples,
            description=description.format(count=count, pct=pct),
        )
    ]


class DataQualityChecker:
    """
    Collects issues from a list of checks over one DataFrame.

    Only `required_columns` are checked for missing values by default;
    optional fields (prices, references) are legitimately blank.

    Usage:
        report = (
            DataQualityChecker("Transactions", required_columns=["sku"])
            .check_outliers("quantity", min_val=0)
            .run(df)
        )
    """

    def __init__(self, source_name: str, required_columns: list[str] | None = None):
        self.source_name = source_name
        self.required_columns = list(required_columns or [])
        self._checks: list[Check] = [self._check_required_columns]

    def add_check(self, check_fn: Check) -> "DataQualityChecker":
        """Register a custom check. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def _check_required_columns(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        issues = []
        for col in self.required_columns:
            # An absent column means every row lacks the value
            mask = df[col].isna() if col in df.columns else pd.Series(True, index=df.index)
            issues += _issue_from_mask(
                df, mask, col, "missing", "{count:,} missing values ({pct:.1f}%)"
            )
        return issues

    def check_unparsed(
        self, original_col: str, parsed_col: str, issue_type: str = "unparsable"
    ) -> "DataQualityChecker":
        """Rows where a value was present but did not survive parsing."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if original_col not in df.columns or parsed_col not in df.columns:
                return []
            mask = df[original_col].notna() & df[parsed_col].isna()
            return _issue_from_mask(
                df, mask, original_col, issue_type, "{count:,} values couldn't be parsed",
                sample_column=original_col,
            )

        return self.add_check(check)

    def check_duplicates(self, key_columns: list[str], severity: Severity = "warning") -> "DataQualityChecker":
        """Rows repeating an earlier row's key; blank keys are not duplicates."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            present = [c for c in key_columns if c in df.columns]
            if not present:
                return []
            mask = df.duplicated(subset=present, keep="first") & df[present].notna().all(axis=1)
            return _issue_from_mask(
                df, mask, ", ".join(present), "duplicate", "{count:,} duplicate rows on key columns",
                severity=severity, sample_column=present[0],
            )

        return self.add_check(check)

    def check_invalid_values(
        self,
        column: str,
        valid_values: set | None = None,
        validator: Callable[[Any], bool] | None = None,
        severity: Severity = "warning",
    ) -> "DataQualityChecker":
        """Non-blank values outside `valid_values` (case-insensitive) or failing `validator`."""
        if valid_values:
            allowed = {str(v).strip().lower() for v in valid_values}

            def is_valid(value) -> bool:
                return str(value).strip().lower() in allowed

        elif validator:
            is_valid = validator
        else:
            return self

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            present = df[column].notna()
            valid = df[column].map(lambda v: bool(is_valid(v)) if pd.notna(v) else True).astype(bool)
            return _issue_from_mask(
                df, present & ~valid, column, "invalid_value", "{count:,} invalid values",
                severity=severity, sample_column=column,
            )

        return self.add_check(check)

    def check_outliers(
        self,
        column: str,
        min_val: float | None = None,
        max_val: float | None = None,
        severity: Severity = "warning",
    ) -> "DataQualityChecker":
        """Numeric values outside [min_val, max_val]; non-numeric values are ignored."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            values = pd.to_numeric(df[column], errors="coerce")
            low = values < min_val if min_val is not None else False
            high = values > max_val if max_val is not None else False
            mask = pd.Series(low | high, index=df.index).fillna(False).astype(bool)
            return _issue_from_mask(
                df, mask, column, "outlier", "{count:,} values outside expected range",
                severity=severity, sample_column=column,
            )

        return self.add_check(check)

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        if df.empty:
            return DataQualityReport(source_name=self.source_name, total_rows=len(df))

        issues = [issue for check_fn in self._checks for issue in check_fn(df)]
        return DataQualityReport(source_name=self.source_name, total_rows=len(df), issues=issues)
