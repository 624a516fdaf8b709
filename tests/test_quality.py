import pandas as pd
import pytest

from forecast_core.quality import DataQualityChecker, DataQualityReport, severity_for


@pytest.mark.parametrize(
    "pct, expected",
    [(0, "info"), (5, "info"), (5.1, "warning"), (20, "warning"), (20.1, "critical"), (100, "critical")],
)
def test_severity_for(pct, expected):
    assert severity_for(pct) == expected


@pytest.fixture
def products():
    return pd.DataFrame(
        {
            "sku": ["A1", "A2", None, "A1", "A5", "A6", "A7", "A8", "A9", "A10"],
            "stock": [5, -1, 3, 4, 2, 1, 0, 9, 8, 7],
            "kind": ["sale", "sale", "receipt", "teleport", "sale", "sale", None, "sale", "sale", "damage"],
            "price": [1.0] * 10,
        }
    )


def test_missing_required_column_values(products):
    report = DataQualityChecker("Products", required_columns=["sku"]).run(products)

    assert len(report.issues) == 1
    issue = report.issues[0]
    assert (issue.column, issue.issue_type, issue.count) == ("sku", "missing", 1)
    assert issue.severity == "warning"  # 10% of rows


def test_absent_required_column_counts_every_row(products):
    report = DataQualityChecker("Products", required_columns=["name"]).run(products)
    assert report.issues[0].count == 10
    assert report.has_critical_issues


def test_optional_columns_are_not_checked(products):
    products.loc[0, "price"] = None
    report = DataQualityChecker("Products").run(products)
    assert report.issues == []


def test_builders_chain_and_collect(products):
    report = (
        DataQualityChecker("Products", required_columns=["sku"])
        .check_duplicates(["sku"], severity="critical")
        .check_outliers("stock", min_val=0)
        .check_invalid_values("kind", valid_values={"sale", "receipt", "damage"})
        .run(products)
    )

    by_type = {issue.issue_type: issue for issue in report.issues}
    assert by_type["duplicate"].count == 1
    assert by_type["duplicate"].sample_values == ["A1"]
    assert by_type["outlier"].sample_values == [-1]
    assert by_type["invalid_value"].sample_values == ["teleport"]
    assert len(report.critical_issues) == 1
    assert report.summary() == {
        "source": "Products",
        "total_rows": 10,
        "critical": 1,
        "warnings": 3,
        "info": 0,
    }


def test_invalid_values_with_validator():
    df = pd.DataFrame({"qty": [1, 2, -3, 4]})
    report = DataQualityChecker("T").check_invalid_values("qty", validator=lambda v: v > 0).run(df)
    assert report.issues[0].count == 1


def test_check_unparsed():
    df = pd.DataFrame({"raw": ["2024-01-01", "bad", None], "parsed": ["x", None, None]})
    report = DataQualityChecker("T").check_unparsed("raw", "parsed", issue_type="unparsable_timestamp").run(df)

    issue = report.issues[0]
    assert issue.issue_type == "unparsable_timestamp"
    assert issue.count == 1
    assert issue.sample_values == ["bad"]


def test_checks_skip_missing_columns():
    df = pd.DataFrame({"a": [1]})
    report = (
        DataQualityChecker("T")
        .check_duplicates(["b"])
        .check_outliers("b", min_val=0)
        .check_invalid_values("b", valid_values={"x"})
        .check_unparsed("b", "c")
        .run(df)
    )
    assert report.issues == []


def test_empty_frame():
    report = DataQualityChecker("T", required_columns=["sku"]).run(pd.DataFrame())
    assert report == DataQualityReport(source_name="T", total_rows=0)
