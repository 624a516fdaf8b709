import pytest

from forecast_core.reporting import filter_predictions, sort_predictions


@pytest.fixture
def predictions(engine, items, history):
    return engine.generate_predictions(items, history)


@pytest.mark.parametrize(
    "by, expected",
    [
        ("urgency", ["D400", "A100", "C300", "B200"]),
        ("name", ["C300", "B200", "D400", "A100"]),
        ("stock", ["D400", "A100", "C300", "B200"]),
        ("usage", ["A100", "C300", "D400", "B200"]),
        ("confidence", ["A100", "C300", "D400", "B200"]),
    ],
)
def test_sort_predictions(predictions, by, expected):
    assert [p.sku for p in sort_predictions(predictions, by=by)] == expected


def test_unknown_sort_key(predictions):
    with pytest.raises(ValueError, match="Unknown sort key"):
        sort_predictions(predictions, by="price")


def test_filter_by_search(predictions):
    assert [p.sku for p in filter_predictions(predictions, search="  WRAP")] == ["A100"]
    assert [p.sku for p in filter_predictions(predictions, search="c30")] == ["C300"]
    assert filter_predictions(predictions, search="nothing like this") == []


def test_filter_by_urgency_and_horizon(predictions):
    assert [p.sku for p in filter_predictions(predictions, urgency="normal")] == ["C300", "B200"]
    assert [p.sku for p in filter_predictions(predictions, within_days=7)] == ["D400", "A100"]
    assert filter_predictions(predictions) == predictions


def test_report_summary_and_frames(engine, items, history):
    report = engine.run(items, history + [{"sku": "A100", "date": "bad", "quantity": 1}])
    summary = report.summary()

    assert summary["as_of"] == "2024-02-04"
    assert summary["has_sufficient_data"] is True
    assert summary["predictions"] == 4
    assert summary["critical"] == 2
    assert summary["skipped_records"] == 1
    assert summary["unknown_skus"] == 0

    frame = report.predictions_frame()
    assert list(frame["sku"]) == ["D400", "A100", "C300", "B200"]
    assert {"days_until_restock", "restock_urgency", "confidence"} <= set(frame.columns)
    assert list(report.best_sellers_frame()["rank"]) == [1, 2, 3]
    assert len(report.slow_movers_frame()) == 4


def test_empty_frames_keep_columns(engine, items, short_history):
    report = engine.run(items, short_history)
    assert report.predictions_frame().empty
    assert "restock_urgency" in report.predictions_frame().columns
