import json
import logging

import pandas as pd
import pytest

from forecast_core import PredictiveInventoryEngine
from forecast_core.logger import PACKAGE_LOGGERS, teardown_logger
from forecast_core.settings import ForecastSettings
from warehouse_clients import WarehouseExportLoader
from warehouse_clients.cli import main

from .conftest import day

PRODUCTS_CSV = """id,sku,name,quantity,low_stock_threshold,unit_price
1,A100,Pallet Wrap,5,10,4.00
2,B200,Label Printer,50,10,10.00
3,C300,Box Cutter,-2,,2.50
"""


def write_transactions(directory, rows, envelope=True):
    payload = {"transactions": rows} if envelope else rows
    (directory / "inventory_transactions.json").write_text(json.dumps(payload))


def export_rows(days=35):
    rows = [
        {
            "id": offset + 1,
            "product_id": 1,
            "transaction_type": "outgoing",
            "quantity": 2,
            "created_at": f"{day(offset).isoformat()}T09:15:00.123456+00:00",
        }
        for offset in range(days)
    ]
    rows.append(
        {
            "id": days + 1,
            "product_id": 2,
            "transaction_type": "incoming",
            "quantity": 20,
            "created_at": f"{day(3).isoformat()}T12:00:00.000000+00:00",
        }
    )
    return rows


@pytest.fixture
def export_dir(tmp_path):
    (tmp_path / "products.csv").write_text(PRODUCTS_CSV)
    write_transactions(tmp_path, export_rows())
    return tmp_path


def test_load_all(export_dir):
    snapshot = WarehouseExportLoader(export_dir).load_all()

    assert [(i.id, i.sku, i.current_stock) for i in snapshot.items] == [
        ("1", "A100", 5),
        ("2", "B200", 50),
        ("3", "C300", 0),
    ]
    assert snapshot.items[2].low_stock_threshold == 10
    assert len(snapshot.transactions) == 36
    assert set(snapshot.quality_reports) == {"products", "transactions"}
    assert not snapshot.quality_reports["transactions"].has_critical_issues

    product_issues = {i.issue_type for i in snapshot.quality_reports["products"].issues}
    assert "outlier" in product_issues


def test_export_feeds_engine(export_dir):
    snapshot = WarehouseExportLoader(export_dir).load_all()
    engine = PredictiveInventoryEngine(ForecastSettings(cache_size=0))

    report = engine.run(snapshot.items, snapshot.transactions)
    predictions = {p.sku: p for p in report.predictions}

    assert report.sufficiency.has_sufficient_data
    assert predictions["A100"].daily_usage_rate == pytest.approx(2.0)
    assert predictions["A100"].restock_urgency == "critical"
    assert predictions["B200"].is_unbounded
    assert predictions["C300"].restock_urgency == "critical"
    assert [e.sku for e in report.best_sellers] == ["A100"]
    assert report.best_sellers[0].total_revenue == 280.0


def test_bare_json_list_and_unknown_types(tmp_path):
    (tmp_path / "products.csv").write_text(PRODUCTS_CSV)
    rows = export_rows(3) + [{"id": 99, "product_id": 1, "transaction_type": "teleport", "quantity": 1, "created_at": "2024-01-02"}]
    write_transactions(tmp_path, rows, envelope=False)

    snapshot = WarehouseExportLoader(tmp_path).load_all()

    assert len(snapshot.transactions) == 5
    invalid = [i for i in snapshot.quality_reports["transactions"].issues if i.issue_type == "invalid_value"]
    assert invalid[0].sample_values == ["teleport"]


def test_csv_transactions(tmp_path):
    (tmp_path / "products.csv").write_text(PRODUCTS_CSV)
    pd.DataFrame(export_rows(2)).to_csv(tmp_path / "inventory_transactions.csv", index=False)

    loader = WarehouseExportLoader(tmp_path)
    assert list(loader.load_transactions()["transaction_type"]) == ["outgoing", "outgoing", "incoming"]


def test_excel_products(tmp_path):
    pytest.importorskip("openpyxl")
    pd.DataFrame(
        [{"ID": 1, "SKU": "A100", "Name": "Pallet Wrap", "Stock": 5, "Unit Price": 4.0}]
    ).to_excel(tmp_path / "products.xlsx", index=False)

    products = WarehouseExportLoader(tmp_path).load_products()
    assert list(products.columns) == ["id", "sku", "name", "stock", "unit_price"]


def test_missing_export(tmp_path):
    with pytest.raises(FileNotFoundError, match="products.csv"):
        WarehouseExportLoader(tmp_path).load_all()


class TestCli:
    @pytest.fixture(autouse=True)
    def log_to_tmp(self, monkeypatch, tmp_path):
        monkeypatch.setattr("forecast_core.settings.LOG_DIR", tmp_path / "logs")
        yield
        for name in PACKAGE_LOGGERS:
            teardown_logger(logging.getLogger(name))
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_runs_forecast(self, export_dir, caplog):
        caplog.set_level("INFO")
        assert main([str(export_dir), "--top-n", "2", "--env-file", str(export_dir / "none.env")]) == 0
        assert "Restock Predictions" in caplog.text
        assert "A100" in caplog.text

    def test_insufficient_history(self, tmp_path, caplog):
        caplog.set_level("INFO")
        (tmp_path / "products.csv").write_text(PRODUCTS_CSV)
        write_transactions(tmp_path, export_rows(5))

        assert main([str(tmp_path), "--env-file", str(tmp_path / "none.env")]) == 0
        assert "Insufficient data" in caplog.text
        assert "Restock Predictions" not in caplog.text

    def test_missing_directory(self, tmp_path):
        assert main([str(tmp_path / "nowhere"), "--env-file", str(tmp_path / "none.env")]) == 1

    def test_zero_top_n_prints_empty_rankings(self, export_dir, caplog):
        caplog.set_level("INFO")
        assert main([str(export_dir), "--top-n", "0", "--env-file", str(export_dir / "none.env")]) == 0
        assert "Restock Predictions" in caplog.text
        assert "A100" in caplog.text

    def test_negative_top_n_is_a_usage_error(self, export_dir):
        with pytest.raises(SystemExit) as exc:
            main([str(export_dir), "--top-n", "-2"])
        assert exc.value.code == 2
