import logging

import pytest
from pydantic import ValidationError

from forecast_core.logger import PACKAGE_LOGGERS, setup_logger, teardown_logger
from forecast_core.settings import ForecastSettings


def test_defaults():
    settings = ForecastSettings()

    assert settings.required_days == 30
    assert (settings.critical_days, settings.warning_days) == (7, 14)
    assert settings.top_n == 5
    assert settings.lookback_days is None
    assert not settings.count_negative_adjustments


def test_tiers_must_be_ordered():
    with pytest.raises(ValidationError):
        ForecastSettings(critical_days=10, warning_days=5)


@pytest.mark.parametrize("field, value", [("required_days", 0), ("variance_weight", 1.5), ("top_n", -1)])
def test_bounds(field, value):
    with pytest.raises(ValidationError):
        ForecastSettings(**{field: value})


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FORECAST_TOP_N", "7")
    monkeypatch.setenv("FORECAST_COUNT_NEGATIVE_ADJUSTMENTS", "true")
    monkeypatch.setenv("FORECAST_LOOKBACK_DAYS", " ")

    settings = ForecastSettings.from_env(tmp_path / "missing.env")

    assert settings.top_n == 7
    assert settings.count_negative_adjustments is True
    assert settings.lookback_days is None


def test_from_env_reads_dotenv(monkeypatch, tmp_path):
    # Registered with monkeypatch so the value load_dotenv sets is removed afterwards
    monkeypatch.setenv("FORECAST_COVERAGE_DAYS", "")
    monkeypatch.delenv("FORECAST_COVERAGE_DAYS")
    env_file = tmp_path / ".env"
    env_file.write_text("FORECAST_COVERAGE_DAYS=21\n")

    assert ForecastSettings.from_env(env_file).coverage_days == 21


def test_from_env_rejects_bad_values(monkeypatch, tmp_path):
    monkeypatch.setenv("FORECAST_REQUIRED_DAYS", "soon")
    with pytest.raises(ValidationError):
        ForecastSettings.from_env(tmp_path / "missing.env")


def test_zero_top_n_is_allowed():
    assert ForecastSettings(top_n=0).top_n == 0


class TestSetupLogger:
    @pytest.fixture(autouse=True)
    def restore_package_loggers(self):
        yield
        for name in PACKAGE_LOGGERS:
            logger = logging.getLogger(name)
            teardown_logger(logger)
            logger.setLevel(logging.NOTSET)

    def test_package_loggers_write_rotating_file(self, tmp_path):
        core, clients = setup_logger(log_level=logging.DEBUG, log_dir=tmp_path)

        assert (core.name, clients.name) == PACKAGE_LOGGERS
        assert core.level == logging.DEBUG
        assert not any(getattr(h, "_forecast_handler", False) for h in logging.getLogger().handlers)

        logging.getLogger("forecast_core.engine").debug("engine ready")
        for handler in core.handlers:
            handler.flush()
        text = (tmp_path / "forecast.log").read_text()
        assert "DEBUG" in text
        assert "forecast_core.engine: engine ready" in text

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        (core, _) = setup_logger(log_dir=tmp_path)
        foreign = logging.NullHandler()
        core.addHandler(foreign)
        try:
            (again, _) = setup_logger(log_level=logging.WARNING, log_dir=tmp_path)

            assert again is core
            assert len(core.handlers) == 3
            assert foreign in core.handlers
            assert core.level == logging.WARNING
        finally:
            core.removeHandler(foreign)

    def test_console_prefixes_non_info_levels(self, tmp_path, capsys):
        setup_logger(log_dir=tmp_path)
        log = logging.getLogger("warehouse_clients.cli")

        log.info("--- Summary ---")
        log.warning("3 rows dropped")

        out = capsys.readouterr().out.splitlines()
        assert out == ["--- Summary ---", "[WARNING] 3 rows dropped"]
