import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Environment variable prefix for every tunable below, e.g. FORECAST_TOP_N=10
ENV_PREFIX = "FORECAST_"


class ForecastSettings(BaseModel):
    """
    Tunables for the forecasting pipeline.

    Defaults reproduce the warehouse application's behaviour; callers pass an
    instance explicitly, the engine never reads the environment on its own.
    """

    model_config = ConfigDict(frozen=True)

    # --- Sufficiency gate ---
    required_days: int = Field(default=30, gt=0)

    # --- Usage window ---
    min_window_days: int = Field(default=30, ge=0)
    lookback_days: int | None = Field(default=None, gt=0)
    count_negative_adjustments: bool = False

    # --- Urgency tiers (days of cover) ---
    critical_days: float = Field(default=7, ge=0)
    warning_days: float = Field(default=14, ge=0)
    default_low_stock_threshold: int = Field(default=10, ge=0)

    # --- Ordering ---
    coverage_days: int = Field(default=28, gt=0)  # four weeks of supply

    # --- Confidence ---
    full_confidence_transactions: int = Field(default=30, gt=0)
    variance_weight: float = Field(default=0.5, ge=0, le=1)

    # --- Rankings ---
    top_n: int = Field(default=5, ge=0)

    # --- Memoization ---
    cache_size: int = Field(default=32, ge=0)

    @model_validator(mode="after")
    def _check_tiers(self) -> "ForecastSettings":
        if self.warning_days < self.critical_days:
            raise ValueError("warning_days must be >= critical_days")
        return self

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> "ForecastSettings":
        """Build settings from FORECAST_* environment variables (and a .env file)."""
        load_dotenv(env_file or BASE_DIR / ".env")
        overrides = {}
        for name in cls.model_fields:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value is not None and value.strip() != "":
                overrides[name] = value.strip()
        return cls.model_validate(overrides)


# --- Logging ---
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
