# src/propcalc/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # -----------------------------
    # Input limits (mirrors the form caps)
    # -----------------------------
    MAX_UNITS: int = Field(default=10)
    MAX_CARRY_TRANCHES: int = Field(default=5)

    # -----------------------------
    # JV waterfall defaults
    # -----------------------------
    JV_SPLIT_PCT: float = Field(default=50.0)
    JV_PAYBACK_MONTHS: int = Field(default=6)
    JV_REFI_MONTH: int = Field(default=4)
    JV_MONTHS_TO_PROJECT: int = Field(default=60)

    model_config = SettingsConfigDict(
        env_prefix="PROPCALC_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("JV_SPLIT_PCT", mode="before")
    @classmethod
    def _to_percent(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("split must be numeric or percent-like") from err
        if not (0.0 <= f <= 100.0):
            raise ValueError("split must be between 0 and 100")
        return f

    @field_validator(
        "MAX_UNITS",
        "MAX_CARRY_TRANCHES",
        "JV_MONTHS_TO_PROJECT",
        mode="before",
    )
    @classmethod
    def _positive_int(cls, v: Any) -> Any:
        i = int(v)
        if i <= 0:
            raise ValueError("limit must be > 0")
        return i


config = AppConfig()
