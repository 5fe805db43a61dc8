from __future__ import annotations

import json
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable
from zoneinfo import ZoneInfo

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "HKD": 0.128,
    "JPY": 0.0067,
}


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "BeanBook"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TZ: str = "UTC"

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))
    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7
    AUTH_ALLOW_API_KEY: bool = True
    # Account scope used for API-key and open (no key configured) access.
    DEFAULT_ACCOUNT: str = "default"
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)

    DB_URL: str = Field(
        default="",
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    BASE_CURRENCY: str = "USD"
    # Units of BASE_CURRENCY per one unit of the keyed currency.
    EXCHANGE_RATES: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_EXCHANGE_RATES))

    @property
    def local_tz(self) -> ZoneInfo:
        return ZoneInfo(self.TZ or "UTC")

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")

    @field_validator("BASE_CURRENCY", mode="before")
    @classmethod
    def normalize_base_currency(cls, value: Any) -> str:
        return str(value or "USD").strip().upper()

    @field_validator("EXCHANGE_RATES", mode="before")
    @classmethod
    def parse_exchange_rates(cls, value: Any) -> dict[str, float]:
        if value in (None, "", {}):
            return dict(DEFAULT_EXCHANGE_RATES)
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, dict):
            raise TypeError("EXCHANGE_RATES must be a JSON object or mapping")
        rates = {str(code).strip().upper(): float(rate) for code, rate in value.items()}
        for code, rate in rates.items():
            if rate <= 0:
                raise ValueError(f"exchange rate for {code} must be positive")
        return rates

    @model_validator(mode="after")
    def default_db_url(self) -> "AppSettings":
        if not self.DB_URL:
            self.DB_URL = f"sqlite:///{self.DATA_DIR / 'beanbook.db'}"
        return self


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


def local_today(now: datetime | None = None) -> date:
    """Current calendar date in the configured timezone.

    Request handlers call this once and hand the value to the pure
    freshness/cost helpers, which never read the clock themselves.
    """

    tz = get_settings().local_tz
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return current.date()


settings = get_settings()
