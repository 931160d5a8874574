import json
from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field, AnyUrl, field_validator


class Settings(BaseSettings):
    app_name: str = "Bank Reconciliation API"
    app_env: str = Field("development", alias="APP_ENV")
    app_url: AnyUrl | str = Field("http://localhost:3000", alias="APP_URL")
    api_url: AnyUrl | str = Field("http://localhost:8000", alias="API_URL")

    postgres_url: str = Field(..., alias="POSTGRES_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")

    # optional: both paths legal; required: review chain only; disabled: direct reconcile only
    approval_mode: Literal["optional", "required", "disabled"] = Field("optional", alias="RECON_APPROVAL_MODE")
    variance_threshold_percent: Decimal = Field(Decimal("10"), alias="RECON_VARIANCE_THRESHOLD_PERCENT")
    variance_absolute_threshold: Decimal | None = Field(None, alias="RECON_VARIANCE_ABSOLUTE_THRESHOLD")
    balance_tolerance: Decimal = Field(Decimal("0.01"), alias="RECON_BALANCE_TOLERANCE")
    currency_tolerances: dict[str, Decimal] = Field(default_factory=dict, alias="RECON_CURRENCY_TOLERANCES")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("currency_tolerances", mode="before")
    @classmethod
    def _parse_tolerances(cls, value):
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else {}
        return {str(k).upper(): v for k, v in (value or {}).items()}

    def tolerance_for(self, currency: str | None) -> Decimal:
        """Balanced-check epsilon for a currency, falling back to the global tolerance."""
        if currency and currency.upper() in self.currency_tolerances:
            return self.currency_tolerances[currency.upper()]
        return self.balance_tolerance


@lru_cache
def get_settings() -> Settings:
    return Settings()
