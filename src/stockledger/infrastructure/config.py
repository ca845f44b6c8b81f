"""Application settings, loaded from environment variables or a .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage
    DATA_DIR: Path = _DEFAULT_DATA_DIR

    # Ledger
    LEDGER_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    # Expiry sweeper
    ORDER_EXPIRATION_MINUTES: int = Field(default=30, gt=0)
    SWEEP_INTERVAL_MINUTES: int = Field(default=5, gt=0)
    AUTO_CANCEL_REASON: str = "PIX expired"
    EXPIRABLE_PAYMENT_METHOD: str = "pix"

    # Order service auto-cancel endpoint; the sweeper cancels in-process when unset
    BACKEND_URL: str = ""
    INTERNAL_API_TOKEN: str = ""
    CANCEL_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"

    @property
    def products_file(self) -> Path:
        return self.DATA_DIR / "products.json"

    @property
    def orders_file(self) -> Path:
        return self.DATA_DIR / "orders.json"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
