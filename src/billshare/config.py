from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    ocr_language: str = Field("ind", alias="BILLSHARE_OCR_LANGUAGE")
    store: Literal["memory", "file", "postgres"] = Field("file", alias="BILLSHARE_STORE")
    store_path: str = Field("~/.billshare/store.json", alias="BILLSHARE_STORE_PATH")
    store_slot: str = Field("savedBills", alias="BILLSHARE_STORE_SLOT")
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")
    rounding: Literal["display", "reconcile"] = Field("display", alias="BILLSHARE_ROUNDING")
    log_level: str = Field("INFO", alias="BILLSHARE_LOG_LEVEL")

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
