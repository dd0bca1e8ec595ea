from __future__ import annotations

from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_DATABASE_URL = "memory://"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field(..., alias="BOT_TOKEN")
    database_url: str = Field(..., alias="DATABASE_URL")
    tz: str = Field("Europe/Rome", alias="TZ")
    list_page_size: int = Field(15, alias="LIST_PAGE_SIZE", gt=0)
    db_timeout: float = Field(10.0, alias="DB_TIMEOUT", gt=0)
    health_log_hours: int = Field(3, alias="HEALTH_LOG_HOURS", gt=0)

    @property
    def zoneinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz)

    @property
    def uses_memory_store(self) -> bool:
        return self.database_url.startswith(MEMORY_DATABASE_URL)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
