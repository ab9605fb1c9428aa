from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "GameMetaSync"
    database_url: str = Field("sqlite:///gamemeta.db", alias="DATABASE_URL")
    debug: bool = Field(False, alias="DEBUG")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # identity
    jwt_secret: str = Field("dev-secret-change-me", alias="JWT_SECRET")
    token_ttl_seconds: int = Field(60 * 60 * 24 * 30, alias="TOKEN_TTL_SECONDS")
    admin_steam_ids: list[str] = Field(default_factory=list, alias="ADMIN_STEAM_IDS")

    # sync gateway
    batch_limit: int = Field(500, alias="BATCH_LIMIT")
    backend_url: str = Field("http://localhost:8000/api/v1", alias="BACKEND_URL")

    # client
    client_cache_url: str = Field("sqlite:///gamemeta_cache.db", alias="CLIENT_CACHE_URL")
    ttb_scan_delay_secs: float = Field(60.0, alias="TTB_SCAN_DELAY_SECS")
    tags_scan_delay_secs: float = Field(5.0, alias="TAGS_SCAN_DELAY_SECS")
    http_timeout_secs: float = Field(30.0, alias="HTTP_TIMEOUT_SECS")
    user_agent: str = Field("GameMetaSync/1.0", alias="USER_AGENT")


@lru_cache
def get_settings() -> Settings:
    return Settings()
