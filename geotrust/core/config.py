from functools import lru_cache
from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore", populate_by_name=True)

    app_name: str = Field(default="GeoTrust API", alias="APP_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(default="sqlite+aiosqlite:///./geotrust.db", alias="DATABASE_URL")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # JWT
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    jwt_private_key: Optional[str] = Field(default=None, alias="JWT_PRIVATE_KEY_PEM")
    jwt_public_key: Optional[str] = Field(default=None, alias="JWT_PUBLIC_KEY_PEM")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expire_minutes: int = Field(default=120, alias="JWT_EXPIRE_MINUTES")
    jwt_issuer: Optional[str] = Field(default=None, alias="JWT_ISSUER")
    jwt_audience: Optional[str] = Field(default=None, alias="JWT_AUDIENCE")
    jwt_clock_skew_seconds: int = Field(default=30, alias="JWT_CLOCK_SKEW_SECONDS")

    cors_origins: List[AnyHttpUrl] = Field(default_factory=list, alias="CORS_ORIGINS")

    # External lookups
    ip_lookup_url: str = Field(default="https://ipapi.co", alias="IP_LOOKUP_URL")
    ip_lookup_timeout_seconds: float = Field(default=5.0, alias="IP_LOOKUP_TIMEOUT_SECONDS")
    # Peers allowed to set X-Forwarded-For; empty means the socket peer is the client.
    trusted_proxies: List[str] = Field(default_factory=list, alias="TRUSTED_PROXIES")
    opencage_api_key: Optional[str] = Field(default=None, alias="OPENCAGE_API_KEY")
    opencage_url: str = Field(default="https://api.opencagedata.com/geocode/v1/json", alias="OPENCAGE_URL")
    geocode_timeout_seconds: float = Field(default=5.0, alias="GEOCODE_TIMEOUT_SECONDS")

    # Hunt sessions
    history_ttl_seconds: int = Field(default=6 * 3600, alias="HISTORY_TTL_SECONDS")
    fix_rate_limit_window: int = Field(default=60, alias="FIX_RATE_LIMIT_WINDOW")
    fix_rate_limit_max: int = Field(default=120, alias="FIX_RATE_LIMIT_MAX")
    clues_per_game: int = Field(default=3, alias="CLUES_PER_GAME")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
