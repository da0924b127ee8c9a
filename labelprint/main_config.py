"""Client configuration with environment variables and per-environment .env files."""
import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from labelprint.core.enums import Environment, LogFormat
from labelprint.core.rest_api import ClientConfig, PoolConfig, TimeoutConfig


# =============================================================================
# LOCAL DEBUG OVERRIDE - Change this to test other environments locally
# =============================================================================
LOCAL_ENV_OVERRIDE: Environment | None = None  # e.g., Environment.DEV


def get_env_file(override: Environment | None = None) -> str:
    """Get .env file path. Override only works when ENV=local."""
    env = os.getenv("ENV", Environment.LOCAL.value)
    if env == Environment.LOCAL.value and override:
        env = override.value
    return f".env_{env}"


ENV_FILE = get_env_file(LOCAL_ENV_OVERRIDE)


# =============================================================================
# Config Classes
# =============================================================================

class ServiceConfig(BaseSettings):
    """Label printer service origin and HTTP client tuning."""
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="LABEL_SERVICE_", extra="ignore")

    base_url: str = "http://localhost:3000"
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 30.0
    max_connections: int = 10
    max_keepalive: int = 5
    keepalive_expiry: float = 30.0
    http2: bool = False
    verify_ssl: bool = True

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.base_url,
            timeout=TimeoutConfig(
                connect=self.connect_timeout,
                read=self.read_timeout,
                write=self.write_timeout,
                pool=self.pool_timeout,
            ),
            pool=PoolConfig(
                max_connections=self.max_connections,
                max_keepalive=self.max_keepalive,
                keepalive_expiry=self.keepalive_expiry,
            ),
            http2=self.http2,
            verify_ssl=self.verify_ssl,
        )


class LoggingConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="LOG_", extra="ignore")

    level: str = "INFO"
    format: LogFormat = LogFormat.CONSOLE
    level_httpx: str = "WARNING"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    env: Environment = Field(default=Environment.LOCAL)
    app_name: str = Field(default="labelprint")
    debug: bool = Field(default=False)

    @field_validator("debug")
    @classmethod
    def _no_debug_in_prod(cls, v: bool, info) -> bool:
        if info.data.get("env") == Environment.PROD and v:
            raise ValueError(f"{info.field_name} cannot be True in production")
        return v

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PROD

    @property
    def is_local(self) -> bool:
        return self.env == Environment.LOCAL


# =============================================================================
# Lazy Loaders (cached)
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    return Settings()

@lru_cache
def get_service_config() -> ServiceConfig:
    return ServiceConfig()

@lru_cache
def get_logging_config() -> LoggingConfig:
    return LoggingConfig()
