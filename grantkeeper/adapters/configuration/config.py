# grantkeeper/adapters/configuration/config.py

from typing import Optional, List, Union
from logging import getLevelName
from pydantic import Field, PostgresDsn, field_validator, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"

    # Environment
    ENVIRONMENT: str = "development"  # "development", "production", "testing"
    DEBUG: bool = False

    # Database
    DB_DRIVER: str = "asyncpg"
    POSTGRES_USER: str = "grantkeeper"
    POSTGRES_PASSWORD: str = "grantkeeper"
    POSTGRES_DB: str = "grantkeeper"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    TEST_MODE: bool = False
    TEST_POSTGRES_DB: str = ""
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Store behaviour
    STORE_TIMEOUT_SECONDS: float = 5.0
    SWEEP_INTERVAL_SECONDS: int = 3600

    # Client registry
    CLIENT_CACHE_TTL_SECONDS: float = 30.0

    # Grant and session lifetimes
    AUTHORIZATION_CODE_TTL_SECONDS: int = 600
    ACCESS_TOKEN_TTL_SECONDS: int = 3600
    REFRESH_TOKEN_TTL_SECONDS: int = 14 * 24 * 3600
    SESSION_TTL_SECONDS: int = 14 * 24 * 3600

    # Notification fan-out
    DELIVERY_TIMEOUT_SECONDS: float = 2.0
    CONNECTION_REGISTRY_SHARDS: int = 16

    # Auth
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ADMIN_TOKEN: str = "change-me-admin"
    CALLER_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:8000", "http://127.0.0.1:8000"]

    @field_validator("DATABASE_URL", mode="before")
    def assemble_db_url(cls, value, info):
        if value:
            return value

        data = info.data
        db_name = data.get("TEST_POSTGRES_DB") if data.get("TEST_MODE") else data.get("POSTGRES_DB")
        return str(PostgresDsn.build(
            scheme=f"postgresql+{data.get('DB_DRIVER', 'asyncpg')}",
            username=data["POSTGRES_USER"],
            password=data["POSTGRES_PASSWORD"],
            host=data["POSTGRES_HOST"],
            port=data["POSTGRES_PORT"],
            path=db_name,
        ))

    @field_validator("CORS_ORIGINS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """
        A CSV string ('a,b,c') becomes a list.
        Lists and JSON arrays are returned as they are.
        """
        if isinstance(v, str) and not v.startswith("["):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, str)):
            return v
        raise ValueError(f"Invalid CORS_ORIGINS: {v!r}")

    @field_validator("LOG_LEVEL", mode="before")
    def validate_log_level(cls, v: str) -> str:
        """Make sure the value is a valid logging level name."""
        lvl = v.upper()
        if not isinstance(getLevelName(lvl), int):
            raise ValueError(f"Invalid LOG_LEVEL: {v!r}")
        return lvl

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
