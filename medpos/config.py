from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Pharmacy POS"
    ENVIRONMENT: str = "local"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./pharmacy.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 12 * 60
    PASSWORD_PBKDF2_ROUNDS: int = 200_000
    BOOTSTRAP_ADMIN_USERNAME: Optional[str] = None
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None

    # ==============================
    # Store identity (receipts)
    # ==============================
    STORE_NAME: str = "Medical Store"
    STORE_ADDRESS: str = ""
    STORE_PHONE: str = ""
    STORE_EMAIL: str = ""
    CURRENCY_SYMBOL: str = "Rs."

    # ==============================
    # Catalog
    # ==============================
    DEFAULT_REORDER_THRESHOLD: int = 10
    EXPIRING_SOON_DAYS: int = 30

    # ==============================
    # Pagination
    # ==============================
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200

    @property
    def cors_origins(self) -> list[str]:
        return [value.strip() for value in self.CORS_ORIGINS.split(",") if value.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in ("local", "development", "dev")


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
