"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---------------- DATABASE ----------------
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db: str = "atelier"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1
    mongodb_connect_retries: int = 3

    # ---------------- AUTH ----------------
    jwt_secret: str = "change-me-access-secret"
    jwt_refresh_secret: str = "change-me-refresh-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 15
    jwt_refresh_expire_days: int = 7

    # ---------------- APP ----------------
    app_name: str = "Atelier API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    cors_origins: List[str] = ["http://localhost:3000"]
    frontend_url: str = "http://localhost:3000"

    # ---------------- STRIPE ----------------
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_currency: str = "eur"
    stripe_webhook_tolerance: int = 300

    # ---------------- ASSETS ----------------
    azure_storage_connection_string: str = ""
    azure_storage_container_name: str = "atelier-assets"
    max_upload_bytes: int = 10 * 1024 * 1024
    max_inquiry_documents: int = 10
    max_project_images: int = 20
    max_project_plans: int = 20

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @computed_field
    @property
    def primary_frontend_url(self) -> str:
        # FRONTEND_URL may hold a comma separated list; redirects use the first one
        first = self.frontend_url.split(",")[0].strip()
        return first.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
