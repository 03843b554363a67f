"""Application configuration management using Pydantic Settings."""
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Get the directory where settings.py is located
BASE_DIR = Path(__file__).resolve().parent

class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Storefront Orders"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    # MongoDB
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = "storefront"
    mongodb_user_collection: str = "users"
    mongodb_order_collection: str = "orders"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1

    # Pricing
    tax_rate: float = Field(default=0.21, ge=0)
    free_shipping_threshold: float = Field(default=50000, ge=0)
    flat_shipping_cost: float = Field(default=1500, ge=0)
    currency: str = "USD"

    # Orders
    order_number_prefix: str = "ORD"
    order_number_max_attempts: int = Field(default=4, ge=1)
    delivery_lead_days: int = Field(default=7, ge=0)

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_publishable_key: str = Field(default="", description="Stripe publishable key")
    stripe_api_base: str = "https://api.stripe.com"
    stripe_timeout: float = 10.0

    # PDF rendering (headless Chromium conversion service)
    pdf_renderer_url: str = "http://localhost:3001"
    pdf_renderer_timeout: float = 15.0

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = Field(default="", description="SMTP username")
    smtp_password: str = Field(default="", description="SMTP password")
    smtp_from_email: str = Field(default="")
    admin_emails: Annotated[list[str], NoDecode] = Field(default_factory=list)
    client_url: str = "http://localhost:3000"

    # Rate Limiting
    rate_limit_requests: int = 60
    rate_limit_period: int = 60  # seconds

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file= BASE_DIR.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", "admin_emails", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Parse comma separated values from string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
