"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Retell
    retell_api_key: str
    retell_base_url: str = "https://api.retellai.com"

    # Stripe
    stripe_secret_key: str
    stripe_base_url: str = "https://api.stripe.com"

    # Billing
    billing_currency: str = "usd"
    base_call_cost_cents: str = "10"  # decimal string, per metered unit
    default_payment_amount_cents: int = 5000
    billing_settings_file: Optional[str] = None

    # Database
    database_url: str

    # Dashboard auth
    dashboard_password: str = "changeme"

    # Server
    base_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000
    http_timeout_seconds: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
