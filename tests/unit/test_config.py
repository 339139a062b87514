"""Unit tests for application settings."""
from app.core.config import Settings


class TestSettings:
    """Test settings loading."""

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("RETELL_API_KEY", "env-retell-key")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_env")
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("BASE_CALL_COST_CENTS", "12.5")

        settings = Settings(_env_file=None)

        assert settings.retell_api_key == "env-retell-key"
        assert settings.stripe_secret_key == "sk_env"
        assert settings.base_call_cost_cents == "12.5"
        assert settings.billing_currency == "usd"
        assert settings.default_payment_amount_cents == 5000
        assert settings.http_timeout_seconds == 15.0

    def test_only_used_secrets_are_configurable(self):
        secret_fields = {name for name in Settings.model_fields if "secret" in name}

        assert secret_fields == {"stripe_secret_key"}
