"""Unit tests for the Stripe client."""
import pytest

from app.core.errors import ConfigurationError, UpstreamError
from app.services.billing.stripe_client import StripeClient, encode_form


class TestEncodeForm:
    """Test Stripe's bracketed form encoding."""

    def test_nested_params(self):
        pairs = encode_form(
            {
                "customer": "cus_1",
                "items": [{"price": "price_a"}, {"price": "price_b"}],
                "payment_settings": {"payment_method_types": ["card"]},
                "metadata": {"user_id": "acct_1"},
                "skip": None,
                "flag": True,
            }
        )

        assert pairs == [
            ("customer", "cus_1"),
            ("items[0][price]", "price_a"),
            ("items[1][price]", "price_b"),
            ("payment_settings[payment_method_types][0]", "card"),
            ("metadata[user_id]", "acct_1"),
            ("flag", "true"),
        ]


class TestStripeClient:
    """Test requests and error handling."""

    async def test_create_customer_sends_idempotency_key(self, stripe_client, stripe_api):
        stripe_api.add("POST", "/v1/customers", json_body={"id": "cus_1", "email": "a@b.c"})

        customer = await stripe_client.create_customer(
            "a@b.c", {"user_id": "acct_1"}, idempotency_key="customer-acct_1"
        )

        assert customer.id == "cus_1"
        request = stripe_api.requests[-1]
        assert request.headers["Authorization"] == "Bearer sk_test_123"
        assert request.headers["Idempotency-Key"] == "customer-acct_1"
        assert stripe_api.last_form() == {"email": "a@b.c", "metadata[user_id]": "acct_1"}

    async def test_retrieve_checkout_session(self, stripe_client, stripe_api):
        stripe_api.add(
            "GET",
            "/v1/checkout/sessions/cs_1",
            json_body={"id": "cs_1", "payment_status": "paid", "amount_total": 5000},
        )

        session = await stripe_client.retrieve_checkout_session("cs_1")

        assert session.payment_status == "paid"
        assert session.amount_total == 5000
        assert stripe_api.requests[-1].method == "GET"

    async def test_stripe_error_message(self, stripe_client, stripe_api):
        stripe_api.add(
            "POST",
            "/v1/customers",
            status=402,
            json_body={"error": {"message": "Your card was declined."}},
        )

        with pytest.raises(UpstreamError) as exc_info:
            await stripe_client.create_customer("a@b.c", {})

        assert exc_info.value.status == 402
        assert exc_info.value.message == "402 - Stripe error: Your card was declined."
        assert "declined" in exc_info.value.body

    async def test_unexpected_shape(self, stripe_client, stripe_api):
        stripe_api.add("POST", "/v1/setup_intents", json_body={"id": "seti_1"})

        with pytest.raises(UpstreamError):
            await stripe_client.create_setup_intent("cus_1")

    async def test_missing_secret_key(self, stripe_api):
        client = StripeClient(secret_key=None, transport=stripe_api.transport)

        with pytest.raises(ConfigurationError):
            await client.create_setup_intent("cus_1")

        assert stripe_api.requests == []
