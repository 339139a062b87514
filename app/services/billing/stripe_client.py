"""HTTP client for the Stripe API."""
import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.errors import ConfigurationError, UpstreamError
from app.services.billing.models import (
    StripeCharge,
    StripeCheckoutSession,
    StripeCustomer,
    StripePrice,
    StripeSetupIntent,
    StripeSubscription,
    StripeUsageRecord,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_BASE_URL = "https://api.stripe.com"


def encode_form(params: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested params into Stripe's bracketed form encoding."""
    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, dict):
                    pairs.extend(encode_form(item, item_name))
                else:
                    pairs.append((item_name, _form_value(item)))
        else:
            pairs.append((name, _form_value(value)))
    return pairs


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StripeClient:
    """Single-shot calls to the Stripe REST API. Nothing is retried."""

    def __init__(
        self,
        secret_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        model: Type[M],
        params: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> M:
        if not self.secret_key:
            logger.error("STRIPE_SECRET_KEY is not configured")
            raise ConfigurationError()

        headers = {"Authorization": f"Bearer {self.secret_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        form = dict(encode_form(params)) if params else None

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                if method == "GET":
                    response = await client.get(path, headers=headers, params=form)
                else:
                    response = await client.request(method, path, headers=headers, data=form)
            except httpx.HTTPError as e:
                logger.error(f"[STRIPE] Request error on {method} {path}: {e}")
                raise UpstreamError(0, str(e))

        if response.status_code not in (200, 201):
            logger.error(f"[STRIPE] API error: {response.status_code} - {response.text}")
            raise UpstreamError(
                response.status_code,
                response.text,
                message=_error_message(response),
            )

        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"[STRIPE] Unexpected response from {path}: {e}")
            raise UpstreamError(response.status_code, response.text)

    async def create_customer(
        self,
        email: Optional[str],
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> StripeCustomer:
        return await self._request(
            "POST",
            "/v1/customers",
            StripeCustomer,
            {"email": email, "metadata": metadata},
            idempotency_key=idempotency_key,
        )

    async def create_setup_intent(self, customer_id: str) -> StripeSetupIntent:
        return await self._request(
            "POST",
            "/v1/setup_intents",
            StripeSetupIntent,
            {
                "customer": customer_id,
                "payment_method_types": ["card"],
                "usage": "off_session",
            },
        )

    async def create_price(self, params: Dict[str, Any]) -> StripePrice:
        return await self._request("POST", "/v1/prices", StripePrice, params)

    async def create_subscription(self, params: Dict[str, Any]) -> StripeSubscription:
        return await self._request("POST", "/v1/subscriptions", StripeSubscription, params)

    async def retrieve_subscription(self, subscription_id: str) -> StripeSubscription:
        return await self._request(
            "GET", f"/v1/subscriptions/{subscription_id}", StripeSubscription
        )

    async def create_charge(self, params: Dict[str, Any]) -> StripeCharge:
        return await self._request("POST", "/v1/charges", StripeCharge, params)

    async def create_usage_record(
        self, subscription_item_id: str, quantity: int, timestamp: int
    ) -> StripeUsageRecord:
        return await self._request(
            "POST",
            f"/v1/subscription_items/{subscription_item_id}/usage_records",
            StripeUsageRecord,
            {"quantity": quantity, "timestamp": timestamp, "action": "increment"},
        )

    async def create_checkout_session(self, params: Dict[str, Any]) -> StripeCheckoutSession:
        return await self._request(
            "POST", "/v1/checkout/sessions", StripeCheckoutSession, params
        )

    async def retrieve_checkout_session(self, session_id: str) -> StripeCheckoutSession:
        return await self._request(
            "GET", f"/v1/checkout/sessions/{session_id}", StripeCheckoutSession
        )


def _error_message(response: httpx.Response) -> str:
    """Prefer Stripe's own error message over the raw body."""
    try:
        err = response.json()
    except ValueError:
        return f"{response.status_code} - {response.text}"
    if isinstance(err, dict) and isinstance(err.get("error"), dict):
        message = err["error"].get("message")
        if message:
            return f"{response.status_code} - Stripe error: {message}"
    return f"{response.status_code} - {response.text}"
