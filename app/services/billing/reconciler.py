"""Billing reconciler: Stripe customers, subscriptions, usage and credit balance."""
import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from app.core.errors import UpstreamError
from app.services.billing.models import (
    BillingProfile,
    CheckoutSessionRef,
    SubscriptionRef,
)
from app.services.billing.stripe_client import StripeClient
from app.services.persistence.billing import BillingPersistenceService

logger = logging.getLogger(__name__)

CALL_USAGE_PRICE_TYPE = "call_usage"
SUBSCRIPTION_PRICE_TYPE = "subscription"
BILLING_PERIOD = timedelta(days=30)


def _require_cents(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer number of cents")
    if value < 0:
        raise ValueError(f"{name} cannot be negative")
    return value


class BillingReconciler:
    """Keeps Stripe and the local billing profile consistent."""

    def __init__(
        self,
        stripe: StripeClient,
        persistence: BillingPersistenceService,
        currency: str = "usd",
        base_call_cost_cents: str = "10",
        default_payment_amount_cents: int = 5000,
    ):
        self.stripe = stripe
        self.persistence = persistence
        self.currency = currency
        self.base_call_cost_cents = Decimal(base_call_cost_cents)
        self.default_payment_amount_cents = default_payment_amount_cents

    async def create_customer(self, account_id: str, email: Optional[str]) -> str:
        """
        Create the Stripe customer for an account.

        An account that already has a customer reference gets it back without a
        new Stripe record, and the Stripe request is keyed by account id so a
        retried request cannot create a duplicate either.
        """
        profile = await self.persistence.get_profile(account_id)
        if profile is not None and profile.customer_ref:
            logger.info(
                f"[BILLING] Account {account_id} already has customer {profile.customer_ref}"
            )
            return profile.customer_ref

        customer = await self.stripe.create_customer(
            email=email,
            metadata={"user_id": account_id},
            idempotency_key=f"customer-{account_id}",
        )
        fields = {"customer_ref": customer.id}
        if profile is None or profile.next_billing_date is None:
            fields["next_billing_date"] = datetime.utcnow() + BILLING_PERIOD
        await self.persistence.upsert_profile(account_id, **fields)
        logger.info(f"[BILLING] Created Stripe customer: {customer.id}")
        return customer.id

    async def create_setup_intent(self, customer_ref: str) -> str:
        """Create a card setup intent and return its client secret."""
        setup_intent = await self.stripe.create_setup_intent(customer_ref)
        logger.info(f"[BILLING] Created setup intent {setup_intent.id}")
        return setup_intent.client_secret

    def metered_unit_amount(self, usage_multiplier: float) -> str:
        """Per-unit metered price in cents, as Stripe's decimal string."""
        amount = self.base_call_cost_cents * Decimal(str(usage_multiplier))
        return format(amount.normalize(), "f")

    async def create_subscription(
        self,
        customer_ref: str,
        setup_fee_cents: int,
        monthly_fee_cents: int,
        usage_multiplier: float,
        account_id: Optional[str] = None,
    ) -> SubscriptionRef:
        """Subscribe a customer to the monthly fee plus metered call usage."""
        _require_cents("setup_fee_cents", setup_fee_cents)
        _require_cents("monthly_fee_cents", monthly_fee_cents)
        if usage_multiplier <= 0:
            raise ValueError("usage_multiplier must be positive")

        metered_price = await self.stripe.create_price(
            {
                "unit_amount_decimal": self.metered_unit_amount(usage_multiplier),
                "currency": self.currency,
                "recurring": {"interval": "month", "usage_type": "metered"},
                "product_data": {"name": "Call Usage"},
                "metadata": {"type": CALL_USAGE_PRICE_TYPE},
            }
        )
        subscription_price = await self.stripe.create_price(
            {
                "unit_amount": monthly_fee_cents,
                "currency": self.currency,
                "recurring": {"interval": "month"},
                "product_data": {"name": "Monthly Subscription"},
                "metadata": {"type": SUBSCRIPTION_PRICE_TYPE},
            }
        )

        metadata = {"user_id": account_id} if account_id else {}
        subscription = await self.stripe.create_subscription(
            {
                "customer": customer_ref,
                "items": [
                    {"price": subscription_price.id},
                    {"price": metered_price.id},
                ],
                "payment_settings": {
                    "payment_method_types": ["card"],
                    "save_default_payment_method": "on_subscription",
                },
                "metadata": metadata,
            }
        )
        logger.info(f"[BILLING] Created subscription: {subscription.id}")

        setup_charge_id = None
        if setup_fee_cents > 0:
            charge = await self.stripe.create_charge(
                {
                    "amount": setup_fee_cents,
                    "currency": self.currency,
                    "customer": customer_ref,
                    "description": "Setup fee",
                }
            )
            setup_charge_id = charge.id
            logger.info(f"[BILLING] Charged setup fee {setup_fee_cents} cents: {charge.id}")

        if account_id:
            await self.persistence.upsert_profile(account_id, subscription_ref=subscription.id)

        return SubscriptionRef(subscription_id=subscription.id, setup_charge_id=setup_charge_id)

    async def find_usage_item(self, subscription_ref: str) -> Optional[str]:
        """Find the metered call-usage item of a subscription."""
        subscription = await self.stripe.retrieve_subscription(subscription_ref)
        for item in subscription.items.data:
            if item.price.metadata.get("type") == CALL_USAGE_PRICE_TYPE:
                return item.id
        return None

    async def report_usage(self, subscription_item_ref: str, quantity: int) -> None:
        """Increment the metered usage counter for the current period."""
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValueError("quantity must be a positive integer")
        await self.stripe.create_usage_record(
            subscription_item_ref, quantity, int(time.time())
        )
        logger.info(f"[BILLING] Reported usage: {quantity}")

    async def record_call_usage(self, account_id: str, units: int) -> bool:
        """
        Bill call usage against the account's credit.

        Usage goes to Stripe only once the credit balance is negative. Returns
        whether a usage record was sent.
        """
        profile = await self.persistence.get_profile(account_id)
        if profile is None or profile.credit_balance_cents >= 0:
            logger.debug(f"[BILLING] Account {account_id} still in credit, usage not reported")
            return False
        if not profile.subscription_ref:
            logger.warning(f"[BILLING] Account {account_id} is in debt but has no subscription")
            return False

        item_id = await self.find_usage_item(profile.subscription_ref)
        if item_id is None:
            logger.warning(
                f"[BILLING] Subscription {profile.subscription_ref} has no call usage item"
            )
            return False

        await self.report_usage(item_id, units)
        return True

    async def create_checkout_session(
        self,
        account_id: str,
        success_url: str,
        cancel_url: str,
        amount_cents: Optional[int] = None,
    ) -> CheckoutSessionRef:
        """Create a one-off payment checkout for adding credit."""
        if amount_cents is None:
            billing_settings = await self.persistence.get_billing_settings()
            amount_cents = (
                billing_settings.setup_fee_cents + billing_settings.monthly_fee_cents
            ) or self.default_payment_amount_cents
        _require_cents("amount_cents", amount_cents)

        session = await self.stripe.create_checkout_session(
            {
                "mode": "payment",
                "success_url": success_url,
                "cancel_url": cancel_url,
                "client_reference_id": account_id,
                "metadata": {"user_id": account_id},
                "line_items": [
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": amount_cents,
                            "product_data": {"name": "Account Credits"},
                        },
                        "quantity": 1,
                    }
                ],
            }
        )
        logger.info(f"[BILLING] Created checkout session {session.id} for {account_id}")
        return CheckoutSessionRef(session_id=session.id, url=session.url)

    async def record_payment_success(
        self, checkout_session_ref: str
    ) -> Optional[BillingProfile]:
        """
        Credit the account behind a paid checkout session.

        Returns None, without touching any profile, when the session is not paid.
        """
        session = await self.stripe.retrieve_checkout_session(checkout_session_ref)
        if (session.payment_status or "").lower() != "paid":
            logger.info(
                f"[BILLING] Checkout session {session.id} not paid ({session.payment_status})"
            )
            return None

        account_id = session.metadata.get("user_id") or session.client_reference_id
        if not account_id:
            raise UpstreamError(200, "Session missing user metadata")
        if session.amount_total is None:
            raise UpstreamError(200, "Session missing amount_total")

        profile = await self.persistence.upsert_profile(
            account_id,
            credit_balance_cents=int(session.amount_total),
            next_billing_date=datetime.utcnow() + BILLING_PERIOD,
        )
        logger.info(
            f"[BILLING] Credit balance for {account_id} set to {profile.credit_balance_cents} cents"
        )
        return BillingProfile.model_validate(profile)
