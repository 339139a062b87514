"""Billing models and Stripe response schemas."""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class StripeObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)


class StripeCustomer(StripeObject):
    email: Optional[str] = None
    metadata: Dict[str, str] = {}


class StripeSetupIntent(StripeObject):
    client_secret: str = Field(min_length=1)


class StripePrice(StripeObject):
    metadata: Dict[str, str] = {}


class StripeSubscriptionItem(StripeObject):
    price: StripePrice


class StripeSubscriptionItems(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: List[StripeSubscriptionItem] = []


class StripeSubscription(StripeObject):
    customer: Optional[str] = None
    status: Optional[str] = None
    items: StripeSubscriptionItems = StripeSubscriptionItems()
    current_period_end: Optional[int] = None


class StripeCharge(StripeObject):
    amount: int
    status: Optional[str] = None


class StripeUsageRecord(StripeObject):
    quantity: int
    subscription_item: Optional[str] = None


class StripeCheckoutSession(StripeObject):
    url: Optional[str] = None
    payment_status: Optional[str] = None
    amount_total: Optional[int] = None
    client_reference_id: Optional[str] = None
    customer: Optional[str] = None
    metadata: Dict[str, str] = {}


class SubscriptionRef(BaseModel):
    """Result of creating a subscription."""

    subscription_id: str
    setup_charge_id: Optional[str] = None


class CheckoutSessionRef(BaseModel):
    session_id: str
    url: Optional[str] = None


class BillingProfile(BaseModel):
    """Per-account billing record; balances are integer cents."""

    model_config = ConfigDict(from_attributes=True)

    account_id: str
    customer_ref: Optional[str] = None
    subscription_ref: Optional[str] = None
    credit_balance_cents: int = 0
    next_billing_date: Optional[datetime] = None


class BillingSettingsInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    setup_fee_cents: int
    monthly_fee_cents: int
    call_cost_multiplier: float
