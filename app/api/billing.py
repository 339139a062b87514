"""Billing API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from app.api.auth import current_account_id, require_auth
from app.api.errors import to_http_exception
from app.core.config import settings
from app.core.dependencies import get_billing_persistence, get_billing_reconciler
from app.core.errors import CallDashboardError
from app.services.billing.models import (
    BillingProfile,
    BillingSettingsInfo,
    CheckoutSessionRef,
    SubscriptionRef,
)
from app.services.billing.reconciler import BillingReconciler
from app.services.persistence.billing import BillingPersistenceService

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


class CreateCustomerRequest(BaseModel):
    account_id: Optional[str] = None
    email: Optional[str] = None


class SetupIntentRequest(BaseModel):
    customer_id: str = Field(min_length=1)


class CreateSubscriptionRequest(BaseModel):
    customer_id: str = Field(min_length=1)
    account_id: Optional[str] = None
    setup_fee_cents: Optional[int] = Field(default=None, ge=0)
    monthly_fee_cents: Optional[int] = Field(default=None, ge=0)
    usage_multiplier: Optional[float] = Field(default=None, gt=0)


class ReportUsageRequest(BaseModel):
    account_id: Optional[str] = None
    units: int = Field(gt=0)


class CheckoutRequest(BaseModel):
    amount_cents: Optional[int] = Field(default=None, gt=0)


class PaymentSuccessRequest(BaseModel):
    session_id: str = Field(min_length=1)


def get_base_url(request: Request) -> str:
    """Public base URL used in checkout redirects."""
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def ensure_own_account(requested: Optional[str], account_id: str) -> str:
    """Reject requests that name an account other than the signed-in one."""
    if requested and requested != account_id:
        logger.warning(f"[BILLING] Account {account_id} tried to act on {requested}")
        raise HTTPException(status_code=403, detail="Not allowed for this account")
    return account_id


@router.post("/api/billing/customers")
async def create_customer(
    body: CreateCustomerRequest,
    account_id: str = Depends(current_account_id),
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
):
    """Create the Stripe customer for an account (once per account)."""
    account_id = ensure_own_account(body.account_id, account_id)
    try:
        customer_id = await reconciler.create_customer(account_id, body.email)
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error creating customer: {e}")
        raise to_http_exception(e)
    return {"customerId": customer_id}


@router.post("/api/billing/setup-intents")
async def create_setup_intent(
    body: SetupIntentRequest,
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
):
    """Create a setup intent for saving a card."""
    try:
        client_secret = await reconciler.create_setup_intent(body.customer_id)
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error creating setup intent: {e}")
        raise to_http_exception(e)
    return {"clientSecret": client_secret}


@router.post("/api/billing/subscriptions", response_model=SubscriptionRef)
async def create_subscription(
    body: CreateSubscriptionRequest,
    account_id: str = Depends(current_account_id),
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
    persistence: BillingPersistenceService = Depends(get_billing_persistence),
):
    """Subscribe a customer; missing amounts come from the global billing settings."""
    account_id = ensure_own_account(body.account_id, account_id)
    billing_settings = await persistence.get_billing_settings()
    try:
        return await reconciler.create_subscription(
            customer_ref=body.customer_id,
            setup_fee_cents=(
                body.setup_fee_cents
                if body.setup_fee_cents is not None
                else billing_settings.setup_fee_cents
            ),
            monthly_fee_cents=(
                body.monthly_fee_cents
                if body.monthly_fee_cents is not None
                else billing_settings.monthly_fee_cents
            ),
            usage_multiplier=body.usage_multiplier or billing_settings.call_cost_multiplier,
            account_id=account_id,
        )
    except ValueError as e:
        logger.error(f"[BILLING] Invalid subscription amounts: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error creating subscription: {e}")
        raise to_http_exception(e)


@router.post("/api/billing/usage")
async def report_usage(
    body: ReportUsageRequest,
    account_id: str = Depends(current_account_id),
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
):
    """Record call usage; only billed once the account's credit is exhausted."""
    account_id = ensure_own_account(body.account_id, account_id)
    try:
        reported = await reconciler.record_call_usage(account_id, body.units)
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error reporting usage: {e}")
        raise to_http_exception(e)
    return {"success": True, "reported": reported}


@router.post("/api/billing/checkout-sessions", response_model=CheckoutSessionRef)
async def create_checkout_session(
    body: CheckoutRequest,
    request: Request,
    account_id: str = Depends(current_account_id),
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
):
    """Create a Stripe Checkout session for adding credit."""
    base_url = get_base_url(request)
    try:
        return await reconciler.create_checkout_session(
            account_id,
            success_url=f"{base_url}/billing?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/billing?payment=cancel",
            amount_cents=body.amount_cents,
        )
    except ValueError as e:
        logger.error(f"[BILLING] Invalid payment amount: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error creating payment session: {e}")
        raise to_http_exception(e)


@router.post("/api/billing/payment-success")
async def payment_success(
    body: PaymentSuccessRequest,
    reconciler: BillingReconciler = Depends(get_billing_reconciler),
):
    """Apply a completed checkout session to the account's credit balance."""
    try:
        profile = await reconciler.record_payment_success(body.session_id)
    except CallDashboardError as e:
        logger.error(f"[BILLING] Error handling payment success: {e}")
        raise to_http_exception(e)

    if profile is None:
        return {"success": False, "reason": "not_paid"}
    return {"success": True, "profile": profile.model_dump(mode="json")}


@router.get("/api/billing/settings", response_model=BillingSettingsInfo)
async def get_billing_settings(
    persistence: BillingPersistenceService = Depends(get_billing_persistence),
):
    """Global billing settings."""
    return BillingSettingsInfo.model_validate(await persistence.get_billing_settings())


@router.get("/api/billing/profile/{account_id}", response_model=BillingProfile)
async def get_billing_profile(
    account_id: str,
    session_account_id: str = Depends(current_account_id),
    persistence: BillingPersistenceService = Depends(get_billing_persistence),
):
    """Billing profile of an account."""
    ensure_own_account(account_id, session_account_id)
    profile = await persistence.get_profile(account_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Billing profile not found")
    return BillingProfile.model_validate(profile)
