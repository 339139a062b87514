"""FastAPI dependencies."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.database import get_db
from app.services.agents.directory import AgentDirectory
from app.services.billing.reconciler import BillingReconciler
from app.services.billing.stripe_client import StripeClient
from app.services.persistence.billing import BillingPersistenceService
from app.services.retell.client import RetellClient


def get_retell_client() -> RetellClient:
    """Get call provider client."""
    return RetellClient(
        api_key=settings.retell_api_key,
        base_url=settings.retell_base_url,
        timeout=settings.http_timeout_seconds,
    )


def get_agent_directory(
    client: RetellClient = Depends(get_retell_client),
) -> AgentDirectory:
    """Get an agent directory for one request."""
    return AgentDirectory(client)


def get_stripe_client() -> StripeClient:
    """Get payment processor client."""
    return StripeClient(
        secret_key=settings.stripe_secret_key,
        base_url=settings.stripe_base_url,
        timeout=settings.http_timeout_seconds,
    )


def get_billing_persistence(
    db: AsyncSession = Depends(get_db),
) -> BillingPersistenceService:
    """Get billing persistence service."""
    return BillingPersistenceService(db, settings_file=settings.billing_settings_file)


def get_billing_reconciler(
    stripe: StripeClient = Depends(get_stripe_client),
    persistence: BillingPersistenceService = Depends(get_billing_persistence),
) -> BillingReconciler:
    """Get billing reconciler."""
    return BillingReconciler(
        stripe=stripe,
        persistence=persistence,
        currency=settings.billing_currency,
        base_call_cost_cents=settings.base_call_cost_cents,
        default_payment_amount_cents=settings.default_payment_amount_cents,
    )
