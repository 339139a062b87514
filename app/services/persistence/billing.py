"""Billing persistence service."""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import BillingSettings, UserBilling

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path(__file__).parent / "data" / "billing_settings.yaml"

# Used when no seed file exists
DEFAULT_BILLING_SETTINGS = {
    "setup_fee_cents": 0,
    "monthly_fee_cents": 5000,
    "call_cost_multiplier": 3.0,
}

_UNSET = object()


class BillingPersistenceService:
    """Service for persisting billing profiles and global billing settings."""

    def __init__(self, db: AsyncSession, settings_file: Optional[str] = None):
        self.db = db
        self.settings_file = Path(settings_file) if settings_file else DEFAULT_SETTINGS_FILE

    async def get_profile(self, account_id: str) -> Optional[UserBilling]:
        """Get the billing profile for an account."""
        result = await self.db.execute(
            select(UserBilling).where(UserBilling.account_id == account_id)
        )
        return result.scalar_one_or_none()

    async def upsert_profile(
        self,
        account_id: str,
        customer_ref=_UNSET,
        subscription_ref=_UNSET,
        credit_balance_cents=_UNSET,
        next_billing_date=_UNSET,
    ) -> UserBilling:
        """
        Create or update the billing profile for an account.

        Only the fields that are passed are written. Concurrent writers are not
        coordinated: the last commit wins.
        """
        profile = await self.get_profile(account_id)
        if profile is None:
            profile = UserBilling(account_id=account_id, credit_balance_cents=0)
            self.db.add(profile)

        if customer_ref is not _UNSET:
            profile.customer_ref = customer_ref
        if subscription_ref is not _UNSET:
            profile.subscription_ref = subscription_ref
        if credit_balance_cents is not _UNSET:
            if not isinstance(credit_balance_cents, int) or isinstance(credit_balance_cents, bool):
                raise TypeError("credit_balance_cents must be an integer number of cents")
            profile.credit_balance_cents = credit_balance_cents
        if next_billing_date is not _UNSET:
            profile.next_billing_date = next_billing_date
        profile.updated_at = datetime.utcnow()

        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get_billing_settings(self) -> BillingSettings:
        """Get the global billing settings row, seeding it on first read."""
        result = await self.db.execute(
            select(BillingSettings).order_by(BillingSettings.id).limit(1)
        )
        row = result.scalar_one_or_none()
        if row is not None:
            return row

        values = self._load_seed()
        logger.info(f"[BILLING] Seeding billing settings: {values}")
        row = BillingSettings(**values)
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    def _load_seed(self) -> dict:
        """Load billing settings defaults from YAML."""
        values = dict(DEFAULT_BILLING_SETTINGS)
        if self.settings_file.exists():
            with open(self.settings_file, "r") as f:
                data = yaml.safe_load(f) or {}
            for key in DEFAULT_BILLING_SETTINGS:
                if key in data:
                    values[key] = data[key]
        values["setup_fee_cents"] = int(values["setup_fee_cents"])
        values["monthly_fee_cents"] = int(values["monthly_fee_cents"])
        values["call_cost_multiplier"] = float(values["call_cost_multiplier"])
        return values
