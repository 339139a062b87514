"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserBilling(Base):
    """Per-account billing profile."""

    __tablename__ = "user_billing"

    account_id = Column(String, primary_key=True, index=True)
    customer_ref = Column(String, nullable=True)
    subscription_ref = Column(String, nullable=True)
    credit_balance_cents = Column(Integer, default=0, nullable=False)
    next_billing_date = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class BillingSettings(Base):
    """Global billing settings (single row)."""

    __tablename__ = "billing_settings"

    id = Column(Integer, primary_key=True, index=True)
    setup_fee_cents = Column(Integer, default=0, nullable=False)
    monthly_fee_cents = Column(Integer, default=5000, nullable=False)
    call_cost_multiplier = Column(Float, default=3.0, nullable=False)
