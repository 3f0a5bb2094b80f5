"""SQLAlchemy ORM models for the ledger, campaigns and charity requests.

Amounts are stored as text so the exact decimal string submitted by the
caller is what gets persisted.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Donation(Base):
    """Donation model (append-only)."""

    __tablename__ = "donations"
    __table_args__ = (
        UniqueConstraint("tx_hash", name="uq_donations_tx_hash"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(100), nullable=False)
    donor_address = Column(String(100), nullable=False, index=True)
    charity_id = Column(BigInteger, nullable=False, index=True)
    charity_name = Column(String(255), nullable=True)
    campaign_id = Column(BigInteger, nullable=True, index=True)
    campaign_title = Column(String(255), nullable=True)
    amount = Column(String(100), nullable=False)
    amount_in_usd = Column(String(100), nullable=True)
    timestamp = Column(DateTime, nullable=False)
    block_number = Column(BigInteger, nullable=True)
    message = Column(String(1000), nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Transaction(Base):
    """Transaction model (generalized ledger entry)."""

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("tx_hash", name="uq_transactions_tx_hash"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(100), nullable=False)
    from_address = Column(String(100), nullable=False, index=True)
    to_address = Column(String(100), nullable=True)
    amount = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False)  # donation, withdrawal, charity_registration, other
    status = Column(String(20), nullable=False, default="pending")  # pending, success, failed
    charity_id = Column(BigInteger, nullable=True)
    campaign_id = Column(BigInteger, nullable=True)
    block_number = Column(BigInteger, nullable=True)
    timestamp = Column(DateTime, nullable=False)
    metadata_json = Column("metadata", String(2000), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Withdrawal(Base):
    """Withdrawal model (charity payout)."""

    __tablename__ = "withdrawals"
    __table_args__ = (
        UniqueConstraint("tx_hash", name="uq_withdrawals_tx_hash"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(100), nullable=False)
    charity_id = Column(BigInteger, nullable=False, index=True)
    charity_name = Column(String(255), nullable=True)
    amount = Column(String(100), nullable=False)
    fee = Column(String(100), nullable=True)
    net_amount = Column(String(100), nullable=True)
    timestamp = Column(DateTime, nullable=False)
    block_number = Column(BigInteger, nullable=True)
    to_address = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CharityRequest(Base):
    """Charity registration request (PENDING, APPROVED, REJECTED)."""

    __tablename__ = "charity_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_address = Column(String(42), nullable=False)
    charity_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    email = Column(String(255), nullable=False)
    verification_document_url = Column(String(512), nullable=False)
    website_url = Column(String(512), nullable=True)
    logo_url = Column(String(512), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)


class Campaign(Base):
    """Fundraising campaign tied to a charity wallet."""

    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    goal_amount = Column(String(100), nullable=False, default="0")
    wallet_address = Column(String(42), nullable=False, index=True)
    duration_days = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE", index=True)  # ACTIVE, CLOSED
    charity_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
