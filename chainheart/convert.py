"""Conversions between ORM rows and pydantic records.

Every function here is total and free of side effects: it reads the row
or input model it is given and builds a new object.
"""

from datetime import datetime
from typing import Optional

from chainheart.db.models import Campaign, CharityRequest, Donation, Transaction, Withdrawal
from chainheart.schemas import (
    CampaignCreate,
    CampaignRecord,
    CampaignStatus,
    CharityRequestCreate,
    CharityRequestRecord,
    DonationCreate,
    DonationRecord,
    RequestStatus,
    TransactionCreate,
    TransactionRecord,
    WithdrawalCreate,
    WithdrawalRecord,
)


def donation_row(data: DonationCreate, now: datetime) -> Donation:
    return Donation(
        tx_hash=data.tx_hash,
        donor_address=data.donor_address,
        charity_id=data.charity_id,
        charity_name=data.charity_name,
        campaign_id=data.campaign_id,
        campaign_title=data.campaign_title,
        amount=data.amount,
        amount_in_usd=data.amount_in_usd,
        timestamp=data.timestamp or now,
        block_number=data.block_number,
        message=data.message,
        is_anonymous=data.is_anonymous,
        created_at=now,
    )


def donation_record(row: Donation) -> DonationRecord:
    return DonationRecord(
        id=row.id,
        tx_hash=row.tx_hash,
        donor_address=row.donor_address,
        charity_id=row.charity_id,
        charity_name=row.charity_name,
        campaign_id=row.campaign_id,
        campaign_title=row.campaign_title,
        amount=row.amount,
        amount_in_usd=row.amount_in_usd,
        timestamp=row.timestamp,
        block_number=row.block_number,
        message=row.message,
        is_anonymous=bool(row.is_anonymous),
        created_at=row.created_at,
    )


def transaction_row(data: TransactionCreate, now: datetime) -> Transaction:
    return Transaction(
        tx_hash=data.tx_hash,
        from_address=data.from_address,
        to_address=data.to_address,
        amount=data.amount,
        type=data.type.value,
        status=data.status.value,
        charity_id=data.charity_id,
        campaign_id=data.campaign_id,
        block_number=data.block_number,
        timestamp=data.timestamp or now,
        metadata_json=data.metadata,
        created_at=now,
    )


def transaction_record(row: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        tx_hash=row.tx_hash,
        from_address=row.from_address,
        to_address=row.to_address,
        amount=row.amount,
        type=row.type,
        status=row.status,
        charity_id=row.charity_id,
        campaign_id=row.campaign_id,
        block_number=row.block_number,
        timestamp=row.timestamp,
        metadata=row.metadata_json,
        created_at=row.created_at,
    )


def withdrawal_row(data: WithdrawalCreate, now: datetime) -> Withdrawal:
    return Withdrawal(
        tx_hash=data.tx_hash,
        charity_id=data.charity_id,
        charity_name=data.charity_name,
        amount=data.amount,
        fee=data.fee,
        net_amount=data.net_amount,
        timestamp=data.timestamp or now,
        block_number=data.block_number,
        to_address=data.to_address,
        created_at=now,
    )


def withdrawal_record(row: Withdrawal) -> WithdrawalRecord:
    return WithdrawalRecord(
        id=row.id,
        tx_hash=row.tx_hash,
        charity_id=row.charity_id,
        charity_name=row.charity_name,
        amount=row.amount,
        fee=row.fee,
        net_amount=row.net_amount,
        timestamp=row.timestamp,
        block_number=row.block_number,
        to_address=row.to_address,
        created_at=row.created_at,
    )


def charity_request_row(
    data: CharityRequestCreate,
    verification_ref: str,
    logo_ref: Optional[str],
    now: datetime,
) -> CharityRequest:
    return CharityRequest(
        wallet_address=data.wallet_address,
        charity_name=data.charity_name,
        description=data.description,
        email=data.email,
        verification_document_url=verification_ref,
        website_url=data.website_url,
        logo_url=logo_ref,
        status=RequestStatus.PENDING.value,
        submitted_at=now,
    )


def charity_request_record(row: CharityRequest) -> CharityRequestRecord:
    return CharityRequestRecord(
        id=row.id,
        charity_name=row.charity_name,
        wallet_address=row.wallet_address,
        description=row.description,
        email=row.email,
        verification_document_url=row.verification_document_url,
        website_url=row.website_url,
        logo_url=row.logo_url,
        status=row.status,
        submitted_at=row.submitted_at,
    )


def campaign_row(data: CampaignCreate, now: datetime) -> Campaign:
    # Status on the input is ignored; new campaigns always start ACTIVE
    return Campaign(
        title=data.title,
        description=data.description,
        goal_amount=data.goal_amount,
        wallet_address=data.wallet_address,
        duration_days=data.duration_days,
        status=CampaignStatus.ACTIVE.value,
        charity_name=data.charity_name,
        created_at=now,
    )


def campaign_record(row: Campaign, raised_amount: str) -> CampaignRecord:
    return CampaignRecord(
        id=row.id,
        title=row.title,
        description=row.description,
        goal_amount=row.goal_amount,
        raised_amount=raised_amount,
        wallet_address=row.wallet_address,
        duration_days=row.duration_days,
        status=row.status,
        charity_name=row.charity_name,
        created_at=row.created_at,
    )
