"""Pydantic models for ledger input and output records.

Wire names are camelCase (``txHash``, ``donorAddress``); Python names are
snake_case. Both spellings are accepted on input.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from chainheart.errors import ValidationError
from chainheart.utils.formatting import format_amount, parse_amount, subtract_amounts, to_naive_utc


class TransactionType(str, Enum):
    """Transaction type enumeration."""
    DONATION = "donation"
    WITHDRAWAL = "withdrawal"
    CHARITY_REGISTRATION = "charity_registration"
    OTHER = "other"


class TransactionStatus(str, Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class RequestStatus(str, Enum):
    """Charity request status enumeration."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CampaignStatus(str, Enum):
    """Campaign status enumeration."""
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class CamelModel(BaseModel):
    """Base model using camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


ModelT = TypeVar("ModelT", bound=BaseModel)

# Matches the width of the amount columns
AMOUNT_MAX_LENGTH = 100


def _coerce_amount(value: Any) -> Any:
    # Integers are exact; floats are not accepted anywhere for money
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _require_text(value: str, field: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{field} must not be empty")
    return value


# =============================================================================
# Input records
# =============================================================================

class DonationCreate(CamelModel):
    """A donation as submitted by a caller."""

    tx_hash: str
    donor_address: str
    charity_id: int
    charity_name: Optional[str] = None
    campaign_id: Optional[int] = None
    campaign_title: Optional[str] = None
    amount: str = Field(max_length=AMOUNT_MAX_LENGTH)
    amount_in_usd: Optional[str] = Field(default=None, alias="amountInUSD", max_length=AMOUNT_MAX_LENGTH)
    timestamp: Optional[datetime] = None
    block_number: Optional[int] = None
    message: Optional[str] = Field(default=None, max_length=1000)
    is_anonymous: bool = False

    @field_validator("amount", "amount_in_usd", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("tx_hash")
    @classmethod
    def tx_hash_required(cls, v: str) -> str:
        return _require_text(v, "txHash")

    @field_validator("donor_address")
    @classmethod
    def donor_required(cls, v: str) -> str:
        return _require_text(v, "donorAddress")

    @field_validator("amount", "amount_in_usd")
    @classmethod
    def decimal_amount(cls, v: Optional[str]) -> Optional[str]:
        """Amounts must parse as decimals; the trimmed string is kept."""
        if v is not None:
            parse_amount(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def utc_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v

    @field_validator("is_anonymous", mode="before")
    @classmethod
    def anonymous_default(cls, v: Any) -> Any:
        return False if v is None else v


class TransactionCreate(CamelModel):
    """A generalized ledger entry as submitted by a caller."""

    tx_hash: str
    from_address: str
    to_address: Optional[str] = None
    amount: str = Field(max_length=AMOUNT_MAX_LENGTH)
    type: TransactionType
    status: TransactionStatus = TransactionStatus.PENDING
    charity_id: Optional[int] = None
    campaign_id: Optional[int] = None
    block_number: Optional[int] = None
    timestamp: Optional[datetime] = None
    metadata: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_as_text(cls, v: Any) -> Any:
        if isinstance(v, (dict, list)):
            return json.dumps(v, sort_keys=True)
        return v

    @field_validator("tx_hash")
    @classmethod
    def tx_hash_required(cls, v: str) -> str:
        return _require_text(v, "txHash")

    @field_validator("from_address")
    @classmethod
    def sender_required(cls, v: str) -> str:
        return _require_text(v, "fromAddress")

    @field_validator("amount")
    @classmethod
    def decimal_amount(cls, v: str) -> str:
        parse_amount(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def utc_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v


class WithdrawalCreate(CamelModel):
    """A charity withdrawal as submitted by a caller."""

    tx_hash: str
    charity_id: int
    charity_name: Optional[str] = None
    amount: str = Field(max_length=AMOUNT_MAX_LENGTH)
    fee: Optional[str] = Field(default=None, max_length=AMOUNT_MAX_LENGTH)
    net_amount: Optional[str] = Field(default=None, max_length=AMOUNT_MAX_LENGTH)
    timestamp: Optional[datetime] = None
    block_number: Optional[int] = None
    to_address: Optional[str] = None

    @field_validator("amount", "fee", "net_amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("tx_hash")
    @classmethod
    def tx_hash_required(cls, v: str) -> str:
        return _require_text(v, "txHash")

    @field_validator("amount", "fee", "net_amount")
    @classmethod
    def decimal_amount(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_amount(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def utc_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode="after")
    def net_matches_fee(self) -> "WithdrawalCreate":
        """netAmount must equal amount - fee; it is derived when omitted."""
        if self.fee is None:
            return self
        expected = subtract_amounts(parse_amount(self.amount), parse_amount(self.fee))
        if expected < 0:
            raise ValueError("fee must not exceed amount")
        if self.net_amount is None:
            self.net_amount = format_amount(expected)
        elif parse_amount(self.net_amount) != expected:
            raise ValueError(
                f"netAmount {self.net_amount} does not equal amount - fee ({format_amount(expected)})"
            )
        return self


class CharityRequestCreate(CamelModel):
    """Registration form fields of a charity request."""

    charity_name: str = Field(alias="name")
    wallet_address: str = Field(alias="wallet", max_length=42)
    description: str
    email: str
    website_url: Optional[str] = None

    @field_validator("charity_name", "wallet_address", "description")
    @classmethod
    def text_required(cls, v: str, info) -> str:
        return _require_text(v, info.field_name)

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        if "@" not in (v or ""):
            raise ValueError("email must be a valid address")
        return v.strip()


class CharityRequestUpdate(CamelModel):
    """Editable details of a charity request; omitted fields are kept."""

    charity_name: Optional[str] = Field(default=None, alias="name")
    wallet_address: Optional[str] = Field(default=None, alias="wallet", max_length=42)
    description: Optional[str] = None
    email: Optional[str] = None
    website_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and "@" not in v:
            raise ValueError("email must be a valid address")
        return v

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


class CampaignCreate(CamelModel):
    """A campaign as submitted by a caller.

    ``status`` and ``raisedAmount`` are accepted for compatibility but
    ignored: new campaigns are always ACTIVE and the raised amount is
    derived from recorded donations.
    """

    title: str
    description: Optional[str] = None
    goal_amount: str = Field(default="0", max_length=AMOUNT_MAX_LENGTH)
    wallet_address: str
    duration_days: Optional[int] = None
    status: Optional[str] = None
    raised_amount: Optional[Union[str, int, float]] = None
    charity_name: Optional[str] = None

    @field_validator("goal_amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("wallet_address")
    @classmethod
    def wallet_required(cls, v: str) -> str:
        return _require_text(v, "walletAddress")

    @field_validator("goal_amount")
    @classmethod
    def decimal_amount(cls, v: str) -> str:
        parse_amount(v)
        return v


# =============================================================================
# Output records
# =============================================================================

class DonationRecord(CamelModel):
    """A stored donation."""

    id: int
    tx_hash: str
    donor_address: str
    charity_id: int
    charity_name: Optional[str] = None
    campaign_id: Optional[int] = None
    campaign_title: Optional[str] = None
    amount: str
    amount_in_usd: Optional[str] = Field(default=None, alias="amountInUSD")
    timestamp: datetime
    block_number: Optional[int] = None
    message: Optional[str] = None
    is_anonymous: bool = False
    created_at: datetime


class TransactionRecord(CamelModel):
    """A stored transaction."""

    id: int
    tx_hash: str
    from_address: str
    to_address: Optional[str] = None
    amount: str
    type: TransactionType
    status: TransactionStatus
    charity_id: Optional[int] = None
    campaign_id: Optional[int] = None
    block_number: Optional[int] = None
    timestamp: datetime
    metadata: Optional[str] = None
    created_at: datetime


class WithdrawalRecord(CamelModel):
    """A stored withdrawal."""

    id: int
    tx_hash: str
    charity_id: int
    charity_name: Optional[str] = None
    amount: str
    fee: Optional[str] = None
    net_amount: Optional[str] = None
    timestamp: datetime
    block_number: Optional[int] = None
    to_address: Optional[str] = None
    created_at: datetime


class CharityRequestRecord(CamelModel):
    """A stored charity request."""

    id: int
    charity_name: str = Field(alias="name")
    wallet_address: str = Field(alias="wallet")
    description: str
    email: str
    verification_document_url: str
    website_url: Optional[str] = None
    logo_url: Optional[str] = None
    status: RequestStatus
    submitted_at: datetime = Field(alias="requestedTimeStamp")


class CampaignRecord(CamelModel):
    """A stored campaign with its derived raised amount."""

    id: int
    title: str
    description: Optional[str] = None
    goal_amount: str
    raised_amount: str = "0"
    wallet_address: str
    duration_days: Optional[int] = None
    status: CampaignStatus
    charity_name: Optional[str] = None
    created_at: datetime


class PlatformStatistics(CamelModel):
    """Platform-wide aggregates derived from the ledger."""

    total_donations: int = 0
    total_donations_eth: str = Field(default="0", alias="totalDonationsETH")
    total_donors: int = 0
    average_donation: str = "0"
    total_charities: int = 0
    total_campaigns: int = 0
    platform_fees: str = "0"


class DonorStanding(CamelModel):
    """One row of the donor leaderboard."""

    rank: int
    donor_address: str
    total_amount: str
    donation_count: int


def parse_input(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate caller data into an input model.

    Args:
        model: Pydantic model class to validate against
        data: Model instance or mapping of wire/python field names

    Returns:
        Validated model instance

    Raises:
        chainheart.errors.ValidationError: If the data does not validate
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(problems) from e
