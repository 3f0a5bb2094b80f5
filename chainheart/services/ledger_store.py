"""Ledger store - durable record of donations, transactions and withdrawals."""

from typing import Any, Callable, ContextManager, List, Mapping, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chainheart.convert import (
    donation_record,
    donation_row,
    transaction_record,
    transaction_row,
    withdrawal_record,
    withdrawal_row,
)
from chainheart.db.models import Base, Campaign, Donation, Transaction, Withdrawal, utcnow
from chainheart.db.session import get_session
from chainheart.errors import DuplicateKeyError, InvalidTransitionError, NotFoundError, ValidationError
from chainheart.log import get_logger
from chainheart.schemas import (
    DonationCreate,
    DonationRecord,
    TransactionCreate,
    TransactionRecord,
    TransactionStatus,
    TransactionType,
    WithdrawalCreate,
    WithdrawalRecord,
    parse_input,
)

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def is_duplicate_key(error: IntegrityError) -> bool:
    """Whether an IntegrityError came from a unique constraint.

    PostgreSQL reports ``duplicate key value violates unique constraint``,
    SQLite reports ``UNIQUE constraint failed``.
    """
    error_str = (str(error.orig) if error.orig else str(error)).lower()
    return "duplicate key" in error_str or "unique" in error_str


class LedgerStore:
    """Records ledger entries and answers lookups over them.

    Each public method runs in its own unit of work obtained from
    ``session_factory`` (``get_session`` by default).
    """

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        clock: Callable[[], Any] = utcnow,
    ):
        """Initialize ledger store.

        Args:
            session_factory: Context manager factory yielding a Session
            clock: Returns the naive-UTC "now" used for defaults
        """
        self._session_factory = session_factory
        self._clock = clock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_donation(self, donation: Union[DonationCreate, Mapping[str, Any]]) -> DonationRecord:
        """Record a donation.

        When the donation references a campaign, a missing campaign title or
        charity name is filled in from that campaign.

        Args:
            donation: Donation input (model or mapping)

        Returns:
            The stored donation with id and created_at assigned

        Raises:
            ValidationError: If required fields are missing or malformed
            DuplicateKeyError: If the transaction hash is already recorded
        """
        data = parse_input(DonationCreate, donation)

        with self._session_factory() as session:
            if data.campaign_id is not None:
                data = self._attach_campaign(session, data)
            row = donation_row(data, self._clock())
            self._insert(session, row, "Donation", data.tx_hash)
            record = donation_record(row)

        logger.info(
            f"Recorded donation {record.tx_hash}: {record.amount} from {record.donor_address} "
            f"to charity {record.charity_id}"
        )
        return record

    def record_transaction(
        self, transaction: Union[TransactionCreate, Mapping[str, Any]]
    ) -> TransactionRecord:
        """Record a transaction.

        Raises:
            ValidationError: If required fields are missing or malformed
            DuplicateKeyError: If the transaction hash is already recorded
        """
        data = parse_input(TransactionCreate, transaction)

        with self._session_factory() as session:
            row = transaction_row(data, self._clock())
            self._insert(session, row, "Transaction", data.tx_hash)
            record = transaction_record(row)

        logger.info(f"Recorded {record.type.value} transaction {record.tx_hash} ({record.status.value})")
        return record

    def record_withdrawal(
        self, withdrawal: Union[WithdrawalCreate, Mapping[str, Any]]
    ) -> WithdrawalRecord:
        """Record a withdrawal.

        Raises:
            ValidationError: If fields are malformed or netAmount != amount - fee
            DuplicateKeyError: If the transaction hash is already recorded
        """
        data = parse_input(WithdrawalCreate, withdrawal)

        with self._session_factory() as session:
            row = withdrawal_row(data, self._clock())
            self._insert(session, row, "Withdrawal", data.tx_hash)
            record = withdrawal_record(row)

        logger.info(f"Recorded withdrawal {record.tx_hash}: {record.amount} for charity {record.charity_id}")
        return record

    def update_transaction_status(
        self, tx_hash: str, status: Union[TransactionStatus, str]
    ) -> TransactionRecord:
        """Settle a pending transaction as success or failed.

        The change is a compare-and-set from ``pending``, so of two
        concurrent settlements exactly one wins.

        Args:
            tx_hash: Transaction hash
            status: Target status (success or failed)

        Returns:
            The updated transaction

        Raises:
            ValidationError: If status is not a known transaction status
            NotFoundError: If no transaction has this hash
            InvalidTransitionError: If the transaction is not pending or the
                target is pending
        """
        try:
            target = TransactionStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown transaction status: {status!r}") from e

        with self._session_factory() as session:
            if target is TransactionStatus.PENDING:
                current = self._current_status(session, tx_hash)
                raise InvalidTransitionError(f"Transaction {tx_hash} cannot move from {current} to pending")

            result = session.execute(
                update(Transaction)
                .where(
                    Transaction.tx_hash == tx_hash,
                    Transaction.status == TransactionStatus.PENDING.value,
                )
                .values(status=target.value)
            )
            if result.rowcount == 0:
                current = self._current_status(session, tx_hash)
                raise InvalidTransitionError(
                    f"Transaction {tx_hash} is already {current}; cannot move to {target.value}"
                )

            row = session.query(Transaction).filter(Transaction.tx_hash == tx_hash).one()
            record = transaction_record(row)

        logger.info(f"Transaction {tx_hash} settled as {target.value}")
        return record

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_donation(self, tx_hash: str) -> Optional[DonationRecord]:
        """Find a donation by transaction hash; None when absent."""
        with self._session_factory() as session:
            row = session.query(Donation).filter(Donation.tx_hash == tx_hash).first()
            if row is None:
                logger.debug(f"Donation not found: {tx_hash}")
                return None
            return donation_record(row)

    def find_transaction(self, tx_hash: str) -> Optional[TransactionRecord]:
        """Find a transaction by transaction hash; None when absent."""
        with self._session_factory() as session:
            row = session.query(Transaction).filter(Transaction.tx_hash == tx_hash).first()
            if row is None:
                logger.debug(f"Transaction not found: {tx_hash}")
                return None
            return transaction_record(row)

    def find_withdrawal(self, tx_hash: str) -> Optional[WithdrawalRecord]:
        """Find a withdrawal by transaction hash; None when absent."""
        with self._session_factory() as session:
            row = session.query(Withdrawal).filter(Withdrawal.tx_hash == tx_hash).first()
            if row is None:
                logger.debug(f"Withdrawal not found: {tx_hash}")
                return None
            return withdrawal_record(row)

    def donations_by_donor(self, address: str) -> List[DonationRecord]:
        return self._list(Donation, donation_record, Donation.donor_address == address)

    def donations_by_charity(self, charity_id: int) -> List[DonationRecord]:
        return self._list(Donation, donation_record, Donation.charity_id == charity_id)

    def donations_by_campaign(self, campaign_id: int) -> List[DonationRecord]:
        return self._list(Donation, donation_record, Donation.campaign_id == campaign_id)

    def all_donations(self) -> List[DonationRecord]:
        return self._list(Donation, donation_record)

    def transactions_by_sender(self, address: str) -> List[TransactionRecord]:
        return self._list(Transaction, transaction_record, Transaction.from_address == address)

    def transactions_by_type(self, tx_type: Union[TransactionType, str]) -> List[TransactionRecord]:
        try:
            value = TransactionType(tx_type).value
        except ValueError as e:
            raise ValidationError(f"Unknown transaction type: {tx_type!r}") from e
        return self._list(Transaction, transaction_record, Transaction.type == value)

    def transactions_by_status(self, status: Union[TransactionStatus, str]) -> List[TransactionRecord]:
        try:
            value = TransactionStatus(status).value
        except ValueError as e:
            raise ValidationError(f"Unknown transaction status: {status!r}") from e
        return self._list(Transaction, transaction_record, Transaction.status == value)

    def withdrawals_by_charity(self, charity_id: int) -> List[WithdrawalRecord]:
        return self._list(Withdrawal, withdrawal_record, Withdrawal.charity_id == charity_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _list(self, model: type, convert: Callable[[Any], Any], *criteria) -> list:
        # Insertion order is id order
        with self._session_factory() as session:
            rows = session.query(model).filter(*criteria).order_by(model.id).all()
            return [convert(row) for row in rows]

    def _insert(self, session: Session, row: Base, kind: str, tx_hash: str) -> None:
        try:
            session.add(row)
            session.flush()  # Flush to trigger constraint checks
        except IntegrityError as e:
            if is_duplicate_key(e):
                logger.debug(f"{kind} already recorded: {tx_hash}")
                raise DuplicateKeyError(f"{kind} with txHash {tx_hash} already recorded") from e
            logger.error(f"Integrity error inserting {kind.lower()} {tx_hash}: {e.orig or e}")
            raise

    @staticmethod
    def _current_status(session: Session, tx_hash: str) -> str:
        row = session.query(Transaction).filter(Transaction.tx_hash == tx_hash).first()
        if row is None:
            raise NotFoundError(f"Transaction not found: {tx_hash}")
        return row.status

    @staticmethod
    def _attach_campaign(session: Session, data: DonationCreate) -> DonationCreate:
        campaign = session.get(Campaign, data.campaign_id)
        if campaign is None:
            # References are weak; the donation is kept as submitted
            logger.warning(f"Donation {data.tx_hash} references unknown campaign {data.campaign_id}")
            return data
        return data.model_copy(
            update={
                "campaign_title": data.campaign_title or campaign.title,
                "charity_name": data.charity_name or campaign.charity_name,
            }
        )
