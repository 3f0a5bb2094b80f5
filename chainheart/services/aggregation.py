"""Aggregation engine - statistics, leaderboard and exports derived from the ledger.

The module-level functions are pure folds over donation records so they can
be tested without a database. ``AggregationEngine`` wires them to the store.
"""

import csv
import io
from collections import defaultdict
from decimal import Decimal
from typing import Any, Callable, ContextManager, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from chainheart.convert import donation_record
from chainheart.db.models import Campaign, CharityRequest, Donation, Withdrawal
from chainheart.db.session import get_session
from chainheart.errors import NotFoundError, ValidationError
from chainheart.log import get_logger
from chainheart.schemas import DonationRecord, DonorStanding, PlatformStatistics, RequestStatus
from chainheart.services.ledger_store import LedgerStore
from chainheart.utils.formatting import format_amount, format_export_date, parse_amount, sum_amounts

logger = get_logger(__name__)

CSV_HEADER = (
    "Date",
    "Transaction Hash",
    "Charity",
    "Campaign",
    "Amount (ETH)",
    "Block Number",
    "Message",
)
DIRECT_DONATION = "Direct Donation"


# =============================================================================
# Pure folds
# =============================================================================

def summarize_donations(donations: Iterable[DonationRecord]) -> PlatformStatistics:
    """Count, sum and average a set of donations.

    The sum is exact; only the average is rounded, to the default
    28 significant digits.

    Args:
        donations: Donation records to fold

    Returns:
        PlatformStatistics with the donation fields filled in; the
        campaign, charity and fee fields are left at zero
    """
    amounts = []
    donors = set()
    for donation in donations:
        amounts.append(parse_amount(donation.amount))
        donors.add(donation.donor_address)

    count = len(amounts)
    total = sum_amounts(amounts)
    average = total / count if count else Decimal(0)
    return PlatformStatistics(
        total_donations=count,
        total_donations_eth=format_amount(total),
        total_donors=len(donors),
        average_donation=format_amount(average),
    )


def rank_donors(donations: Iterable[DonationRecord], limit: int) -> List[DonorStanding]:
    """Rank non-anonymous donors by total donated.

    Ties on the total are broken by donor address, ascending.

    Args:
        donations: Donation records to fold
        limit: Maximum number of standings to return

    Returns:
        Standings ordered by total descending

    Raises:
        ValidationError: If limit is negative
    """
    if limit < 0:
        raise ValidationError(f"limit must be >= 0, got {limit}")
    if limit == 0:
        return []

    amounts: Dict[str, List[Decimal]] = defaultdict(list)
    for donation in donations:
        if donation.is_anonymous:
            continue
        amounts[donation.donor_address].append(parse_amount(donation.amount))

    totals = [(address, sum_amounts(values), len(values)) for address, values in amounts.items()]
    # Stable sorts: address ascending first, then total descending
    totals.sort(key=lambda item: item[0])
    totals.sort(key=lambda item: item[1], reverse=True)
    return [
        DonorStanding(
            rank=position,
            donor_address=address,
            total_amount=format_amount(amount),
            donation_count=count,
        )
        for position, (address, amount, count) in enumerate(totals[:limit], start=1)
    ]


def donation_history_rows(donations: Iterable[DonationRecord]) -> List[List[str]]:
    """Project donations onto the columns of the history export."""
    rows = []
    for donation in donations:
        rows.append([
            format_export_date(donation.timestamp),
            donation.tx_hash,
            donation.charity_name or "",
            donation.campaign_title or DIRECT_DONATION,
            donation.amount,
            str(donation.block_number) if donation.block_number is not None else "",
            donation.message or "",
        ])
    return rows


def render_csv(rows: Iterable[Sequence[str]], header: Sequence[str] = CSV_HEADER) -> str:
    """Render rows as CSV text with a header line.

    Fields holding a comma, quote, CR or LF are quoted with embedded quotes
    doubled. Every line, the last included, ends with ``\\n``.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


class AggregationEngine:
    """Derives statistics, rankings and documents from the ledger on demand.

    Nothing is cached: each call reads the store once.
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        renderer: Optional[Any] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
    ):
        """Initialize aggregation engine.

        Args:
            store: Ledger store to read donations from
            renderer: Certificate renderer with ``render(fields) -> bytes``
            session_factory: Context manager factory yielding a Session
        """
        self._session_factory = session_factory
        self.store = store or LedgerStore(session_factory=session_factory)
        self.renderer = renderer

    def platform_statistics(self) -> PlatformStatistics:
        """Platform-wide statistics; all zero on an empty ledger."""
        with self._session_factory() as session:
            donations = [
                donation_record(row)
                for row in session.query(Donation).order_by(Donation.id).all()
            ]
            fees = [fee for (fee,) in session.query(Withdrawal.fee).filter(Withdrawal.fee.isnot(None))]
            total_campaigns = session.query(func.count(Campaign.id)).scalar() or 0
            total_charities = (
                session.query(func.count(CharityRequest.id))
                .filter(CharityRequest.status == RequestStatus.APPROVED.value)
                .scalar()
                or 0
            )

        stats = summarize_donations(donations)
        platform_fees = sum_amounts(parse_amount(fee) for fee in fees)
        return stats.model_copy(
            update={
                "total_campaigns": total_campaigns,
                "total_charities": total_charities,
                "platform_fees": format_amount(platform_fees),
            }
        )

    def donor_leaderboard(self, limit: int = 10) -> List[DonorStanding]:
        """Top donors by total donated, anonymous donations excluded."""
        if limit < 0:
            raise ValidationError(f"limit must be >= 0, got {limit}")
        return rank_donors(self.store.all_donations(), limit)

    def export_donation_history(self, donor_address: str) -> str:
        """CSV history of one donor's donations, oldest first."""
        donations = self.store.donations_by_donor(donor_address)
        logger.debug(f"Exporting {len(donations)} donations for {donor_address}")
        return render_csv(donation_history_rows(donations))

    def render_certificate(self, tx_hash: str) -> bytes:
        """Render the PDF certificate for a recorded donation.

        Raises:
            NotFoundError: If no donation has this hash
            ExternalDependencyError: If rendering fails
        """
        if self.renderer is None:
            raise RuntimeError("No certificate renderer configured")
        donation = self.store.find_donation(tx_hash)
        if donation is None:
            raise NotFoundError(f"Donation not found: {tx_hash}")
        return self.renderer.render(donation.model_dump())
