"""Campaign registry - fundraising campaigns tied to a charity wallet."""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Callable, ContextManager, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from chainheart.convert import campaign_record, campaign_row
from chainheart.db.models import Campaign, Donation, utcnow
from chainheart.db.session import get_session
from chainheart.errors import NotFoundError
from chainheart.log import get_logger
from chainheart.schemas import CampaignCreate, CampaignRecord, CampaignStatus, parse_input
from chainheart.utils.formatting import format_amount, parse_amount, sum_amounts

logger = get_logger(__name__)


def raised_amounts(session: Session, campaign_ids: Iterable[int]) -> Dict[int, str]:
    """Sum donations per campaign.

    Args:
        session: Database session
        campaign_ids: Campaigns to total

    Returns:
        Mapping of campaign id to the decimal total as a string; campaigns
        without donations map to "0"
    """
    ids = list(campaign_ids)
    amounts: Dict[int, List[Decimal]] = defaultdict(list)
    if ids:
        rows = session.query(Donation.campaign_id, Donation.amount).filter(Donation.campaign_id.in_(ids))
        for campaign_id, amount in rows:
            amounts[campaign_id].append(parse_amount(amount))
    return {campaign_id: format_amount(sum_amounts(amounts.get(campaign_id, []))) for campaign_id in ids}


class CampaignRegistry:
    """Creates, lists and closes campaigns.

    ``raised_amount`` is never stored; every returned record carries the
    sum of the donations that reference the campaign at read time.
    """

    def __init__(
        self,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        clock: Callable[[], Any] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def create_campaign(self, campaign: Union[CampaignCreate, Mapping[str, Any]]) -> CampaignRecord:
        """Create a campaign; its status is always ACTIVE.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        data = parse_input(CampaignCreate, campaign)
        with self._session_factory() as session:
            row = campaign_row(data, self._clock())
            session.add(row)
            session.flush()
            record = campaign_record(row, "0")

        logger.info(f"Created campaign {record.id}: {record.title} ({record.wallet_address})")
        return record

    def find_campaign(self, campaign_id: int) -> Optional[CampaignRecord]:
        """Find a campaign by id; None when absent."""
        with self._session_factory() as session:
            row = session.get(Campaign, campaign_id)
            if row is None:
                logger.debug(f"Campaign not found: {campaign_id}")
                return None
            return self._with_totals(session, [row])[0]

    def campaigns_for_wallet(self, address: str) -> List[CampaignRecord]:
        """Campaigns owned by a wallet, oldest first."""
        with self._session_factory() as session:
            rows = (
                session.query(Campaign)
                .filter(Campaign.wallet_address == address)
                .order_by(Campaign.id)
                .all()
            )
            return self._with_totals(session, rows)

    def active_campaigns(self) -> List[CampaignRecord]:
        """Campaigns currently accepting donations, oldest first."""
        with self._session_factory() as session:
            rows = (
                session.query(Campaign)
                .filter(Campaign.status == CampaignStatus.ACTIVE.value)
                .order_by(Campaign.id)
                .all()
            )
            return self._with_totals(session, rows)

    def close_campaign(self, campaign_id: int) -> CampaignRecord:
        """Close a campaign. Closing an already closed campaign changes nothing.

        Raises:
            NotFoundError: If the campaign does not exist
        """
        with self._session_factory() as session:
            row = session.get(Campaign, campaign_id)
            if row is None:
                raise NotFoundError(f"Campaign not found: {campaign_id}")
            if row.status == CampaignStatus.CLOSED.value:
                logger.debug(f"Campaign {campaign_id} already closed")
            else:
                row.status = CampaignStatus.CLOSED.value
                session.flush()
                logger.info(f"Closed campaign {campaign_id}")
            return self._with_totals(session, [row])[0]

    @staticmethod
    def _with_totals(session: Session, rows: List[Campaign]) -> List[CampaignRecord]:
        totals = raised_amounts(session, [row.id for row in rows])
        return [campaign_record(row, totals[row.id]) for row in rows]
