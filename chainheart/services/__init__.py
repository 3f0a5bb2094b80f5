"""Services package for ledger business logic and external integrations."""

from chainheart.services.aggregation import AggregationEngine
from chainheart.services.campaign_registry import CampaignRegistry
from chainheart.services.certificate import CertificateRenderer
from chainheart.services.charity_lifecycle import CharityLifecycleManager
from chainheart.services.ledger_store import LedgerStore
from chainheart.services.notifications import NotificationDispatcher
from chainheart.services.storage import LocalFileStorage, Upload

__all__ = [
    'AggregationEngine',
    'CampaignRegistry',
    'CertificateRenderer',
    'CharityLifecycleManager',
    'LedgerStore',
    'LocalFileStorage',
    'NotificationDispatcher',
    'Upload',
]
