"""Service wiring for the HTTP API.

The services are built once from ``Config.from_env()`` on first use.
Tests install their own set with ``set_services``.
"""

from dataclasses import dataclass
from typing import Optional

from chainheart.config import Config
from chainheart.db.session import init_db
from chainheart.log import get_logger
from chainheart.services.aggregation import AggregationEngine
from chainheart.services.campaign_registry import CampaignRegistry
from chainheart.services.certificate import CertificateRenderer
from chainheart.services.charity_lifecycle import CharityLifecycleManager
from chainheart.services.ledger_store import LedgerStore
from chainheart.services.notifications import Notifier, build_dispatcher
from chainheart.services.storage import LocalFileStorage

logger = get_logger(__name__)


@dataclass
class Services:
    """The service objects one API process uses."""

    config: Config
    store: LedgerStore
    aggregation: AggregationEngine
    lifecycle: CharityLifecycleManager
    campaigns: CampaignRegistry
    storage: LocalFileStorage


_services: Optional[Services] = None


def build_services(
    config: Config,
    storage: Optional[LocalFileStorage] = None,
    notifier: Optional[Notifier] = None,
) -> Services:
    """Build the service graph for a configuration.

    Args:
        config: Configuration object
        storage: Storage to use instead of the configured upload directory
        notifier: Notifier to use instead of the configured transport

    Returns:
        Services wired to the global database session
    """
    storage = storage or LocalFileStorage(config.upload_dir, config.upload_url_prefix)
    store = LedgerStore()
    renderer = CertificateRenderer(brand_name=config.brand_name, explorer_tx_url=config.explorer_tx_url)
    return Services(
        config=config,
        store=store,
        aggregation=AggregationEngine(store=store, renderer=renderer),
        lifecycle=CharityLifecycleManager(storage, dispatcher=build_dispatcher(config, notifier)),
        campaigns=CampaignRegistry(),
        storage=storage,
    )


def get_services() -> Services:
    """Return the process-wide services, building them on first use."""
    global _services

    if _services is None:
        config = Config.from_env()
        config.validate()
        init_db(config)
        _services = build_services(config)
        logger.info(f"API services ready (notifier={config.notifier}, uploads={config.upload_dir})")
    return _services


def set_services(services: Optional[Services]) -> None:
    """Replace the process-wide services (None to rebuild on next use)."""
    global _services

    if _services is not None and _services is not services:
        dispatcher = _services.lifecycle.dispatcher
        if dispatcher is not None:
            dispatcher.shutdown()
    _services = services
