"""Service wiring.

One ServiceContainer per app instance, stored on `app.state.container`.
Routers pull services from there, so tests can build an app around an
InMemoryContentStore without touching module globals.
"""

import logging
from dataclasses import dataclass

from config.settings import Settings
from src.cc_ledger.application.ledger_store import LedgerStore
from src.cc_ledger.application.service import BalanceLedger
from src.cc_market.application.service import MarketplaceService
from src.cc_storage.domain.content_store import ContentStoreProtocol
from src.cc_storage.infrastructure.memory import InMemoryContentStore
from src.cc_storage.infrastructure.pinata import PinataContentStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    content_store: ContentStoreProtocol
    store: LedgerStore
    ledger: BalanceLedger
    marketplace: MarketplaceService


def build_content_store(settings: Settings) -> ContentStoreProtocol:
    backend = settings.CONTENT_STORE.lower()
    if backend == "memory":
        logger.info("Using in-memory content store")
        return InMemoryContentStore()
    if backend != "pinata":
        raise ValueError(f"Unknown CONTENT_STORE backend: {settings.CONTENT_STORE}")
    return PinataContentStore(settings)


def build_container(
    settings: Settings,
    content_store: ContentStoreProtocol | None = None,
) -> ServiceContainer:
    content = content_store if content_store is not None else build_content_store(settings)
    store = LedgerStore(content)
    public_gateway = settings.IPFS_GATEWAYS[0] if settings.IPFS_GATEWAYS else None
    ledger = BalanceLedger(
        store,
        content,
        default_secondary=settings.DEFAULT_SECONDARY_BALANCE,
        min_signature_length=settings.MIN_SIGNATURE_LENGTH,
        public_gateway=public_gateway,
    )
    marketplace = MarketplaceService(
        ledger,
        store,
        content,
        min_signature_length=settings.MIN_SIGNATURE_LENGTH,
    )
    return ServiceContainer(
        settings=settings,
        content_store=content,
        store=store,
        ledger=ledger,
        marketplace=marketplace,
    )
