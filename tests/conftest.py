"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.cc_ledger.application.ledger_store import LedgerStore
from src.cc_ledger.application.service import BalanceLedger
from src.cc_market.application.service import MarketplaceService
from src.cc_storage.infrastructure.memory import InMemoryContentStore
from src.container import ServiceContainer, build_container
from src.main import create_app


@pytest.fixture
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore(latency=0.001)


@pytest.fixture
def ledger_store(content_store: InMemoryContentStore) -> LedgerStore:
    return LedgerStore(content_store)


@pytest.fixture
def ledger(ledger_store: LedgerStore, content_store: InMemoryContentStore) -> BalanceLedger:
    return BalanceLedger(ledger_store, content_store, public_gateway="https://gw.test/ipfs/")


@pytest.fixture
def marketplace(
    ledger: BalanceLedger, ledger_store: LedgerStore, content_store: InMemoryContentStore
) -> MarketplaceService:
    return MarketplaceService(ledger, ledger_store, content_store)


@pytest.fixture
def container(content_store: InMemoryContentStore) -> ServiceContainer:
    settings = Settings(CONTENT_STORE="memory", HYDRATE_ON_STARTUP=False)
    return build_container(settings, content_store=content_store)


@pytest.fixture
async def client(container: ServiceContainer) -> AsyncClient:
    """Async HTTP client over a fresh app backed by an in-memory content store."""
    app = create_app(container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
