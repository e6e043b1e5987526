"""FastAPI dependencies resolving services from the app's ServiceContainer.

Usage in a router:
    from src.cc_gateway.dependencies import get_ledger

    @router.get("/x")
    async def x(ledger: Annotated[BalanceLedger, Depends(get_ledger)]):
        ...
"""

from fastapi import Request

from src.cc_ledger.application.service import BalanceLedger
from src.cc_market.application.service import MarketplaceService
from src.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_ledger(request: Request) -> BalanceLedger:
    return get_container(request).ledger


def get_marketplace(request: Request) -> MarketplaceService:
    return get_container(request).marketplace
