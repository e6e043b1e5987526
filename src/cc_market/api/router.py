"""cc_market REST endpoints.

POST /marketplace/list        — create a listing (201)
GET  /marketplace/listings    — listings, newest first (?status=active|sold|cancelled|all)
POST /marketplace/buy         — buy a whole listing
POST /marketplace/cancel      — seller withdraws an active listing
GET  /marketplace/orders      — completed orders (?buyerEmail=)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.cc_common.enums import ListingStatus
from src.cc_common.errors import InvalidRequestError
from src.cc_gateway.dependencies import get_marketplace
from src.cc_market.application.schemas import (
    BalanceSummary,
    BuyListingRequest,
    BuyListingResponse,
    CancelListingRequest,
    CancelListingResponse,
    CreateListingRequest,
    CreateListingResponse,
    ListingOut,
    ListListingsResponse,
    OrderListResponse,
    OrderOut,
)
from src.cc_market.application.service import MarketplaceService

router = APIRouter(prefix="/marketplace", tags=["marketplace"])


def _parse_status(raw: str) -> ListingStatus | None:
    value = raw.strip().lower()
    if value == "all":
        return None
    try:
        return ListingStatus(value)
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown listing status: {raw}") from exc


@router.post(
    "/list",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateListingResponse,
    response_model_by_alias=True,
)
async def create_listing(
    body: CreateListingRequest,
    marketplace: Annotated[MarketplaceService, Depends(get_marketplace)],
) -> CreateListingResponse:
    listing = await marketplace.create_listing(body)
    return CreateListingResponse(listing=ListingOut.from_domain(listing))


@router.get("/listings", response_model=ListListingsResponse, response_model_by_alias=True)
async def list_listings(
    marketplace: Annotated[MarketplaceService, Depends(get_marketplace)],
    status_filter: str = Query(
        "active", alias="status", description="active, sold, cancelled or all"
    ),
) -> ListListingsResponse:
    listings = marketplace.list_listings(_parse_status(status_filter))
    return ListListingsResponse(listings=[ListingOut.from_domain(item) for item in listings])


@router.post("/buy", response_model=BuyListingResponse, response_model_by_alias=True)
async def buy_listing(
    body: BuyListingRequest,
    marketplace: Annotated[MarketplaceService, Depends(get_marketplace)],
) -> BuyListingResponse:
    result = await marketplace.buy(body)
    return BuyListingResponse(
        listing=ListingOut.from_domain(result.listing),
        order=OrderOut.from_domain(result.order),
        buyer_balance=BalanceSummary.from_domain(result.buyer_snapshot),
        seller_balance=BalanceSummary.from_domain(result.seller_snapshot),
    )


@router.post("/cancel", response_model=CancelListingResponse, response_model_by_alias=True)
async def cancel_listing(
    body: CancelListingRequest,
    marketplace: Annotated[MarketplaceService, Depends(get_marketplace)],
) -> CancelListingResponse:
    listing = await marketplace.cancel_listing(body)
    return CancelListingResponse(listing=ListingOut.from_domain(listing))


@router.get("/orders", response_model=OrderListResponse, response_model_by_alias=True)
async def list_orders(
    marketplace: Annotated[MarketplaceService, Depends(get_marketplace)],
    buyer_email: str | None = Query(None, alias="buyerEmail"),
) -> OrderListResponse:
    orders = marketplace.list_orders(buyer_email)
    return OrderListResponse(orders=[OrderOut.from_domain(order) for order in orders])
