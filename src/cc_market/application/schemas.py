"""Pydantic schemas for the marketplace API.

Request field names follow the deployed client (`sellerEmail`, `priceRupees`,
`buyerEmail`, ...); `priceSecondary` is accepted as an alternative to
`priceRupees`. Signatures are optional at the schema level so a missing one
surfaces as InvalidSignatureError rather than a generic validation error.
"""

from pydantic import AliasChoices, EmailStr, Field

from src.cc_ledger.application.schemas import CamelModel
from src.cc_ledger.domain.models import BalanceSnapshot, Quantity
from src.cc_market.domain.models import Listing, Order

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateListingRequest(CamelModel):
    seller_email: EmailStr
    seller_user_id: str | None = None
    seller_wallet: str = Field(..., min_length=1)
    amount_tokens: Quantity
    price_secondary: Quantity = Field(
        ..., validation_alias=AliasChoices("priceRupees", "priceSecondary", "price_secondary")
    )
    signature: str | None = None
    message: str | None = Field(None, description="Exact text the wallet signed, if available")


class BuyListingRequest(CamelModel):
    listing_id: str = Field(..., min_length=1)
    buyer_email: EmailStr
    buyer_user_id: str | None = None
    buyer_wallet: str = Field(..., min_length=1)
    signature: str | None = None
    message: str | None = None


class CancelListingRequest(CamelModel):
    listing_id: str = Field(..., min_length=1)
    seller_email: EmailStr
    seller_wallet: str | None = None
    signature: str | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingOut(CamelModel):
    id: str
    seller_account_key: str
    seller_external_id: str | None
    seller_wallet: str
    amount_tokens: Quantity
    price_secondary: Quantity
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingOut":
        return cls(
            id=listing.id,
            seller_account_key=listing.seller_account_key,
            seller_external_id=listing.seller_external_id,
            seller_wallet=listing.seller_wallet,
            amount_tokens=listing.amount_tokens,
            price_secondary=listing.price_secondary,
            status=listing.status.value,
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )


class OrderOut(CamelModel):
    id: str
    listing_id: str
    buyer_account_key: str
    buyer_external_id: str | None
    buyer_wallet: str
    amount_tokens: Quantity
    total_secondary: Quantity
    status: str
    signature: str
    created_at: str

    @classmethod
    def from_domain(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            listing_id=order.listing_id,
            buyer_account_key=order.buyer_account_key,
            buyer_external_id=order.buyer_external_id,
            buyer_wallet=order.buyer_wallet,
            amount_tokens=order.amount_tokens,
            total_secondary=order.total_secondary,
            status=order.status.value,
            signature=order.signature,
            created_at=order.created_at,
        )


class BalanceSummary(CamelModel):
    token_balance: Quantity
    secondary_balance: Quantity
    degraded: bool

    @classmethod
    def from_domain(cls, s: BalanceSnapshot) -> "BalanceSummary":
        return cls(
            token_balance=s.token_balance,
            secondary_balance=s.secondary_balance,
            degraded=s.degraded,
        )


class CreateListingResponse(CamelModel):
    listing: ListingOut


class ListListingsResponse(CamelModel):
    listings: list[ListingOut]


class BuyListingResponse(CamelModel):
    listing: ListingOut
    order: OrderOut
    buyer_balance: BalanceSummary
    seller_balance: BalanceSummary


class CancelListingResponse(CamelModel):
    listing: ListingOut


class OrderListResponse(CamelModel):
    orders: list[OrderOut]
