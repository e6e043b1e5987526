"""Pre-trade checks shared by listing creation, purchase and cancellation."""

import math

from src.cc_common.errors import (
    InvalidAmountError,
    ListingUnavailableError,
    NotListingOwnerError,
    SelfTradeError,
)
from src.cc_ledger.domain.models import Quantity
from src.cc_market.domain.models import Listing


def check_positive(field: str, value: Quantity) -> None:
    """Raise InvalidAmountError unless value is a finite number > 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAmountError(field, value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmountError(field, value)


def same_account(a: str, b: str) -> bool:
    """Account keys are compared case-insensitively."""
    return a.strip().lower() == b.strip().lower()


def is_self_trade(buyer_key: str, seller_key: str) -> bool:
    return same_account(buyer_key, seller_key)


def check_not_self_trade(buyer_key: str, listing: Listing) -> None:
    if is_self_trade(buyer_key, listing.seller_account_key):
        raise SelfTradeError()


def check_listing_active(listing: Listing) -> None:
    if not listing.is_active:
        raise ListingUnavailableError(listing.id, listing.status.value)


def check_listing_owner(seller_key: str, listing: Listing) -> None:
    if not same_account(seller_key, listing.seller_account_key):
        raise NotListingOwnerError(listing.id)
