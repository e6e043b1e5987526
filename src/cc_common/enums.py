"""Global enums — values are the wire/persisted strings."""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionReason(str, Enum):
    """Provenance prefix written into a transaction's adminSignature field."""
    MARKET_BUY = "market_buy"
    MARKET_SELL = "market_sell"


TERMINAL_LISTING_STATUSES: frozenset[ListingStatus] = frozenset(
    {ListingStatus.SOLD, ListingStatus.CANCELLED}
)
