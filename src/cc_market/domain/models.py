"""Domain models for cc_market — listings and orders.

Listing lifecycle: active -> sold | cancelled. Both targets are terminal.
Orders are immutable once created (one per sold listing).

Collections pinned by the earlier deployment use `sellerEmail`,
`sellerUserId`, `priceRupees`, `buyerEmail`, `buyerUserId`, `totalRupees`
and `adminSignature`; `from_document` accepts both spellings.
"""

from dataclasses import dataclass
from typing import Any

from src.cc_common.enums import TERMINAL_LISTING_STATUSES, ListingStatus, OrderStatus
from src.cc_common.errors import ListingUnavailableError
from src.cc_ledger.domain.models import Quantity, normalize_account_key


def _pick(doc: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if doc.get(key) is not None:
            return doc[key]
    return default


@dataclass
class Listing:
    id: str
    seller_account_key: str
    seller_wallet: str
    amount_tokens: Quantity
    price_secondary: Quantity
    status: ListingStatus
    created_at: str
    updated_at: str
    seller_external_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE

    def _transition(self, target: ListingStatus, now_iso: str) -> None:
        if self.status in TERMINAL_LISTING_STATUSES:
            raise ListingUnavailableError(self.id, self.status.value)
        self.status = target
        self.updated_at = now_iso

    def mark_sold(self, now_iso: str) -> None:
        self._transition(ListingStatus.SOLD, now_iso)

    def cancel(self, now_iso: str) -> None:
        self._transition(ListingStatus.CANCELLED, now_iso)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sellerAccountKey": self.seller_account_key,
            "sellerExternalId": self.seller_external_id,
            "sellerWallet": self.seller_wallet,
            "amountTokens": self.amount_tokens,
            "priceSecondary": self.price_secondary,
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Listing":
        return cls(
            id=str(doc["id"]),
            seller_account_key=normalize_account_key(
                _pick(doc, "sellerAccountKey", "sellerEmail", default="")
            ),
            seller_external_id=_pick(doc, "sellerExternalId", "sellerUserId"),
            seller_wallet=str(doc.get("sellerWallet") or ""),
            amount_tokens=_pick(doc, "amountTokens", default=0),
            price_secondary=_pick(doc, "priceSecondary", "priceRupees", default=0),
            status=ListingStatus(doc.get("status", ListingStatus.ACTIVE.value)),
            created_at=str(doc.get("createdAt") or ""),
            updated_at=str(doc.get("updatedAt") or ""),
        )


@dataclass(frozen=True)
class Order:
    id: str
    listing_id: str
    buyer_account_key: str
    buyer_wallet: str
    amount_tokens: Quantity
    total_secondary: Quantity
    status: OrderStatus
    signature: str
    created_at: str
    buyer_external_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "listingId": self.listing_id,
            "buyerAccountKey": self.buyer_account_key,
            "buyerExternalId": self.buyer_external_id,
            "buyerWallet": self.buyer_wallet,
            "amountTokens": self.amount_tokens,
            "totalSecondary": self.total_secondary,
            "status": self.status.value,
            "signature": self.signature,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Order":
        return cls(
            id=str(doc["id"]),
            listing_id=str(doc.get("listingId") or ""),
            buyer_account_key=normalize_account_key(
                _pick(doc, "buyerAccountKey", "buyerEmail", default="")
            ),
            buyer_external_id=_pick(doc, "buyerExternalId", "buyerUserId"),
            buyer_wallet=str(doc.get("buyerWallet") or ""),
            amount_tokens=_pick(doc, "amountTokens", default=0),
            total_secondary=_pick(doc, "totalSecondary", "totalRupees", default=0),
            status=OrderStatus(doc.get("status", OrderStatus.COMPLETED.value)),
            signature=str(_pick(doc, "signature", "adminSignature", default="")),
            created_at=str(doc.get("createdAt") or ""),
        )
