"""MarketplaceService — listing lifecycle and purchase settlement.

State lives in memory (newest first) and every change re-pins the whole
collection (`marketplace_listings.json` / `marketplace_orders.json`).
`hydrate()` reloads the last pinned collections at startup.

Locking:
  - create_listing holds the seller's account lock, so two listings cannot
    both be admitted against the same tokens. The balance read is strict: an
    unreadable snapshot fails with StorageUnavailable, not InsufficientBalance.
  - buy / cancel_listing look the listing up first and only then take its
    lock; the active-status check and the sold/cancelled transition are one
    step under that lock. Listings are never removed, so the lookup stays valid.
  - Lock order is listing -> accounts (settle_trade takes the account locks).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from src.cc_common.datetime_utils import utc_now_iso
from src.cc_common.enums import ListingStatus, OrderStatus
from src.cc_common.errors import (
    AppError,
    InsufficientBalanceError,
    ListingNotFoundError,
    StorageUnavailableError,
)
from src.cc_common.id_generator import generate_uuid
from src.cc_common.keyed_lock import account_lock_key, listing_lock_key
from src.cc_gateway.auth.signature import check_signature
from src.cc_ledger.application.ledger_store import LedgerStore
from src.cc_ledger.application.service import BalanceLedger
from src.cc_ledger.domain.models import BalanceSnapshot, Quantity, normalize_account_key
from src.cc_market.application.schemas import (
    BuyListingRequest,
    CancelListingRequest,
    CreateListingRequest,
)
from src.cc_market.domain.models import Listing, Order
from src.cc_market.domain.rules import (
    check_listing_active,
    check_listing_owner,
    check_not_self_trade,
    check_positive,
)
from src.cc_storage.domain.content_store import (
    LISTINGS_DOCUMENT_NAME,
    ORDERS_DOCUMENT_NAME,
    ContentStoreProtocol,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LISTINGS_SAVE_KEY = "collection:listings"
_ORDERS_SAVE_KEY = "collection:orders"


@dataclass(frozen=True)
class PurchaseResult:
    listing: Listing
    order: Order
    buyer_snapshot: BalanceSnapshot
    seller_snapshot: BalanceSnapshot


class MarketplaceService:
    def __init__(
        self,
        ledger: BalanceLedger,
        store: LedgerStore,
        content_store: ContentStoreProtocol,
        min_signature_length: int = 10,
    ) -> None:
        self._ledger = ledger
        self._locks = store.locks
        self._content = content_store
        self._min_signature_length = min_signature_length
        self._listings: list[Listing] = []
        self._orders: list[Order] = []
        self.listings_cid: str | None = None
        self.orders_cid: str | None = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _load_collection(
        self, name: str, field: str, parse: Callable[[dict[str, Any]], T]
    ) -> tuple[list[T], str | None]:
        try:
            cid = await self._content.search_latest(name)
            if cid is None:
                return [], None
            doc = await self._content.read(cid)
        except AppError as exc:
            logger.warning("Could not hydrate %s: %s", name, exc.message)
            return [], None

        items: list[T] = []
        for raw in doc.get(field) or []:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(parse(raw))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping malformed entry in %s: %s", name, exc)
        return items, cid

    async def hydrate(self) -> None:
        """Reload listings and orders from the last pinned collections."""
        self._listings, self.listings_cid = await self._load_collection(
            LISTINGS_DOCUMENT_NAME, "listings", Listing.from_document
        )
        self._orders, self.orders_cid = await self._load_collection(
            ORDERS_DOCUMENT_NAME, "orders", Order.from_document
        )
        logger.info(
            "Marketplace hydrated: %d listings, %d orders", len(self._listings), len(self._orders)
        )

    async def _save_listings(self) -> None:
        async with self._locks.hold(_LISTINGS_SAVE_KEY):
            doc = {"listings": [listing.to_document() for listing in self._listings]}
            try:
                self.listings_cid = await self._content.write(LISTINGS_DOCUMENT_NAME, doc)
            except StorageUnavailableError as exc:
                logger.warning("Listings kept in memory only: %s", exc.message)

    async def _save_orders(self) -> None:
        async with self._locks.hold(_ORDERS_SAVE_KEY):
            doc = {"orders": [order.to_document() for order in self._orders]}
            try:
                self.orders_cid = await self._content.write(ORDERS_DOCUMENT_NAME, doc)
            except StorageUnavailableError as exc:
                logger.warning("Orders kept in memory only: %s", exc.message)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _find(self, listing_id: str) -> Listing:
        for listing in self._listings:
            if listing.id == listing_id:
                return listing
        raise ListingNotFoundError(listing_id)

    def list_listings(self, status: ListingStatus | None = ListingStatus.ACTIVE) -> list[Listing]:
        """Listings newest first; status=None returns every listing."""
        if status is None:
            return list(self._listings)
        return [listing for listing in self._listings if listing.status == status]

    def list_orders(self, buyer_email: str | None = None) -> list[Order]:
        if buyer_email is None:
            return list(self._orders)
        key = normalize_account_key(buyer_email)
        return [order for order in self._orders if order.buyer_account_key == key]

    def committed_tokens(self, seller_key: str) -> Quantity:
        """Tokens already offered in the seller's active listings."""
        return sum(
            listing.amount_tokens
            for listing in self._listings
            if listing.is_active and listing.seller_account_key == seller_key
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_listing(self, req: CreateListingRequest) -> Listing:
        check_positive("amountTokens", req.amount_tokens)
        check_positive("priceSecondary", req.price_secondary)
        check_signature(req.signature, self._min_signature_length, req.seller_wallet, req.message)

        seller_key = normalize_account_key(req.seller_email)
        async with self._locks.hold(account_lock_key(seller_key)):
            snapshot = await self._ledger.get_snapshot_strict(seller_key)
            available = snapshot.token_balance - self.committed_tokens(seller_key)
            if available < req.amount_tokens:
                raise InsufficientBalanceError("token", req.amount_tokens, available)

            now = utc_now_iso()
            listing = Listing(
                id=generate_uuid(),
                seller_account_key=seller_key,
                seller_external_id=req.seller_user_id,
                seller_wallet=req.seller_wallet,
                amount_tokens=req.amount_tokens,
                price_secondary=req.price_secondary,
                status=ListingStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            )
            self._listings.insert(0, listing)

        await self._save_listings()
        logger.info(
            "Listing %s created: %s tokens for %s by %s",
            listing.id, listing.amount_tokens, listing.price_secondary, seller_key,
        )
        return listing

    async def buy(self, req: BuyListingRequest) -> PurchaseResult:
        check_signature(req.signature, self._min_signature_length, req.buyer_wallet, req.message)
        buyer_key = normalize_account_key(req.buyer_email)
        listing = self._find(req.listing_id)

        async with self._locks.hold(listing_lock_key(listing.id)):
            check_listing_active(listing)
            check_not_self_trade(buyer_key, listing)

            # Raises InsufficientBalanceError before any balance moves
            buyer_snapshot, seller_snapshot = await self._ledger.settle_trade(
                buyer_key=buyer_key,
                seller_key=listing.seller_account_key,
                amount_tokens=listing.amount_tokens,
                price=listing.price_secondary,
                listing_id=listing.id,
                buyer_wallet=req.buyer_wallet,
                buyer_external_id=req.buyer_user_id,
            )

            now = utc_now_iso()
            listing.mark_sold(now)
            order = Order(
                id=generate_uuid(),
                listing_id=listing.id,
                buyer_account_key=buyer_key,
                buyer_external_id=req.buyer_user_id,
                buyer_wallet=req.buyer_wallet,
                amount_tokens=listing.amount_tokens,
                total_secondary=listing.price_secondary,
                status=OrderStatus.COMPLETED,
                signature=req.signature or "",
                created_at=now,
            )
            self._orders.insert(0, order)

        await self._save_listings()
        await self._save_orders()
        logger.info(
            "Listing %s sold to %s (order %s, degraded=%s)",
            listing.id, buyer_key, order.id,
            buyer_snapshot.degraded or seller_snapshot.degraded,
        )
        return PurchaseResult(
            listing=listing,
            order=order,
            buyer_snapshot=buyer_snapshot,
            seller_snapshot=seller_snapshot,
        )

    async def cancel_listing(self, req: CancelListingRequest) -> Listing:
        check_signature(req.signature, self._min_signature_length, req.seller_wallet, req.message)
        seller_key = normalize_account_key(req.seller_email)
        listing = self._find(req.listing_id)

        async with self._locks.hold(listing_lock_key(listing.id)):
            check_listing_active(listing)
            check_listing_owner(seller_key, listing)
            listing.cancel(utc_now_iso())

        await self._save_listings()
        logger.info("Listing %s cancelled by %s", listing.id, seller_key)
        return listing
