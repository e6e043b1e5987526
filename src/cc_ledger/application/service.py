"""BalanceLedger — account snapshots and balance moves.

Every mutation runs under the account's lock:
    load current snapshot -> compute next -> pin to content store -> update index.

Durability fallback: if the content store refuses the write, the new snapshot
is kept in the LedgerStore's volatile cache and returned with degraded=True.
A crash before the store recovers loses those moves.

Reads never fail: an unknown account (or a failed reverse lookup) yields the
default snapshot, an unreadable blob yields the default snapshot flagged
degraded. Mutations are stricter and refuse to build on an unreadable blob,
because writing a fresh snapshot over it would erase the account's history.
"""

import logging
from dataclasses import replace

from src.cc_common.datetime_utils import utc_now_iso
from src.cc_common.enums import TransactionReason
from src.cc_common.errors import (
    BlobNotFoundError,
    InsufficientBalanceError,
    StorageUnavailableError,
)
from src.cc_common.id_generator import generate_market_ticket_id, generate_transaction_id
from src.cc_common.keyed_lock import account_lock_key
from src.cc_gateway.auth.signature import check_signature
from src.cc_ledger.application.ledger_store import LedgerStore
from src.cc_ledger.application.schemas import (
    AccountIndexEntry,
    AccountIndexResponse,
    StoreBalanceRequest,
    StoreBalanceResponse,
)
from src.cc_ledger.domain.ledger import Delta, apply_delta, market_provenance
from src.cc_ledger.domain.models import (
    DEFAULT_SECONDARY_BALANCE,
    BalanceSnapshot,
    Quantity,
    default_snapshot,
    normalize_account_key,
)
from src.cc_storage.domain.content_store import ContentStoreProtocol, balance_document_name

logger = logging.getLogger(__name__)

NOTE_NO_BALANCE = "No balance data found"
NOTE_READ_UNAVAILABLE = "Stored balance temporarily unavailable"
NOTE_STORED_IN_MEMORY = "Stored in-memory (content store unavailable)"


class BalanceLedger:
    def __init__(
        self,
        store: LedgerStore,
        content_store: ContentStoreProtocol,
        default_secondary: Quantity = DEFAULT_SECONDARY_BALANCE,
        min_signature_length: int = 10,
        public_gateway: str | None = None,
    ) -> None:
        self._store = store
        self._content = content_store
        self._default_secondary = default_secondary
        self._min_signature_length = min_signature_length
        self._public_gateway = public_gateway

    def _ipfs_url(self, cid: str | None) -> str:
        if not cid or not self._public_gateway:
            return ""
        return f"{self._public_gateway}{cid}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _load(self, account_key: str, strict: bool) -> BalanceSnapshot:
        cached = self._store.volatile_snapshot(account_key)
        if cached is not None:
            return cached

        cid = await self._store.index.resolve(account_key)
        if cid is None:
            return replace(
                default_snapshot(account_key, self._default_secondary), note=NOTE_NO_BALANCE
            )

        try:
            doc = await self._content.read(cid)
        except (BlobNotFoundError, StorageUnavailableError) as exc:
            logger.warning("Balance blob %s for %s unreadable: %s", cid, account_key, exc.message)
            if strict:
                raise StorageUnavailableError(
                    f"Balance for {account_key} is temporarily unavailable; refusing to overwrite"
                ) from exc
            return replace(
                default_snapshot(account_key, self._default_secondary),
                cid=cid,
                degraded=True,
                note=NOTE_READ_UNAVAILABLE,
            )
        snapshot = BalanceSnapshot.from_document(doc, account_key, self._default_secondary)
        return replace(snapshot, cid=cid)

    async def get_snapshot(self, account_key: str) -> BalanceSnapshot:
        return await self._load(normalize_account_key(account_key), strict=False)

    async def get_snapshot_strict(self, account_key: str) -> BalanceSnapshot:
        """Like get_snapshot, but raises StorageUnavailableError on an unreadable blob."""
        return await self._load(normalize_account_key(account_key), strict=True)

    async def get_snapshot_by_external_id(self, external_id: str) -> BalanceSnapshot:
        account_key = self._store.account_for_external_id(external_id)
        if account_key is None:
            return replace(
                default_snapshot("", self._default_secondary, external_id=external_id),
                note=NOTE_NO_BALANCE,
            )
        return await self.get_snapshot(account_key)

    def list_accounts(self) -> AccountIndexResponse:
        indexed = self._store.index.entries()
        in_memory = set(self._store.volatile_keys())
        entries = [
            AccountIndexEntry(
                account_key=key,
                cid=indexed.get(key),
                ipfs_url=self._ipfs_url(indexed.get(key)) or None,
                in_memory=key in in_memory,
            )
            for key in sorted(set(indexed) | in_memory)
        ]
        return AccountIndexResponse(balances=entries, total_users=len(entries))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _persist(self, snapshot: BalanceSnapshot) -> BalanceSnapshot:
        key = snapshot.account_key
        try:
            cid = await self._content.write(balance_document_name(key), snapshot.to_document())
        except StorageUnavailableError as exc:
            logger.warning("Failed to store balance for %s, falling back to memory: %s", key, exc.message)
            degraded = replace(snapshot, degraded=True, note=NOTE_STORED_IN_MEMORY)
            self._store.keep_volatile(degraded)
            return degraded

        self._store.index.update(key, cid)
        self._store.drop_volatile(key)
        return replace(snapshot, cid=cid)

    async def _apply_locked(self, account_key: str, delta: Delta) -> BalanceSnapshot:
        current = await self._load(account_key, strict=True)
        if delta.external_id:
            self._store.remember_external_id(delta.external_id, account_key)
        nxt = apply_delta(current, delta, generate_transaction_id(), utc_now_iso())
        return await self._persist(nxt)

    async def apply_delta(
        self,
        account_key: str,
        token_delta: Quantity,
        secondary_delta: Quantity,
        provenance: str,
        ticket_id: str | None = None,
        wallet_address: str | None = None,
        external_id: str | None = None,
        admin_email: str | None = None,
    ) -> BalanceSnapshot:
        """Apply one delta to one account; creates the account if needed."""
        key = normalize_account_key(account_key)
        delta = Delta(
            token_delta=token_delta,
            secondary_delta=secondary_delta,
            provenance=provenance,
            ticket_id=ticket_id or generate_market_ticket_id(),
            wallet_address=wallet_address,
            external_id=external_id,
            admin_email=admin_email,
        )
        async with self._store.locks.hold(account_lock_key(key)):
            return await self._apply_locked(key, delta)

    async def settle_trade(
        self,
        buyer_key: str,
        seller_key: str,
        amount_tokens: Quantity,
        price: Quantity,
        listing_id: str,
        buyer_wallet: str | None = None,
        buyer_external_id: str | None = None,
    ) -> tuple[BalanceSnapshot, BalanceSnapshot]:
        """Move tokens seller -> buyer and secondary currency buyer -> seller.

        Both accounts are locked and both snapshots loaded before either is
        written, so a refused read aborts the trade with no side effects.
        """
        buyer_key = normalize_account_key(buyer_key)
        seller_key = normalize_account_key(seller_key)
        async with self._store.locks.hold(account_lock_key(buyer_key), account_lock_key(seller_key)):
            buyer = await self._load(buyer_key, strict=True)
            if buyer.secondary_balance < price:
                raise InsufficientBalanceError("secondary", price, buyer.secondary_balance)
            seller = await self._load(seller_key, strict=True)

            ticket_id = generate_market_ticket_id()
            now = utc_now_iso()
            if buyer_external_id:
                self._store.remember_external_id(buyer_external_id, buyer_key)

            buyer_next = apply_delta(
                buyer,
                Delta(
                    token_delta=amount_tokens,
                    secondary_delta=-price,
                    provenance=market_provenance(TransactionReason.MARKET_BUY, listing_id, seller_key),
                    ticket_id=ticket_id,
                    wallet_address=buyer_wallet,
                    external_id=buyer_external_id,
                ),
                generate_transaction_id(),
                now,
            )
            seller_next = apply_delta(
                seller,
                Delta(
                    token_delta=-amount_tokens,
                    secondary_delta=price,
                    provenance=market_provenance(TransactionReason.MARKET_SELL, listing_id, buyer_key),
                    ticket_id=ticket_id,
                ),
                generate_transaction_id(),
                now,
            )
            return await self._persist(buyer_next), await self._persist(seller_next)

    async def store_balance(self, req: StoreBalanceRequest) -> StoreBalanceResponse:
        """Admin-originated token delta (ticket approval)."""
        check_signature(req.admin_signature, self._min_signature_length)
        snapshot = await self.apply_delta(
            req.user_email,
            token_delta=req.amount,
            secondary_delta=0,
            provenance=req.admin_signature or "",
            ticket_id=req.ticket_id,
            wallet_address=req.wallet_address,
            external_id=req.user_id,
            admin_email=req.admin_email,
        )
        logger.info(
            "Stored balance for %s: %s tokens (ticket %s, degraded=%s)",
            snapshot.account_key, snapshot.token_balance, req.ticket_id, snapshot.degraded,
        )
        return StoreBalanceResponse(
            cid=snapshot.cid or "",
            balance=snapshot.token_balance,
            secondary_balance=snapshot.secondary_balance,
            ipfs_url=self._ipfs_url(snapshot.cid),
            degraded=snapshot.degraded,
            note=snapshot.note,
        )
