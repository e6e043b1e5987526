"""Pure balance arithmetic: snapshot + delta -> next snapshot."""

from dataclasses import dataclass, replace

from src.cc_common.enums import TransactionReason
from src.cc_ledger.domain.models import BalanceSnapshot, Quantity, Transaction


@dataclass(frozen=True)
class Delta:
    token_delta: Quantity
    secondary_delta: Quantity
    provenance: str          # stored as the transaction's adminSignature
    ticket_id: str
    wallet_address: str | None = None
    external_id: str | None = None
    admin_email: str | None = None


def apply_delta(
    snapshot: BalanceSnapshot, delta: Delta, tx_id: str, now_iso: str
) -> BalanceSnapshot:
    """Return the next snapshot. Balances are not floored at zero."""
    tx = Transaction(
        id=tx_id,
        amount=delta.token_delta,
        secondary_amount=delta.secondary_delta,
        admin_signature=delta.provenance,
        ticket_id=delta.ticket_id,
        timestamp=now_iso,
        wallet_address=delta.wallet_address,
        admin_email=delta.admin_email,
    )
    return replace(
        snapshot,
        token_balance=snapshot.token_balance + delta.token_delta,
        secondary_balance=snapshot.secondary_balance + delta.secondary_delta,
        transactions=(*snapshot.transactions, tx),
        # First write wins for denormalized metadata
        external_id=snapshot.external_id if snapshot.external_id is not None else delta.external_id,
        external_wallet=(
            snapshot.external_wallet
            if snapshot.external_wallet is not None
            else delta.wallet_address
        ),
        last_updated=now_iso,
        cid=None,
        degraded=False,
        note=None,
    )


def market_provenance(
    reason: TransactionReason, listing_id: str, counterparty_key: str
) -> str:
    """`market_buy|listing:<id>|cp:<counterparty>` note for marketplace moves."""
    return f"{reason.value}|listing:{listing_id}|cp:{counterparty_key}"
