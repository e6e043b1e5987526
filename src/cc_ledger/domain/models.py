"""Domain models for cc_ledger — frozen dataclasses, no I/O.

A snapshot is never mutated: every ledger move produces a new one and the old
version stays pinned in the content store.

Document format (camelCase JSON). Documents pinned by the earlier deployment
use `userEmail`/`userId`/`walletAddress`/`totalBalance`/`rupeesBalance`;
`from_document` accepts both spellings.
"""

from dataclasses import dataclass, field
from typing import Any

Quantity = int | float

DEFAULT_SECONDARY_BALANCE: Quantity = 100


def normalize_account_key(raw: str) -> str:
    return raw.strip().lower()


def _first_present(doc: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = doc.get(key)
        if value is not None:
            return value
    return None


def _as_quantity(value: Any, default: Quantity) -> Quantity:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Quantity                 # signed token delta
    admin_signature: str             # wallet signature or market provenance note
    ticket_id: str
    timestamp: str                   # ISO-8601
    secondary_amount: Quantity = 0   # signed secondary-currency delta
    wallet_address: str | None = None
    admin_email: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "secondaryAmount": self.secondary_amount,
            "adminSignature": self.admin_signature,
            "ticketId": self.ticket_id,
            "timestamp": self.timestamp,
            "walletAddress": self.wallet_address,
            "adminEmail": self.admin_email,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(doc.get("id", "")),
            amount=_as_quantity(doc.get("amount"), 0),
            admin_signature=str(doc.get("adminSignature") or ""),
            ticket_id=str(doc.get("ticketId") or ""),
            timestamp=str(doc.get("timestamp") or ""),
            secondary_amount=_as_quantity(doc.get("secondaryAmount"), 0),
            wallet_address=doc.get("walletAddress"),
            admin_email=doc.get("adminEmail"),
        )


@dataclass(frozen=True)
class BalanceSnapshot:
    account_key: str
    token_balance: Quantity = 0
    secondary_balance: Quantity = DEFAULT_SECONDARY_BALANCE
    transactions: tuple[Transaction, ...] = ()
    external_id: str | None = None
    external_wallet: str | None = None
    last_updated: str | None = None
    # Not persisted: where this version lives and whether durability was achieved
    cid: str | None = field(default=None, compare=False)
    degraded: bool = field(default=False, compare=False)
    note: str | None = field(default=None, compare=False)

    @property
    def transaction_total(self) -> Quantity:
        return sum(tx.amount for tx in self.transactions)

    def to_document(self) -> dict[str, Any]:
        return {
            "accountKey": self.account_key,
            "externalId": self.external_id,
            "externalWallet": self.external_wallet,
            "tokenBalance": self.token_balance,
            "secondaryBalance": self.secondary_balance,
            "transactions": [tx.to_document() for tx in self.transactions],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_document(
        cls,
        doc: dict[str, Any],
        account_key: str,
        default_secondary: Quantity = DEFAULT_SECONDARY_BALANCE,
    ) -> "BalanceSnapshot":
        raw_txs = doc.get("transactions")
        txs = tuple(
            Transaction.from_document(t) for t in (raw_txs if isinstance(raw_txs, list) else [])
            if isinstance(t, dict)
        )
        stored_key = _first_present(doc, "accountKey", "userEmail")
        return cls(
            account_key=normalize_account_key(stored_key) if stored_key else account_key,
            token_balance=_as_quantity(_first_present(doc, "tokenBalance", "totalBalance"), 0),
            secondary_balance=_as_quantity(
                _first_present(doc, "secondaryBalance", "rupeesBalance"), default_secondary
            ),
            transactions=txs,
            external_id=_first_present(doc, "externalId", "userId"),
            external_wallet=_first_present(doc, "externalWallet", "walletAddress"),
            last_updated=doc.get("lastUpdated"),
        )


def default_snapshot(
    account_key: str,
    secondary_balance: Quantity = DEFAULT_SECONDARY_BALANCE,
    external_id: str | None = None,
) -> BalanceSnapshot:
    """Snapshot for an account with no history: 0 tokens plus the starting grant."""
    return BalanceSnapshot(
        account_key=account_key,
        secondary_balance=secondary_balance,
        external_id=external_id,
    )
