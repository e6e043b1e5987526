"""Pydantic schemas for the balance API.

Wire format is camelCase. Request field names follow the deployed client
(`userEmail`, `amount`, `adminSignature`, `ticketId`).
"""

import math

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from src.cc_ledger.domain.models import BalanceSnapshot, Quantity, Transaction


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def require_finite(value: Quantity) -> Quantity:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class StoreBalanceRequest(CamelModel):
    user_email: EmailStr
    user_id: str | None = None
    wallet_address: str | None = None
    amount: Quantity = Field(..., description="Signed token delta, must be non-zero")
    admin_signature: str | None = None
    ticket_id: str = Field(..., min_length=1)
    admin_email: str | None = None

    @field_validator("amount")
    @classmethod
    def amount_non_zero(cls, v: Quantity) -> Quantity:
        require_finite(v)
        if v == 0:
            raise ValueError("amount must be non-zero")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TransactionOut(CamelModel):
    id: str
    amount: Quantity
    secondary_amount: Quantity
    admin_signature: str
    ticket_id: str
    timestamp: str
    wallet_address: str | None
    admin_email: str | None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionOut":
        return cls(
            id=tx.id,
            amount=tx.amount,
            secondary_amount=tx.secondary_amount,
            admin_signature=tx.admin_signature,
            ticket_id=tx.ticket_id,
            timestamp=tx.timestamp,
            wallet_address=tx.wallet_address,
            admin_email=tx.admin_email,
        )


class SnapshotResponse(CamelModel):
    account_key: str
    external_id: str | None
    external_wallet: str | None
    token_balance: Quantity
    secondary_balance: Quantity
    transactions: list[TransactionOut]
    last_updated: str | None
    cid: str | None
    degraded: bool
    note: str | None

    @classmethod
    def from_domain(cls, s: BalanceSnapshot) -> "SnapshotResponse":
        return cls(
            account_key=s.account_key,
            external_id=s.external_id,
            external_wallet=s.external_wallet,
            token_balance=s.token_balance,
            secondary_balance=s.secondary_balance,
            transactions=[TransactionOut.from_domain(t) for t in s.transactions],
            last_updated=s.last_updated,
            cid=s.cid,
            degraded=s.degraded,
            note=s.note,
        )


class StoreBalanceResponse(CamelModel):
    success: bool = True
    cid: str
    balance: Quantity
    secondary_balance: Quantity
    ipfs_url: str
    degraded: bool
    note: str | None = None


class AccountIndexEntry(CamelModel):
    account_key: str
    cid: str | None
    ipfs_url: str | None
    in_memory: bool


class AccountIndexResponse(CamelModel):
    balances: list[AccountIndexEntry]
    total_users: int
