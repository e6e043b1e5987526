"""cc_ledger REST endpoints.

POST /balance/store            — admin-approved token delta
GET  /balance                  — index of known accounts
GET  /balance/email/{email}    — snapshot by account key
GET  /balance/{user_id}        — snapshot by external user id
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from src.cc_gateway.dependencies import get_ledger
from src.cc_ledger.application.schemas import (
    AccountIndexResponse,
    SnapshotResponse,
    StoreBalanceRequest,
    StoreBalanceResponse,
)
from src.cc_ledger.application.service import BalanceLedger

router = APIRouter(prefix="/balance", tags=["balance"])

_NO_STORE = "no-store, no-cache, must-revalidate"


@router.post("/store", response_model=StoreBalanceResponse, response_model_by_alias=True)
async def store_balance(
    body: StoreBalanceRequest,
    ledger: Annotated[BalanceLedger, Depends(get_ledger)],
) -> StoreBalanceResponse:
    return await ledger.store_balance(body)


@router.get("", response_model=AccountIndexResponse, response_model_by_alias=True)
async def list_balances(
    ledger: Annotated[BalanceLedger, Depends(get_ledger)],
) -> AccountIndexResponse:
    return ledger.list_accounts()


# Declared before /{user_id} so "email" is never captured as a user id
@router.get("/email/{email}", response_model=SnapshotResponse, response_model_by_alias=True)
async def get_balance_by_email(
    email: str,
    response: Response,
    ledger: Annotated[BalanceLedger, Depends(get_ledger)],
) -> SnapshotResponse:
    snapshot = await ledger.get_snapshot(email)
    response.headers["Cache-Control"] = _NO_STORE
    return SnapshotResponse.from_domain(snapshot)


@router.get("/{user_id}", response_model=SnapshotResponse, response_model_by_alias=True)
async def get_balance_by_user_id(
    user_id: str,
    response: Response,
    ledger: Annotated[BalanceLedger, Depends(get_ledger)],
) -> SnapshotResponse:
    snapshot = await ledger.get_snapshot_by_external_id(user_id)
    response.headers["Cache-Control"] = _NO_STORE
    return SnapshotResponse.from_domain(snapshot)
