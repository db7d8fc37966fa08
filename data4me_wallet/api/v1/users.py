"""GET /v1/users/{user_id}/* - profile, ledger history, purchases, referrals"""

from typing import List
from fastapi import APIRouter, Depends, Query

from data4me_wallet.api.dependencies import (
    get_account_service,
    get_app_settings,
    get_funding_workflow,
    get_ledger_engine,
    get_purchase_service,
    get_referral_accumulator,
)
from data4me_wallet.api.v1.schemas import (
    AirtimePurchaseResponse,
    DataPurchaseResponse,
    FundingRequestResponse,
    PurchaseHistoryResponse,
    ReferralStatsResponse,
    TransactionResponse,
    UserResponse,
)
from data4me_wallet.config import Settings
from data4me_wallet.services.accounts import AccountService
from data4me_wallet.services.funding import FundingWorkflow
from data4me_wallet.services.ledger import LedgerEngine
from data4me_wallet.services.purchases import PurchaseService
from data4me_wallet.services.referrals import ReferralAccumulator
from data4me_wallet.utils.ids import parse_id

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    return UserResponse.model_validate(accounts.get_user(parse_id(user_id, "user ID")))


@router.get("/users/{user_id}/transactions", response_model=List[TransactionResponse])
def get_user_transactions(
    user_id: str,
    limit: int | None = Query(default=None, ge=1, le=500),
    ledger: LedgerEngine = Depends(get_ledger_engine),
    settings: Settings = Depends(get_app_settings),
):
    """
    Retrieve a user's ledger entries.

    Returns:
        Most recent entries first (by per-user sequence)
    """
    uid = parse_id(user_id, "user ID")
    transactions = ledger.history(uid, limit or settings.transaction_history_limit)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get("/users/{user_id}/purchases", response_model=PurchaseHistoryResponse)
def get_user_purchases(user_id: str, purchases: PurchaseService = Depends(get_purchase_service)):
    uid = parse_id(user_id, "user ID")
    data, airtime = purchases.history(uid)
    return PurchaseHistoryResponse(
        user_id=uid,
        data=[DataPurchaseResponse.model_validate(p) for p in data],
        airtime=[AirtimePurchaseResponse.model_validate(p) for p in airtime],
    )


@router.get("/users/{user_id}/referrals", response_model=ReferralStatsResponse)
def get_user_referrals(
    user_id: str,
    referrals: ReferralAccumulator = Depends(get_referral_accumulator),
    accounts: AccountService = Depends(get_account_service),
):
    uid = parse_id(user_id, "user ID")
    progress = referrals.progress(uid)
    return ReferralStatsResponse(
        count=progress.count,
        earnings=progress.earnings,
        milestones_completed=progress.milestones_completed,
        next_milestone=progress.next_milestone,
        remaining=progress.remaining,
        referral_code=accounts.get_user(uid).referral_code,
    )


@router.get("/users/{user_id}/funding-requests", response_model=List[FundingRequestResponse])
def get_user_funding_requests(user_id: str, funding: FundingWorkflow = Depends(get_funding_workflow)):
    uid = parse_id(user_id, "user ID")
    return [FundingRequestResponse.model_validate(r) for r in funding.list_user_funding_requests(uid)]
