"""/v1/admin - admin login, funding confirmation queue, settings, reconciliation"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from data4me_wallet.api.dependencies import (
    get_account_service,
    get_funding_workflow,
    get_reconciliation_service,
    get_request_id,
)
from data4me_wallet.api.v1.schemas import (
    AckResponse,
    AdminAuthResponse,
    AdminResponse,
    ConfirmFundingRequest,
    FindingSchema,
    FundingRequestResponse,
    LoginRequest,
    PaymentSettingsSchema,
    ReconciliationResponse,
)
from data4me_wallet.infrastructure.database.session import get_db
from data4me_wallet.services.accounts import AccountService
from data4me_wallet.services.funding import FundingWorkflow
from data4me_wallet.services.payment_settings import PaymentSettingsService
from data4me_wallet.services.reconciliation import ReconciliationService
from data4me_wallet.utils.ids import parse_id

router = APIRouter()


@router.post("/admin/login", response_model=AdminAuthResponse)
def admin_login(
    request_body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    admin = accounts.authenticate_admin(request_body.username, request_body.password)
    return AdminAuthResponse(admin=AdminResponse.model_validate(admin))


@router.get("/admin/funding/pending", response_model=List[FundingRequestResponse])
def get_pending_funding_requests(funding: FundingWorkflow = Depends(get_funding_workflow)):
    """Funding requests awaiting review, newest first"""
    return [FundingRequestResponse.model_validate(r) for r in funding.list_pending_funding_requests()]


@router.post("/admin/funding/{request_id}/confirm", response_model=AckResponse)
def confirm_funding_request(
    request_id: str,
    request_body: ConfirmFundingRequest,
    request: Request,
    funding: FundingWorkflow = Depends(get_funding_workflow),
):
    """
    Confirm a pending request and credit the user's balance.

    Returns 409 if the request was already confirmed or rejected; the balance
    is credited at most once.
    """
    funding.confirm_funding_request(
        parse_id(request_id, "funding request ID"),
        parse_id(request_body.admin_id, "admin ID"),
    )
    logging.info("Funding confirmed", extra={"request_id": get_request_id(request), "funding_request_id": request_id})
    return AckResponse()


@router.post("/admin/funding/{request_id}/reject", response_model=AckResponse)
def reject_funding_request(
    request_id: str,
    funding: FundingWorkflow = Depends(get_funding_workflow),
):
    funding.reject_funding_request(parse_id(request_id, "funding request ID"))
    return AckResponse()


@router.put("/admin/payment-settings", response_model=PaymentSettingsSchema)
def update_payment_settings(request_body: PaymentSettingsSchema, db: Session = Depends(get_db)):
    settings = PaymentSettingsService(db).update(
        account_number=request_body.account_number,
        bank_name=request_body.bank_name,
        account_name=request_body.account_name,
    )
    return PaymentSettingsSchema.model_validate(settings)


@router.get("/admin/reconciliation", response_model=ReconciliationResponse)
def run_reconciliation(reconciliation: ReconciliationService = Depends(get_reconciliation_service)):
    """Audit every user's transaction chain and all confirmed funding"""
    findings = reconciliation.run()
    return ReconciliationResponse(
        consistent=not findings,
        findings=[FindingSchema.model_validate(f) for f in findings],
    )
