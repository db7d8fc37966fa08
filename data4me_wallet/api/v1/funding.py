"""/v1/funding - user-initiated funding requests and payment details"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from data4me_wallet.api.dependencies import get_funding_workflow
from data4me_wallet.api.v1.schemas import FundingCreateRequest, FundingRequestResponse, PaymentSettingsSchema
from data4me_wallet.domain.exceptions import NotFoundError
from data4me_wallet.infrastructure.database.session import get_db
from data4me_wallet.services.funding import FundingWorkflow
from data4me_wallet.services.payment_settings import PaymentSettingsService
from data4me_wallet.utils.ids import parse_id

router = APIRouter()


@router.post("/funding/requests", response_model=FundingRequestResponse)
def create_funding_request(
    request_body: FundingCreateRequest,
    funding: FundingWorkflow = Depends(get_funding_workflow),
):
    """
    Record a user's claim of a bank transfer.

    The request starts `pending`; the balance only moves once an admin confirms.
    """
    request = funding.create_funding_request(parse_id(request_body.user_id, "user ID"), request_body.amount)
    return FundingRequestResponse.model_validate(request)


@router.get("/funding/payment-settings", response_model=PaymentSettingsSchema)
def get_payment_settings(db: Session = Depends(get_db)):
    """Bank account users should transfer to"""
    settings = PaymentSettingsService(db).current()
    if settings is None:
        raise NotFoundError("Payment details not configured")
    return PaymentSettingsSchema.model_validate(settings)
