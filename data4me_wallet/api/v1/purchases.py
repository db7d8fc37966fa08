"""Data bundle catalog and data/airtime purchase endpoints"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from data4me_wallet.api.dependencies import get_purchase_service
from data4me_wallet.api.v1.schemas import (
    AirtimePurchaseEnvelope,
    AirtimePurchaseRequest,
    AirtimePurchaseResponse,
    DataBundleResponse,
    DataPurchaseEnvelope,
    DataPurchaseRequest,
    DataPurchaseResponse,
)
from data4me_wallet.domain.models import Network
from data4me_wallet.services.purchases import PurchaseService
from data4me_wallet.utils.ids import parse_id

router = APIRouter()


@router.get("/data-bundles", response_model=List[DataBundleResponse])
def list_data_bundles(
    network: Optional[Network] = Query(default=None),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    """Active bundles ordered by network, then price"""
    bundles = purchases.list_bundles(network.value if network else None)
    return [DataBundleResponse.model_validate(b) for b in bundles]


@router.post("/data/purchase", response_model=DataPurchaseEnvelope)
def purchase_data(
    request_body: DataPurchaseRequest,
    purchases: PurchaseService = Depends(get_purchase_service),
):
    """Debit the bundle price and record the purchase"""
    purchase = purchases.purchase_data(
        user_id=parse_id(request_body.user_id, "user ID"),
        bundle_id=parse_id(request_body.bundle_id, "bundle ID"),
        phone_number=request_body.phone_number,
    )
    return DataPurchaseEnvelope(purchase=DataPurchaseResponse.model_validate(purchase))


@router.post("/airtime/purchase", response_model=AirtimePurchaseEnvelope)
def purchase_airtime(
    request_body: AirtimePurchaseRequest,
    purchases: PurchaseService = Depends(get_purchase_service),
):
    purchase = purchases.purchase_airtime(
        user_id=parse_id(request_body.user_id, "user ID"),
        network=request_body.network,
        phone_number=request_body.phone_number,
        amount=request_body.amount,
    )
    return AirtimePurchaseEnvelope(purchase=AirtimePurchaseResponse.model_validate(purchase))
