"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from data4me_wallet.domain.exceptions import ValidationError as DomainValidationError
from data4me_wallet.domain.models import Network
from data4me_wallet.domain.phone import normalize_phone_number
from data4me_wallet.infrastructure.security.passwords import MAX_PASSWORD_BYTES

PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=14, decimal_places=2)]


class PhoneNumberMixin(BaseModel):
    """Normalizes `phone_number` to +234XXXXXXXXXX"""

    @field_validator("phone_number", check_fields=False)
    @classmethod
    def _normalize_phone(cls, value: str) -> str:
        try:
            return normalize_phone_number(value)
        except DomainValidationError as e:
            raise ValueError(e.message) from e


# Auth


class RegisterRequest(PhoneNumberMixin):
    """Request body for POST /v1/auth/register"""

    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")
    phone_number: str
    password: str = Field(..., min_length=6, max_length=72)
    otp: str = Field(..., min_length=4, max_length=8, pattern=r"^\d+$")
    referral_code: Optional[str] = Field(default=None, max_length=16)

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /v1/auth/login and /v1/admin/login"""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class OtpRequest(PhoneNumberMixin):
    """Request body for POST /v1/auth/request-otp"""

    phone_number: str


class OtpResponse(BaseModel):
    success: bool
    message: str


class UserResponse(BaseModel):
    """Public identity of a wallet user"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    phone_number: str
    balance: Decimal
    referral_code: str
    referral_count: int
    referral_earnings: Decimal


class AuthResponse(BaseModel):
    success: bool = True
    user: UserResponse


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str


class AdminAuthResponse(BaseModel):
    success: bool = True
    admin: AdminResponse


# Ledger


class TransactionResponse(BaseModel):
    """Single ledger entry"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sequence: int
    type: str
    amount: Decimal
    description: str
    balance_before: Decimal
    balance_after: Decimal
    created_at: datetime


class ReferralStatsResponse(BaseModel):
    count: int
    earnings: Decimal
    milestones_completed: int
    next_milestone: int
    remaining: int
    referral_code: str


# Funding


class FundingCreateRequest(BaseModel):
    """Request body for POST /v1/funding/requests"""

    user_id: str = Field(..., min_length=1)
    amount: PositiveAmount


class FundingRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    amount: Decimal
    status: str
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[uuid.UUID] = None
    rejected_at: Optional[datetime] = None
    transaction_id: Optional[uuid.UUID] = None


class ConfirmFundingRequest(BaseModel):
    """Request body for POST /v1/admin/funding/{id}/confirm"""

    admin_id: str = Field(..., min_length=1)


class AckResponse(BaseModel):
    success: bool = True


class PaymentSettingsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_number: str = Field(..., min_length=6, max_length=20)
    bank_name: str = Field(..., min_length=1, max_length=64)
    account_name: str = Field(..., min_length=1, max_length=128)


# Catalog and purchases


class DataBundleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    network: str
    data_amount: str
    validity: str
    price: Decimal


class DataPurchaseRequest(PhoneNumberMixin):
    """Request body for POST /v1/data/purchase"""

    user_id: str = Field(..., min_length=1)
    bundle_id: str = Field(..., min_length=1)
    phone_number: str


class AirtimePurchaseRequest(PhoneNumberMixin):
    """Request body for POST /v1/airtime/purchase"""

    user_id: str = Field(..., min_length=1)
    network: Network
    phone_number: str
    amount: PositiveAmount


class DataPurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    bundle_id: uuid.UUID
    network: str
    data_amount: str
    phone_number: str
    price: Decimal
    status: str
    transaction_id: uuid.UUID
    created_at: datetime


class AirtimePurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    network: str
    phone_number: str
    amount: Decimal
    status: str
    transaction_id: uuid.UUID
    created_at: datetime


class DataPurchaseEnvelope(BaseModel):
    success: bool = True
    purchase: DataPurchaseResponse


class AirtimePurchaseEnvelope(BaseModel):
    success: bool = True
    purchase: AirtimePurchaseResponse


class PurchaseHistoryResponse(BaseModel):
    user_id: uuid.UUID
    data: List[DataPurchaseResponse]
    airtime: List[AirtimePurchaseResponse]


# Reconciliation


class FindingSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    kind: str
    detail: str
    transaction_id: Optional[str] = None


class ReconciliationResponse(BaseModel):
    consistent: bool
    findings: List[FindingSchema]
