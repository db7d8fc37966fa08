"""POST /v1/auth/* - registration, one-time codes and login"""

import logging
from fastapi import APIRouter, Depends, Request

from data4me_wallet.api.dependencies import get_account_service, get_otp_service, get_request_id
from data4me_wallet.api.v1.schemas import (
    AuthResponse,
    LoginRequest,
    OtpRequest,
    OtpResponse,
    RegisterRequest,
    UserResponse,
)
from data4me_wallet.services.accounts import AccountService
from data4me_wallet.services.otp import OneTimeCodeService

router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse)
def register(
    request_body: RegisterRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    """
    Create a wallet after one-time code verification.

    Flow:
    1. Reject taken phone numbers and usernames
    2. Consume the one-time code sent to the phone's Telegram chat
    3. Count the referral (and pay any milestone bonus) if a code was given
    4. Create the user with a fresh referral code
    """
    user = accounts.register(
        username=request_body.username,
        phone_number=request_body.phone_number,
        password=request_body.password,
        otp=request_body.otp,
        referral_code=request_body.referral_code,
    )
    logging.info("User registered", extra={"request_id": get_request_id(request), "user_id": str(user.id)})
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/auth/request-otp", response_model=OtpResponse)
async def request_otp(
    request_body: OtpRequest,
    codes: OneTimeCodeService = Depends(get_otp_service),
):
    """Send a fresh verification code to the Telegram chat linked to this phone"""
    await codes.issue(request_body.phone_number)
    return OtpResponse(success=True, message="OTP sent to your Telegram")


@router.post("/auth/login", response_model=AuthResponse)
def login(
    request_body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Verify credentials and return the user's identity with referral stats"""
    user = accounts.authenticate_user(request_body.username, request_body.password)
    return AuthResponse(user=UserResponse.model_validate(user))
