"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.infrastructure.clients.telegram import TelegramClient
from data4me_wallet.infrastructure.database.session import get_db
from data4me_wallet.services.accounts import AccountService
from data4me_wallet.services.funding import FundingWorkflow
from data4me_wallet.services.ledger import LedgerEngine
from data4me_wallet.services.otp import OneTimeCodeService
from data4me_wallet.services.purchases import PurchaseService
from data4me_wallet.services.reconciliation import ReconciliationService
from data4me_wallet.services.referrals import ReferralAccumulator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with"""
    return request.app.state.settings


def get_telegram_client(settings: Settings = Depends(get_app_settings)) -> TelegramClient:
    """Provide Telegram Bot API client instance"""
    return TelegramClient(settings)


def get_otp_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> OneTimeCodeService:
    return OneTimeCodeService(db, settings, telegram)


def get_account_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    codes: OneTimeCodeService = Depends(get_otp_service),
) -> AccountService:
    return AccountService(db, settings, codes)


def get_ledger_engine(db: Session = Depends(get_db)) -> LedgerEngine:
    return LedgerEngine(db)


def get_funding_workflow(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> FundingWorkflow:
    return FundingWorkflow(db, settings)


def get_purchase_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> PurchaseService:
    return PurchaseService(db, settings)


def get_referral_accumulator(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ReferralAccumulator:
    return ReferralAccumulator(db, settings)


def get_reconciliation_service(db: Session = Depends(get_db)) -> ReconciliationService:
    return ReconciliationService(db)
