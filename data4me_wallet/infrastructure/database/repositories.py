"""Data access layer for wallet entities

Repositories only read and stage writes (add/flush); committing is the job of
the unit of work that wraps each operation.
"""

import uuid
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from data4me_wallet.domain.models import FundingStatus, TransactionType
from data4me_wallet.infrastructure.database.models import (
    Admin,
    AirtimePurchase,
    DataBundle,
    DataPurchase,
    FundingRequest,
    OneTimeCode,
    PaymentSettings,
    Transaction,
    User,
)


class UserRepository:
    """Repository for wallet users"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_for_update(self, user_id: uuid.UUID) -> Optional[User]:
        """Load a user holding its row lock until the unit of work ends"""
        return self.db.get(User, user_id, with_for_update=True)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.username == username)).first()

    def get_by_phone_number(self, phone_number: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.phone_number == phone_number)).first()

    def get_by_referral_code(self, referral_code: str, for_update: bool = False) -> Optional[User]:
        stmt = select(User).where(User.referral_code == referral_code)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def referral_code_exists(self, referral_code: str) -> bool:
        return self.db.scalar(select(User.id).where(User.referral_code == referral_code)) is not None

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def all_ids(self) -> List[uuid.UUID]:
        return list(self.db.scalars(select(User.id)))


class AdminRepository:
    """Repository for back-office admins"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, admin_id: uuid.UUID) -> Optional[Admin]:
        return self.db.get(Admin, admin_id)

    def get_by_username(self, username: str) -> Optional[Admin]:
        return self.db.scalars(select(Admin).where(Admin.username == username)).first()

    def add(self, admin: Admin) -> Admin:
        self.db.add(admin)
        self.db.flush()
        return admin


class FundingRequestRepository:
    """Repository for funding requests"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, amount) -> FundingRequest:
        request = FundingRequest(user_id=user_id, amount=amount, status=FundingStatus.PENDING.value)
        self.db.add(request)
        self.db.flush()
        return request

    def get(self, request_id: uuid.UUID) -> Optional[FundingRequest]:
        return self.db.get(FundingRequest, request_id)

    def get_for_update(self, request_id: uuid.UUID) -> Optional[FundingRequest]:
        return self.db.get(FundingRequest, request_id, with_for_update=True)

    def list_by_status(self, status: FundingStatus) -> List[FundingRequest]:
        return list(
            self.db.scalars(
                select(FundingRequest)
                .where(FundingRequest.status == status.value)
                .order_by(FundingRequest.created_at.desc())
            )
        )

    def list_by_user(self, user_id: uuid.UUID) -> List[FundingRequest]:
        return list(
            self.db.scalars(
                select(FundingRequest)
                .where(FundingRequest.user_id == user_id)
                .order_by(FundingRequest.created_at.desc())
            )
        )


class TransactionRepository:
    """Repository for the append-only transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def list_by_user(self, user_id: uuid.UUID, limit: int = 50) -> List[Transaction]:
        """Most recent entries first"""
        return list(
            self.db.scalars(
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(Transaction.sequence.desc())
                .limit(limit)
            )
        )

    def chain(self, user_id: uuid.UUID) -> List[Transaction]:
        """Full history in application order"""
        return list(
            self.db.scalars(
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(Transaction.sequence.asc())
            )
        )

    def list_by_type(self, user_id: uuid.UUID, transaction_type: TransactionType) -> List[Transaction]:
        return list(
            self.db.scalars(
                select(Transaction)
                .where(Transaction.user_id == user_id, Transaction.type == transaction_type.value)
                .order_by(Transaction.sequence.asc())
            )
        )


class CatalogRepository:
    """Read-only access to the data bundle catalog"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, bundle_id: uuid.UUID) -> Optional[DataBundle]:
        return self.db.get(DataBundle, bundle_id)

    def list_active(self, network: str | None = None) -> List[DataBundle]:
        stmt = select(DataBundle).where(DataBundle.is_active.is_(True))
        if network:
            stmt = stmt.where(DataBundle.network == network)
        bundles = list(self.db.scalars(stmt))
        # Money is stored as text, so price ordering happens in Python
        return sorted(bundles, key=lambda b: (b.network, b.price))

    def has_any(self) -> bool:
        return self.db.scalar(select(DataBundle.id).limit(1)) is not None

    def add_all(self, bundles: List[DataBundle]) -> None:
        self.db.add_all(bundles)
        self.db.flush()


class PurchaseRepository:
    """Repository for fulfilled data and airtime purchases"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, purchase: DataPurchase | AirtimePurchase) -> DataPurchase | AirtimePurchase:
        self.db.add(purchase)
        self.db.flush()
        return purchase

    def data_purchases_for(self, user_id: uuid.UUID) -> List[DataPurchase]:
        return list(
            self.db.scalars(
                select(DataPurchase)
                .where(DataPurchase.user_id == user_id)
                .order_by(DataPurchase.created_at.desc())
            )
        )

    def airtime_purchases_for(self, user_id: uuid.UUID) -> List[AirtimePurchase]:
        return list(
            self.db.scalars(
                select(AirtimePurchase)
                .where(AirtimePurchase.user_id == user_id)
                .order_by(AirtimePurchase.created_at.desc())
            )
        )


class OneTimeCodeRepository:
    """Repository for Telegram chat links and their current code"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_phone_number(self, phone_number: str, for_update: bool = False) -> Optional[OneTimeCode]:
        stmt = select(OneTimeCode).where(OneTimeCode.phone_number == phone_number)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def link_chat(self, phone_number: str, chat_id: str, telegram_user_id: str) -> OneTimeCode:
        """
        Bind a phone number to the Telegram chat codes are delivered to.

        Callers must have checked that telegram_user_id owns the phone. Moving
        the phone to another chat drops any code still live in the old one.
        """
        record = self.get_by_phone_number(phone_number, for_update=True)
        if record is None:
            record = OneTimeCode(
                phone_number=phone_number, telegram_chat_id=chat_id, telegram_user_id=telegram_user_id
            )
            self.db.add(record)
        else:
            if record.telegram_chat_id != chat_id:
                record.code = None
                record.expires_at = None
            record.telegram_chat_id = chat_id
            record.telegram_user_id = telegram_user_id
        self.db.flush()
        return record


class PaymentSettingsRepository:
    """Single-row store of the bank account users pay into"""

    def __init__(self, db: Session):
        self.db = db

    def get(self) -> Optional[PaymentSettings]:
        return self.db.scalars(select(PaymentSettings).limit(1)).first()

    def upsert(self, account_number: str, bank_name: str, account_name: str) -> PaymentSettings:
        settings = self.get()
        if settings is None:
            settings = PaymentSettings(account_number=account_number, bank_name=bank_name, account_name=account_name)
            self.db.add(settings)
        else:
            settings.account_number = account_number
            settings.bank_name = bank_name
            settings.account_name = account_name
        self.db.flush()
        return settings
