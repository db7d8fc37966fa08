"""SQLAlchemy ORM models for the wallet store"""

import uuid
from decimal import Decimal
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    Uuid,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import declarative_base, relationship

from data4me_wallet.domain.models import FundingStatus
from data4me_wallet.infrastructure.database.types import Money
from data4me_wallet.utils.date_utils import utcnow

Base = declarative_base()


class User(Base):
    """Wallet owner; `balance` is written only by the ledger engine"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(64), nullable=False, unique=True)
    phone_number = Column(String(20), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    balance = Column(Money, nullable=False, default=Decimal("0.00"))
    referral_code = Column(String(16), nullable=False, unique=True)
    referred_by = Column(String(16), nullable=True)
    referral_count = Column(Integer, nullable=False, default=0)
    referral_earnings = Column(Money, nullable=False, default=Decimal("0.00"))
    referral_milestones_credited = Column(Integer, nullable=False, default=0)
    telegram_verified = Column(Boolean, nullable=False, default=False)
    ledger_sequence = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Every UPDATE is guarded by "WHERE version = <loaded version>"
    __mapper_args__ = {"version_id_col": version}

    transactions = relationship("Transaction", back_populates="user", order_by="Transaction.sequence")


class Admin(Base):
    """Back-office operator allowed to confirm or reject funding requests"""

    __tablename__ = "admins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(64), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class FundingRequest(Base):
    """User's claim of a bank transfer, awaiting admin confirmation"""

    __tablename__ = "funding_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    status = Column(String(16), nullable=False, default=FundingStatus.PENDING.value)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    confirmed_at = Column(DateTime, nullable=True)
    confirmed_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    transaction_id = Column(Uuid, ForeignKey("transactions.id"), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Transaction(Base):
    """Append-only record of one balance mutation"""

    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint("user_id", "sequence", name="uq_transactions_user_sequence"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    type = Column(String(32), nullable=False)
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    balance_before = Column(Money, nullable=False)
    balance_after = Column(Money, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="transactions")


class DataBundle(Base):
    """Purchasable data plan (catalog entry)"""

    __tablename__ = "data_bundles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    network = Column(String(16), nullable=False)
    data_amount = Column(String(16), nullable=False)
    validity = Column(String(32), nullable=False)
    price = Column(Money, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class DataPurchase(Base):
    """Fulfilled data bundle purchase"""

    __tablename__ = "data_purchases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    bundle_id = Column(Uuid, ForeignKey("data_bundles.id"), nullable=False)
    network = Column(String(16), nullable=False)
    data_amount = Column(String(16), nullable=False)
    phone_number = Column(String(20), nullable=False)
    price = Column(Money, nullable=False)
    status = Column(String(16), nullable=False, default="completed")
    transaction_id = Column(Uuid, ForeignKey("transactions.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class AirtimePurchase(Base):
    """Fulfilled airtime top-up"""

    __tablename__ = "airtime_purchases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    network = Column(String(16), nullable=False)
    phone_number = Column(String(20), nullable=False)
    amount = Column(Money, nullable=False)
    status = Column(String(16), nullable=False, default="completed")
    transaction_id = Column(Uuid, ForeignKey("transactions.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class OneTimeCode(Base):
    """Latest verification code per phone number, delivered over Telegram"""

    __tablename__ = "telegram_otps"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    phone_number = Column(String(20), nullable=False, unique=True)
    telegram_chat_id = Column(String(32), nullable=False)
    telegram_user_id = Column(String(32), nullable=True)
    code = Column(String(12), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class PaymentSettings(Base):
    """Bank account users transfer to when funding their wallet"""

    __tablename__ = "payment_settings"

    id = Column(Integer, primary_key=True)
    account_number = Column(String(20), nullable=False)
    bank_name = Column(String(64), nullable=False)
    account_name = Column(String(128), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


Index("ix_funding_requests_status_created", FundingRequest.status, FundingRequest.created_at)
