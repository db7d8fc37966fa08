"""Pytest fixtures for testing"""

import itertools
import pytest
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from data4me_wallet.api.main import create_app
from data4me_wallet.config import Settings
from data4me_wallet.domain.models import TransactionType
from data4me_wallet.infrastructure.database.models import Admin, Base, DataBundle, User
from data4me_wallet.infrastructure.database.session import build_engine, build_session_factory
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.infrastructure.security.passwords import hash_password
from data4me_wallet.services.ledger import LedgerEngine


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file"""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        bcrypt_rounds=4,
        telegram_bot_token="test-token",
        telegram_backoff_base=0,
        telegram_webhook_secret="",
    )


@pytest.fixture
def session_factory(settings: Settings) -> Generator[sessionmaker, None, None]:
    """Create test database schema and a session factory bound to it"""
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    try:
        yield build_session_factory(engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(settings: Settings, session_factory: sessionmaker) -> TestClient:
    """Create FastAPI test client backed by the test database"""
    app = create_app(settings, session_factory)
    return TestClient(app)


@pytest.fixture
def credit(db: Session):
    """Put money on a user's balance through the ledger"""

    def _credit(user: User, amount: str) -> None:
        run_in_transaction(
            db,
            lambda: LedgerEngine(db).apply_ledger_entry(user.id, TransactionType.FUNDING, Decimal(amount), "Account Top-up"),
        )

    return _credit


@pytest.fixture
def make_user(db: Session, settings: Settings, credit):
    """Factory for committed users, optionally pre-funded"""
    counter = itertools.count(1)

    def _make_user(
        username: str | None = None,
        phone_number: str | None = None,
        password: str = "secret123",
        balance: str | None = None,
        **fields,
    ) -> User:
        n = next(counter)
        user = User(
            username=username or f"user{n}",
            phone_number=phone_number or f"+23480{n:08d}",
            password_hash=hash_password(password, settings.bcrypt_rounds),
            referral_code=fields.pop("referral_code", f"REF{n:05d}"),
            telegram_verified=True,
            **fields,
        )
        db.add(user)
        db.commit()
        if balance:
            credit(user, balance)
        return user

    return _make_user


@pytest.fixture
def admin(db: Session, settings: Settings) -> Admin:
    admin = Admin(username="vesta", password_hash=hash_password("vesta", settings.bcrypt_rounds))
    db.add(admin)
    db.commit()
    return admin


@pytest.fixture
def bundle(db: Session) -> DataBundle:
    """MTN 1GB for ₦250"""
    bundle = DataBundle(network="MTN", data_amount="1GB", validity="30 days", price=Decimal("250"))
    db.add(bundle)
    db.commit()
    return bundle
