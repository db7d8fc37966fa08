"""Unit tests for data and airtime purchases"""

import uuid
import pytest
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from data4me_wallet.domain.exceptions import InsufficientFundsError, NotFoundError, PersistenceError, ValidationError
from data4me_wallet.domain.models import Network, TransactionType
from data4me_wallet.infrastructure.database.models import DataBundle
from data4me_wallet.infrastructure.database.repositories import PurchaseRepository, TransactionRepository
from data4me_wallet.services.ledger import LedgerEngine
from data4me_wallet.services.purchases import PurchaseService

PHONE = "+2348012345678"


@pytest.fixture
def purchases(db, settings) -> PurchaseService:
    return PurchaseService(db, settings)


def test_data_purchase_debits_bundle_price(purchases, db, make_user, bundle):
    user = make_user(balance="1000")

    purchase = purchases.purchase_data(user.id, bundle.id, PHONE)

    assert purchase.price == Decimal("250.00")
    assert purchase.network == "MTN"
    assert purchase.status == "completed"
    assert LedgerEngine(db).balance_of(user.id) == Decimal("750.00")

    txn = TransactionRepository(db).get(purchase.transaction_id)
    assert txn.type == TransactionType.DATA_PURCHASE.value
    assert txn.amount == Decimal("-250.00")
    assert txn.description == "MTN 1GB Data"


def test_data_purchase_insufficient_funds_records_nothing(purchases, db, make_user, bundle):
    user = make_user(balance="100")

    with pytest.raises(InsufficientFundsError):
        purchases.purchase_data(user.id, bundle.id, PHONE)

    data, airtime = purchases.history(user.id)
    assert data == [] and airtime == []
    assert LedgerEngine(db).balance_of(user.id) == Decimal("100.00")


def test_inactive_bundle_not_for_sale(purchases, db, make_user, bundle):
    user = make_user(balance="1000")
    bundle.is_active = False
    db.commit()

    with pytest.raises(NotFoundError, match="Bundle not found"):
        purchases.purchase_data(user.id, bundle.id, PHONE)

    assert LedgerEngine(db).balance_of(user.id) == Decimal("1000.00")


def test_unknown_bundle(purchases, make_user):
    user = make_user(balance="1000")

    with pytest.raises(NotFoundError):
        purchases.purchase_data(user.id, uuid.uuid4(), PHONE)


def test_airtime_purchase(purchases, db, make_user):
    user = make_user(balance="1000")

    purchase = purchases.purchase_airtime(user.id, Network.AIRTEL, PHONE, "100")

    assert purchase.amount == Decimal("100.00")
    assert purchase.network == "Airtel"
    assert LedgerEngine(db).balance_of(user.id) == Decimal("900.00")
    txn = TransactionRepository(db).get(purchase.transaction_id)
    assert txn.description == "Airtel ₦100 Airtime"


def test_airtime_below_minimum(purchases, db, make_user):
    user = make_user(balance="1000")

    with pytest.raises(ValidationError, match="Minimum airtime"):
        purchases.purchase_airtime(user.id, Network.MTN, PHONE, "49")

    assert LedgerEngine(db).balance_of(user.id) == Decimal("1000.00")


def test_airtime_insufficient_funds(purchases, db, make_user):
    """₦500 airtime against ₦100: refused, balance stays ₦100"""
    user = make_user(balance="100")

    with pytest.raises(InsufficientFundsError):
        purchases.purchase_airtime(user.id, Network.GLO, PHONE, "500")

    assert purchases.history(user.id) == ([], [])
    assert LedgerEngine(db).balance_of(user.id) == Decimal("100.00")


def test_list_bundles_sorted_by_network_then_price(purchases, db):
    db.add_all([
        DataBundle(network="MTN", data_amount="10GB", validity="30 days", price=Decimal("2100")),
        DataBundle(network="MTN", data_amount="2GB", validity="30 days", price=Decimal("480")),
        DataBundle(network="Glo", data_amount="1GB", validity="30 days", price=Decimal("230")),
        DataBundle(network="MTN", data_amount="500MB", validity="30 days", price=Decimal("150"), is_active=False),
    ])
    db.commit()

    assert [(b.network, b.data_amount) for b in purchases.list_bundles()] == [
        ("Glo", "1GB"),
        ("MTN", "2GB"),
        ("MTN", "10GB"),
    ]
    assert [b.data_amount for b in purchases.list_bundles("MTN")] == ["2GB", "10GB"]


def test_storage_failure_after_debit_restores_balance(purchases, db, make_user, bundle):
    """The debit and the purchase row commit together or not at all"""
    user = make_user(balance="1000")
    failure = OperationalError("INSERT INTO data_purchases", {}, Exception("disk I/O error"))

    with patch.object(PurchaseRepository, "add", side_effect=failure):
        with pytest.raises(PersistenceError):
            purchases.purchase_data(user.id, bundle.id, PHONE)

    db.expire_all()
    assert LedgerEngine(db).balance_of(user.id) == Decimal("1000.00")
    assert len(TransactionRepository(db).chain(user.id)) == 1
    assert purchases.history(user.id) == ([], [])
