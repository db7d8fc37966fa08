"""Unit tests for the funding request workflow"""

import uuid
import pytest
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from data4me_wallet.domain.exceptions import InvalidStateError, NotFoundError, PersistenceError, ValidationError
from data4me_wallet.domain.models import FundingStatus, TransactionType
from data4me_wallet.infrastructure.database.repositories import TransactionRepository
from data4me_wallet.services.funding import FundingWorkflow
from data4me_wallet.services.ledger import LedgerEngine


@pytest.fixture
def funding(db, settings) -> FundingWorkflow:
    return FundingWorkflow(db, settings)


def test_create_request_starts_pending(funding, db, make_user):
    user = make_user()

    request = funding.create_funding_request(user.id, "5000")

    assert request.status == FundingStatus.PENDING.value
    assert request.amount == Decimal("5000.00")
    assert LedgerEngine(db).balance_of(user.id) == Decimal("0.00")
    assert [r.id for r in funding.list_pending_funding_requests()] == [request.id]


def test_create_request_below_minimum(funding, make_user):
    """₦500 is under the ₦1,000 minimum: rejected, nothing stored"""
    user = make_user()

    with pytest.raises(ValidationError, match="Minimum deposit"):
        funding.create_funding_request(user.id, "500")

    assert funding.list_user_funding_requests(user.id) == []


def test_create_request_for_unknown_user(funding):
    with pytest.raises(NotFoundError):
        funding.create_funding_request(uuid.uuid4(), "5000")


def test_confirm_credits_balance_once(funding, db, make_user, admin):
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")

    confirmed = funding.confirm_funding_request(request.id, admin.id)

    assert confirmed.status == FundingStatus.CONFIRMED.value
    assert confirmed.confirmed_by == admin.id
    assert confirmed.confirmed_at is not None
    assert LedgerEngine(db).balance_of(user.id) == Decimal("5000.00")

    txn = TransactionRepository(db).get(confirmed.transaction_id)
    assert txn.type == TransactionType.FUNDING.value
    assert txn.description == "Account Top-up"
    assert txn.balance_before == Decimal("0.00")
    assert txn.balance_after == Decimal("5000.00")


def test_confirm_twice_is_invalid_state(funding, db, make_user, admin):
    """₦3,000 request confirmed twice: second fails, credited once"""
    user = make_user()
    request = funding.create_funding_request(user.id, "3000")
    funding.confirm_funding_request(request.id, admin.id)

    with pytest.raises(InvalidStateError):
        funding.confirm_funding_request(request.id, admin.id)

    assert LedgerEngine(db).balance_of(user.id) == Decimal("3000.00")
    assert len(TransactionRepository(db).list_by_type(user.id, TransactionType.FUNDING)) == 1


def test_reject_leaves_balance_untouched(funding, db, make_user):
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")

    rejected = funding.reject_funding_request(request.id)

    assert rejected.status == FundingStatus.REJECTED.value
    assert rejected.rejected_at is not None
    assert LedgerEngine(db).balance_of(user.id) == Decimal("0.00")
    assert funding.list_pending_funding_requests() == []


def test_confirm_after_reject_is_invalid_state(funding, db, make_user, admin):
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")
    funding.reject_funding_request(request.id)

    with pytest.raises(InvalidStateError):
        funding.confirm_funding_request(request.id, admin.id)

    assert LedgerEngine(db).balance_of(user.id) == Decimal("0.00")


def test_reject_after_confirm_is_invalid_state(funding, make_user, admin):
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")
    funding.confirm_funding_request(request.id, admin.id)

    with pytest.raises(InvalidStateError):
        funding.reject_funding_request(request.id)


def test_confirm_unknown_request(funding, admin):
    with pytest.raises(NotFoundError):
        funding.confirm_funding_request(uuid.uuid4(), admin.id)


def test_confirm_by_unknown_admin_keeps_request_pending(funding, db, make_user):
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")

    with pytest.raises(NotFoundError, match="Admin"):
        funding.confirm_funding_request(request.id, uuid.uuid4())

    db.refresh(request)
    assert request.status == FundingStatus.PENDING.value
    assert LedgerEngine(db).balance_of(user.id) == Decimal("0.00")



def test_storage_failure_mid_confirm_keeps_request_pending(funding, db, make_user, admin):
    """A credit written but never committed leaves no trace"""
    user = make_user()
    request = funding.create_funding_request(user.id, "5000")
    apply_entry = LedgerEngine.apply_ledger_entry

    def credit_then_fail(self, *args, **kwargs):
        apply_entry(self, *args, **kwargs)
        raise OperationalError("UPDATE funding_requests", {}, Exception("disk I/O error"))

    with patch.object(LedgerEngine, "apply_ledger_entry", credit_then_fail):
        with pytest.raises(PersistenceError):
            funding.confirm_funding_request(request.id, admin.id)

    db.expire_all()
    db.refresh(request)
    assert request.status == FundingStatus.PENDING.value
    assert request.transaction_id is None
    assert LedgerEngine(db).balance_of(user.id) == Decimal("0.00")
    assert TransactionRepository(db).list_by_type(user.id, TransactionType.FUNDING) == []

    confirmed = funding.confirm_funding_request(request.id, admin.id)
    assert confirmed.status == FundingStatus.CONFIRMED.value
    assert LedgerEngine(db).balance_of(user.id) == Decimal("5000.00")
