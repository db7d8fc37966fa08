"""Unit tests for the ledger engine"""

import threading
import uuid
import pytest
from decimal import Decimal

from prometheus_client import REGISTRY
from sqlalchemy.orm.exc import StaleDataError

from data4me_wallet.domain.exceptions import InsufficientFundsError, NotFoundError, PersistenceError, ValidationError
from data4me_wallet.domain.models import TransactionType
from data4me_wallet.infrastructure.database.repositories import TransactionRepository
from data4me_wallet.infrastructure.database.unit_of_work import DEFAULT_MAX_ATTEMPTS, run_in_transaction
from data4me_wallet.services.ledger import LedgerEngine


def apply(db, user_id, transaction_type, amount, description="test", max_attempts=DEFAULT_MAX_ATTEMPTS):
    ledger = LedgerEngine(db)
    return run_in_transaction(
        db, lambda: ledger.apply_ledger_entry(user_id, transaction_type, Decimal(amount), description), max_attempts
    )


def test_credit_records_before_and_after(db, make_user):
    user = make_user()

    txn = apply(db, user.id, TransactionType.FUNDING, "5000", "Account Top-up")

    assert txn.balance_before == Decimal("0.00")
    assert txn.balance_after == Decimal("5000.00")
    assert txn.amount == Decimal("5000.00")
    assert txn.sequence == 1
    assert LedgerEngine(db).balance_of(user.id) == Decimal("5000.00")


def test_debit_reduces_balance(db, make_user):
    user = make_user(balance="1000")

    txn = apply(db, user.id, TransactionType.DATA_PURCHASE, "-250", "MTN 1GB Data")

    assert txn.balance_before == Decimal("1000.00")
    assert txn.balance_after == Decimal("750.00")
    assert txn.sequence == 2


def test_debit_to_exactly_zero_is_allowed(db, make_user):
    user = make_user(balance="250")

    txn = apply(db, user.id, TransactionType.DATA_PURCHASE, "-250")

    assert txn.balance_after == Decimal("0.00")


def test_insufficient_funds_leaves_state_unchanged(db, make_user):
    """Balance 100, debit 250: refused, balance stays 100, nothing recorded"""
    user = make_user(balance="100")

    with pytest.raises(InsufficientFundsError):
        apply(db, user.id, TransactionType.DATA_PURCHASE, "-250")

    assert LedgerEngine(db).balance_of(user.id) == Decimal("100.00")
    assert len(TransactionRepository(db).chain(user.id)) == 1


def test_zero_amount_rejected(db, make_user):
    user = make_user()

    with pytest.raises(ValidationError):
        apply(db, user.id, TransactionType.FUNDING, "0")


def test_unknown_user_rejected(db):
    with pytest.raises(NotFoundError):
        apply(db, uuid.uuid4(), TransactionType.FUNDING, "100")


def test_balance_equals_sum_of_transactions(db, make_user):
    user = make_user()
    for amount in ["1000", "-250", "500.50", "-100.25", "5000", "-1200"]:
        apply(db, user.id, TransactionType.FUNDING if not amount.startswith("-") else TransactionType.AIRTIME_PURCHASE, amount)

    chain = TransactionRepository(db).chain(user.id)

    assert sum(t.amount for t in chain) == LedgerEngine(db).balance_of(user.id) == Decimal("4950.25")
    assert [t.sequence for t in chain] == [1, 2, 3, 4, 5, 6]
    for previous, current in zip(chain, chain[1:]):
        assert current.balance_before == previous.balance_after
    for txn in chain:
        assert txn.balance_after == txn.balance_before + txn.amount


def test_history_is_most_recent_first(db, make_user):
    user = make_user()
    apply(db, user.id, TransactionType.FUNDING, "1000", "first")
    apply(db, user.id, TransactionType.FUNDING, "2000", "second")
    apply(db, user.id, TransactionType.AIRTIME_PURCHASE, "-100", "third")

    history = LedgerEngine(db).history(user.id)

    assert [t.description for t in history] == ["third", "second", "first"]
    assert LedgerEngine(db).history(user.id, limit=2)[0].description == "third"


def test_concurrent_debits_never_overdraw(db, session_factory, make_user):
    """Ten simultaneous ₦250 debits against ₦1,000: exactly four succeed"""
    user_id = make_user(balance="1000").id
    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(10)

    def debit():
        session = session_factory()
        try:
            start.wait()
            # one attempt per competing writer
            apply(session, user_id, TransactionType.AIRTIME_PURCHASE, "-250", max_attempts=10)
            result = "ok"
        except InsufficientFundsError:
            result = "insufficient"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=debit) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    db.expire_all()
    assert outcomes.count("ok") == 4
    assert outcomes.count("insufficient") == 6
    assert LedgerEngine(db).balance_of(user_id) == Decimal("0.00")
    assert len(TransactionRepository(db).list_by_type(user_id, TransactionType.AIRTIME_PURCHASE)) == 4


def test_debits_on_different_wallets_do_not_contend(db, session_factory, make_user):
    """Each wallet keeps its own chain; writers to separate users never conflict"""
    first_id = make_user(balance="1000").id
    second_id = make_user(balance="500").id
    conflicts_before = REGISTRY.get_sample_value("data4me_version_conflicts_total") or 0
    errors = []
    start = threading.Barrier(2)

    def debit(user_id, amount):
        session = session_factory()
        try:
            start.wait()
            apply(session, user_id, TransactionType.DATA_PURCHASE, amount, max_attempts=1)
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [
        threading.Thread(target=debit, args=(first_id, "-250")),
        threading.Thread(target=debit, args=(second_id, "-100")),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    db.expire_all()
    assert errors == []
    assert REGISTRY.get_sample_value("data4me_version_conflicts_total") == conflicts_before
    assert LedgerEngine(db).balance_of(first_id) == Decimal("750.00")
    assert LedgerEngine(db).balance_of(second_id) == Decimal("400.00")
    for user_id in (first_id, second_id):
        chain = TransactionRepository(db).chain(user_id)
        assert [t.sequence for t in chain] == [1, 2]
        assert {t.user_id for t in chain} == {user_id}


def test_conflicts_beyond_budget_become_persistence_error(db):
    calls = []

    def always_conflicts():
        calls.append(1)
        raise StaleDataError("UPDATE statement on table 'users' expected to update 1 row(s); 0 were matched.")

    with pytest.raises(PersistenceError, match="Concurrent update"):
        run_in_transaction(db, always_conflicts, max_attempts=3)

    assert len(calls) == 3
