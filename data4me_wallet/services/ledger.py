"""Ledger engine - the single choke point for balance changes"""

import uuid
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session

from data4me_wallet.domain.exceptions import InsufficientFundsError, NotFoundError, ValidationError
from data4me_wallet.domain.models import TransactionType
from data4me_wallet.domain.money import AmountLike, ZERO, to_amount
from data4me_wallet.infrastructure.database.models import Transaction, User
from data4me_wallet.infrastructure.database.repositories import TransactionRepository, UserRepository
from data4me_wallet.infrastructure.observability.logging import log_ledger_entry
from data4me_wallet.infrastructure.observability.metrics import record_insufficient_funds, record_ledger_entry


class LedgerEngine:
    """
    Applies signed amounts to user balances and records each one as a
    Transaction.

    The engine stages its writes on the caller's session and never commits:
    the balance update and the transaction row join whatever unit of work the
    caller is running (a purchase record, a funding confirmation), so they
    commit or roll back together.

    Serialization per user:
    - The user row is read with SELECT ... FOR UPDATE, holding the row lock
      on PostgreSQL until commit
    - The UPDATE is additionally guarded by the row's version column, so on
      stores without row locks a concurrent writer surfaces as a version
      conflict and the unit of work is retried
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.transactions = TransactionRepository(db)

    def apply_ledger_entry(
        self,
        user_id: uuid.UUID,
        transaction_type: TransactionType,
        signed_amount: AmountLike,
        description: str,
    ) -> Transaction:
        """
        Apply one balance mutation.

        Negative amounts are debits and are refused if they would take the
        balance below zero. Positive amounts are credits.

        Raises:
            ValidationError: Amount is zero or not a valid decimal
            NotFoundError: User does not exist
            InsufficientFundsError: Debit exceeds the current balance
        """
        amount = to_amount(signed_amount)
        if amount == ZERO:
            raise ValidationError("Ledger amount must be non-zero")

        user = self.users.get_for_update(user_id)
        if user is None:
            raise NotFoundError("User not found")

        balance_before = user.balance
        balance_after = to_amount(balance_before + amount)
        if balance_after < ZERO:
            record_insufficient_funds(transaction_type.value)
            raise InsufficientFundsError(
                f"Insufficient balance: available {balance_before}, required {-amount}"
            )

        return self._record(user, transaction_type, amount, description, balance_before, balance_after)

    def _record(
        self,
        user: User,
        transaction_type: TransactionType,
        amount: Decimal,
        description: str,
        balance_before: Decimal,
        balance_after: Decimal,
    ) -> Transaction:
        user.balance = balance_after
        user.ledger_sequence += 1

        transaction = Transaction(
            user_id=user.id,
            sequence=user.ledger_sequence,
            type=transaction_type.value,
            amount=amount,
            description=description,
            balance_before=balance_before,
            balance_after=balance_after,
        )
        # Flushes the versioned UPDATE of the user together with the INSERT
        self.transactions.add(transaction)

        record_ledger_entry(transaction_type.value)
        log_ledger_entry(
            user_id=str(user.id),
            transaction_id=str(transaction.id),
            transaction_type=transaction_type.value,
            amount=str(amount),
            balance_after=str(balance_after),
        )
        return transaction

    def history(self, user_id: uuid.UUID, limit: int = 50) -> List[Transaction]:
        """Ledger entries for a user, most recent first"""
        return self.transactions.list_by_user(user_id, limit)

    def balance_of(self, user_id: uuid.UUID) -> Decimal:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.balance
