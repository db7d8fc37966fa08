"""Funding request workflow: pending -> confirmed | rejected"""

import uuid
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from data4me_wallet.domain.models import FundingStatus, TransactionType
from data4me_wallet.domain.money import AmountLike, to_amount
from data4me_wallet.infrastructure.database.models import FundingRequest
from data4me_wallet.infrastructure.database.repositories import (
    AdminRepository,
    FundingRequestRepository,
    UserRepository,
)
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.infrastructure.observability.logging import log_funding_transition
from data4me_wallet.infrastructure.observability.metrics import record_funding_transition
from data4me_wallet.services.ledger import LedgerEngine
from data4me_wallet.utils.date_utils import utcnow

FUNDING_DESCRIPTION = "Account Top-up"


class FundingWorkflow:
    """
    Manages user funding claims and their admin confirmation.

    Confirmation flips the request to `confirmed` and credits the balance in
    the same database transaction. If crediting fails the whole unit of work
    rolls back and the request stays `pending`.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.requests = FundingRequestRepository(db)
        self.users = UserRepository(db)
        self.admins = AdminRepository(db)
        self.ledger = LedgerEngine(db)

    def create_funding_request(self, user_id: uuid.UUID, amount: AmountLike) -> FundingRequest:
        amount = to_amount(amount)
        minimum = minimum_funding_amount(self.settings)
        if amount < minimum:
            raise ValidationError(f"Minimum deposit is ₦{minimum:,.0f}")

        def work() -> FundingRequest:
            if self.users.get(user_id) is None:
                raise NotFoundError("User not found")
            return self.requests.create(user_id, amount)

        request = run_in_transaction(self.db, work, self.settings.ledger_max_attempts)
        record_funding_transition(FundingStatus.PENDING.value)
        log_funding_transition(str(request.id), str(user_id), FundingStatus.PENDING.value)
        return request

    def confirm_funding_request(self, request_id: uuid.UUID, admin_id: uuid.UUID) -> FundingRequest:
        """
        Confirm a pending request and credit its amount.

        Raises:
            NotFoundError: Request or admin does not exist
            InvalidStateError: Request was already confirmed or rejected
        """

        def work() -> FundingRequest:
            request = self._pending_request(request_id)
            if self.admins.get(admin_id) is None:
                raise NotFoundError("Admin not found")

            request.status = FundingStatus.CONFIRMED.value
            request.confirmed_by = admin_id
            request.confirmed_at = utcnow()

            transaction = self.ledger.apply_ledger_entry(
                request.user_id,
                TransactionType.FUNDING,
                request.amount,
                FUNDING_DESCRIPTION,
            )
            request.transaction_id = transaction.id
            self.db.flush()
            return request

        request = run_in_transaction(self.db, work, self.settings.ledger_max_attempts)
        record_funding_transition(FundingStatus.CONFIRMED.value)
        log_funding_transition(str(request.id), str(request.user_id), FundingStatus.CONFIRMED.value, str(admin_id))
        return request

    def reject_funding_request(self, request_id: uuid.UUID) -> FundingRequest:
        """
        Reject a pending request; the balance is untouched.

        Raises:
            NotFoundError: Request does not exist
            InvalidStateError: Request was already confirmed or rejected
        """

        def work() -> FundingRequest:
            request = self._pending_request(request_id)
            request.status = FundingStatus.REJECTED.value
            request.rejected_at = utcnow()
            self.db.flush()
            return request

        request = run_in_transaction(self.db, work, self.settings.ledger_max_attempts)
        record_funding_transition(FundingStatus.REJECTED.value)
        log_funding_transition(str(request.id), str(request.user_id), FundingStatus.REJECTED.value)
        return request

    def list_pending_funding_requests(self) -> List[FundingRequest]:
        return self.requests.list_by_status(FundingStatus.PENDING)

    def list_user_funding_requests(self, user_id: uuid.UUID) -> List[FundingRequest]:
        return self.requests.list_by_user(user_id)

    def _pending_request(self, request_id: uuid.UUID) -> FundingRequest:
        request = self.requests.get_for_update(request_id)
        if request is None:
            raise NotFoundError("Funding request not found")
        if request.status != FundingStatus.PENDING.value:
            raise InvalidStateError(f"Funding request is already {request.status}")
        return request


def minimum_funding_amount(settings: Settings) -> Decimal:
    return to_amount(settings.min_funding_amount)
