"""Ledger reconciliation - detect and flag inconsistencies, never repair silently"""

import uuid
from typing import List
from sqlalchemy.orm import Session

from data4me_wallet.domain.exceptions import NotFoundError
from data4me_wallet.domain.models import FundingStatus, LedgerAudit, LedgerFinding, TransactionType
from data4me_wallet.domain.money import ZERO, to_amount
from data4me_wallet.infrastructure.database.repositories import (
    FundingRequestRepository,
    TransactionRepository,
    UserRepository,
)
from data4me_wallet.infrastructure.observability.logging import log_reconciliation_finding
from data4me_wallet.infrastructure.observability.metrics import record_reconciliation_finding


class ReconciliationService:
    """Audits transaction chains and confirmed funding against the ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.transactions = TransactionRepository(db)
        self.funding = FundingRequestRepository(db)

    def verify_user_ledger(self, user_id: uuid.UUID) -> LedgerAudit:
        """
        Walk a user's transactions in sequence order.

        Checks:
        - Each entry: balance_after == balance_before + amount
        - Consecutive entries link: balance_before[n] == balance_after[n-1]
        - Sequence numbers run 1..N without gaps
        - Final balance_after equals the live balance (0.00 with no entries)
        """
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")

        audit = LedgerAudit(user_id=str(user_id), entries_checked=0, live_balance=user.balance)
        previous_after = ZERO

        for expected_sequence, txn in enumerate(self.transactions.chain(user_id), start=1):
            audit.entries_checked += 1
            txn_id = str(txn.id)

            if txn.sequence != expected_sequence:
                audit.findings.append(LedgerFinding(
                    str(user_id), "sequence", f"expected sequence {expected_sequence}, found {txn.sequence}", txn_id,
                ))
            if to_amount(txn.balance_before + txn.amount) != txn.balance_after:
                audit.findings.append(LedgerFinding(
                    str(user_id), "arithmetic",
                    f"{txn.balance_before} + {txn.amount} != {txn.balance_after}", txn_id,
                ))
            if txn.balance_before != previous_after:
                audit.findings.append(LedgerFinding(
                    str(user_id), "link",
                    f"balance_before {txn.balance_before} does not follow previous balance_after {previous_after}",
                    txn_id,
                ))
            previous_after = txn.balance_after

        if previous_after != user.balance:
            audit.findings.append(LedgerFinding(
                str(user_id), "balance", f"ledger ends at {previous_after}, live balance is {user.balance}",
            ))

        self._flag(audit.findings)
        return audit

    def find_unbacked_fundings(self) -> List[LedgerFinding]:
        """Confirmed funding requests with no matching funding credit in the ledger"""
        findings = []
        for request in self.funding.list_by_status(FundingStatus.CONFIRMED):
            txn = self.transactions.get(request.transaction_id) if request.transaction_id else None
            if (
                txn is None
                or txn.user_id != request.user_id
                or txn.type != TransactionType.FUNDING.value
                or txn.amount != request.amount
            ):
                findings.append(LedgerFinding(
                    str(request.user_id),
                    "unbacked_funding",
                    f"funding request {request.id} is confirmed but has no matching credit",
                    str(request.transaction_id) if request.transaction_id else None,
                ))

        self._flag(findings)
        return findings

    def run(self) -> List[LedgerFinding]:
        """Full pass over every user plus confirmed funding"""
        findings: List[LedgerFinding] = []
        for user_id in self.users.all_ids():
            findings.extend(self.verify_user_ledger(user_id).findings)
        findings.extend(self.find_unbacked_fundings())
        return findings

    def _flag(self, findings: List[LedgerFinding]) -> None:
        for finding in findings:
            record_reconciliation_finding(finding.kind)
            log_reconciliation_finding(finding.user_id, finding.kind, finding.detail, finding.transaction_id)
