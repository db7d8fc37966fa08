"""Referral accumulator: counts referrals and pays milestone bonuses"""

import uuid
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import NotFoundError, ValidationError
from data4me_wallet.domain.models import ReferralProgress, TransactionType
from data4me_wallet.domain.money import to_amount
from data4me_wallet.domain.referrals import milestones_due, referral_progress
from data4me_wallet.infrastructure.database.models import User
from data4me_wallet.infrastructure.database.repositories import UserRepository
from data4me_wallet.services.ledger import LedgerEngine

REFERRAL_BONUS_DESCRIPTION = "Referral Bonus"


class ReferralAccumulator:
    """
    Tracks referrals per referrer.

    Each completed block of `referral_milestone` referrals pays
    `referral_bonus_amount` exactly once. The referrer row keeps
    `referral_milestones_credited`, and a bonus is only paid while the count
    says more milestones are complete than have been credited.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.users = UserRepository(db)
        self.ledger = LedgerEngine(db)

    def record_referral(self, referral_code: str) -> User:
        """
        Count one new referral for the owner of `referral_code`.

        Runs inside the caller's unit of work (registration) and does not
        commit.

        Raises:
            ValidationError: No user owns this referral code
        """
        referrer = self.users.get_by_referral_code(referral_code, for_update=True)
        if referrer is None:
            raise ValidationError("Invalid referral code")

        referrer.referral_count += 1
        self.db.flush()

        due = milestones_due(
            referrer.referral_count,
            referrer.referral_milestones_credited,
            self.settings.referral_milestone,
        )
        bonus = to_amount(self.settings.referral_bonus_amount)
        for _ in range(due):
            self.ledger.apply_ledger_entry(
                referrer.id,
                TransactionType.REFERRAL_BONUS,
                bonus,
                REFERRAL_BONUS_DESCRIPTION,
            )
            referrer.referral_earnings = to_amount(referrer.referral_earnings + bonus)
            referrer.referral_milestones_credited += 1
            self.db.flush()

        return referrer

    def progress(self, user_id: uuid.UUID) -> ReferralProgress:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return referral_progress(user.referral_count, user.referral_earnings, self.settings.referral_milestone)
