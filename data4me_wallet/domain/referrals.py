"""Referral milestone arithmetic"""

from decimal import Decimal
from data4me_wallet.domain.models import ReferralProgress


def milestones_due(referral_count: int, milestones_credited: int, milestone: int = 50) -> int:
    """
    Number of milestone bonuses owed but not yet paid.

    A referrer earns one bonus per completed block of `milestone` referrals.
    `milestones_credited` is the number already paid, so the result is never
    negative and paying it brings the two back in line.

    Example:
        count=50, credited=0  -> 1
        count=51, credited=1  -> 0
        count=100, credited=1 -> 1
    """
    if milestone <= 0:
        raise ValueError("milestone must be positive")
    return max(referral_count // milestone - milestones_credited, 0)


def referral_progress(referral_count: int, earnings: Decimal, milestone: int = 50) -> ReferralProgress:
    """Summarize progress toward the next milestone for display"""
    completed = referral_count // milestone
    next_milestone = (completed + 1) * milestone
    return ReferralProgress(
        count=referral_count,
        earnings=earnings,
        milestones_completed=completed,
        next_milestone=next_milestone,
        remaining=next_milestone - referral_count,
    )
