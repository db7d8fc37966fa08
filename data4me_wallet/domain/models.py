"""Domain models - enums and plain dataclasses shared across layers"""

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


class TransactionType(str, enum.Enum):
    FUNDING = "funding"
    DATA_PURCHASE = "data_purchase"
    AIRTIME_PURCHASE = "airtime_purchase"
    REFERRAL_BONUS = "referral_bonus"


class FundingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class Network(str, enum.Enum):
    MTN = "MTN"
    GLO = "Glo"
    AIRTEL = "Airtel"
    NINE_MOBILE = "9mobile"


@dataclass
class ReferralProgress:
    """Where a referrer stands against the milestone schedule"""

    count: int
    earnings: Decimal
    milestones_completed: int
    next_milestone: int
    remaining: int


@dataclass
class LedgerFinding:
    """Single inconsistency detected while auditing a user's transaction chain"""

    user_id: str
    kind: str  # arithmetic | link | sequence | balance | unbacked_funding
    detail: str
    transaction_id: Optional[str] = None


@dataclass
class LedgerAudit:
    """Result of walking one user's transaction chain"""

    user_id: str
    entries_checked: int
    live_balance: Decimal
    findings: List[LedgerFinding] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.findings
