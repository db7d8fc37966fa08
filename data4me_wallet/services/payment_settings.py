"""Bank details users transfer to when funding their wallet"""

from typing import Optional
from sqlalchemy.orm import Session

from data4me_wallet.infrastructure.database.models import PaymentSettings
from data4me_wallet.infrastructure.database.repositories import PaymentSettingsRepository
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction


class PaymentSettingsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = PaymentSettingsRepository(db)

    def current(self) -> Optional[PaymentSettings]:
        return self.repository.get()

    def update(self, account_number: str, bank_name: str, account_name: str) -> PaymentSettings:
        return run_in_transaction(
            self.db,
            lambda: self.repository.upsert(account_number, bank_name, account_name),
        )
