"""Data and airtime purchases - thin callers of the ledger engine"""

import uuid
from typing import List, Tuple
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import NotFoundError, ValidationError
from data4me_wallet.domain.models import Network, TransactionType
from data4me_wallet.domain.money import AmountLike, format_naira, to_amount
from data4me_wallet.infrastructure.database.models import AirtimePurchase, DataBundle, DataPurchase
from data4me_wallet.infrastructure.database.repositories import CatalogRepository, PurchaseRepository
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.services.ledger import LedgerEngine


class PurchaseService:
    """Debit the wallet and record the purchase in one unit of work"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.catalog = CatalogRepository(db)
        self.purchases = PurchaseRepository(db)
        self.ledger = LedgerEngine(db)

    def list_bundles(self, network: str | None = None) -> List[DataBundle]:
        return self.catalog.list_active(network)

    def purchase_data(self, user_id: uuid.UUID, bundle_id: uuid.UUID, phone_number: str) -> DataPurchase:
        """
        Buy a data bundle at its catalog price.

        Raises:
            NotFoundError: Bundle missing or inactive, or user missing
            InsufficientFundsError: Balance below the bundle price
        """

        def work() -> DataPurchase:
            bundle = self.catalog.get(bundle_id)
            if bundle is None or not bundle.is_active:
                raise NotFoundError("Bundle not found")

            transaction = self.ledger.apply_ledger_entry(
                user_id,
                TransactionType.DATA_PURCHASE,
                -bundle.price,
                f"{bundle.network} {bundle.data_amount} Data",
            )
            purchase = DataPurchase(
                user_id=user_id,
                bundle_id=bundle.id,
                network=bundle.network,
                data_amount=bundle.data_amount,
                phone_number=phone_number,
                price=bundle.price,
                transaction_id=transaction.id,
            )
            return self.purchases.add(purchase)

        return run_in_transaction(self.db, work, self.settings.ledger_max_attempts)

    def purchase_airtime(
        self,
        user_id: uuid.UUID,
        network: Network,
        phone_number: str,
        amount: AmountLike,
    ) -> AirtimePurchase:
        """
        Top up airtime for any amount at or above the minimum.

        Raises:
            ValidationError: Amount below the minimum
            NotFoundError: User missing
            InsufficientFundsError: Balance below the amount
        """
        amount = to_amount(amount)
        minimum = to_amount(self.settings.min_airtime_amount)
        if amount < minimum:
            raise ValidationError(f"Minimum airtime amount is {format_naira(minimum)}")

        def work() -> AirtimePurchase:
            transaction = self.ledger.apply_ledger_entry(
                user_id,
                TransactionType.AIRTIME_PURCHASE,
                -amount,
                f"{network.value} {format_naira(amount)} Airtime",
            )
            purchase = AirtimePurchase(
                user_id=user_id,
                network=network.value,
                phone_number=phone_number,
                amount=amount,
                transaction_id=transaction.id,
            )
            return self.purchases.add(purchase)

        return run_in_transaction(self.db, work, self.settings.ledger_max_attempts)

    def history(self, user_id: uuid.UUID) -> Tuple[List[DataPurchase], List[AirtimePurchase]]:
        return self.purchases.data_purchases_for(user_id), self.purchases.airtime_purchases_for(user_id)
