"""Seed the store with the admin account, payment details and bundle catalog

Usage:
    python -m data4me_wallet.seed
"""

import logging
from decimal import Decimal
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session

from data4me_wallet.config import Settings, get_settings
from data4me_wallet.infrastructure.database.models import Base, DataBundle
from data4me_wallet.infrastructure.database.repositories import CatalogRepository
from data4me_wallet.infrastructure.database.session import build_engine, build_session_factory
from data4me_wallet.infrastructure.database.unit_of_work import run_in_transaction
from data4me_wallet.infrastructure.observability.logging import setup_logging
from data4me_wallet.services.accounts import AccountService
from data4me_wallet.services.payment_settings import PaymentSettingsService

# (network, data amount, validity, price in naira)
DEFAULT_BUNDLES: List[Tuple[str, str, str, str]] = [
    # 9mobile (cheapest)
    ("9mobile", "500MB", "30 days", "120"),
    ("9mobile", "1GB", "30 days", "200"),
    ("9mobile", "2GB", "30 days", "380"),
    ("9mobile", "3GB", "30 days", "550"),
    ("9mobile", "5GB", "30 days", "900"),
    ("9mobile", "10GB", "30 days", "1700"),
    ("9mobile", "15GB", "30 days", "2500"),
    ("9mobile", "20GB", "30 days", "3200"),
    # MTN
    ("MTN", "500MB", "30 days", "150"),
    ("MTN", "1GB", "30 days", "250"),
    ("MTN", "2GB", "30 days", "480"),
    ("MTN", "3GB", "30 days", "700"),
    ("MTN", "5GB", "30 days", "1100"),
    ("MTN", "10GB", "30 days", "2100"),
    ("MTN", "20GB", "30 days", "4000"),
    ("MTN", "40GB", "30 days", "7500"),
    # Glo
    ("Glo", "1GB", "30 days", "230"),
    ("Glo", "2GB", "30 days", "400"),
    ("Glo", "3GB", "30 days", "600"),
    ("Glo", "5GB", "30 days", "950"),
    ("Glo", "10GB", "30 days", "1800"),
    ("Glo", "15GB", "30 days", "2600"),
    ("Glo", "25GB", "30 days", "4200"),
    # Airtel
    ("Airtel", "750MB", "14 days", "200"),
    ("Airtel", "1.5GB", "30 days", "350"),
    ("Airtel", "3GB", "30 days", "650"),
    ("Airtel", "6GB", "30 days", "1200"),
    ("Airtel", "10GB", "30 days", "1900"),
    ("Airtel", "15GB", "30 days", "2800"),
    ("Airtel", "25GB", "30 days", "4500"),
]


def seed(db: Session, settings: Settings) -> Dict[str, int]:
    """Create missing seed data; safe to run repeatedly"""
    created = {"admins": 0, "payment_settings": 0, "bundles": 0}

    accounts = AccountService(db, settings)
    if accounts.admins.get_by_username(settings.seed_admin_username) is None:
        accounts.ensure_admin(settings.seed_admin_username, settings.seed_admin_password)
        created["admins"] = 1

    payments = PaymentSettingsService(db)
    if payments.current() is None:
        payments.update(settings.seed_account_number, settings.seed_bank_name, settings.seed_account_name)
        created["payment_settings"] = 1

    catalog = CatalogRepository(db)
    if not catalog.has_any():
        bundles = [
            DataBundle(network=network, data_amount=size, validity=validity, price=Decimal(price))
            for network, size, validity, price in DEFAULT_BUNDLES
        ]
        run_in_transaction(db, lambda: catalog.add_all(bundles))
        created["bundles"] = len(bundles)

    return created


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.service_name)

    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    session_factory = build_session_factory(engine)

    db = session_factory()
    try:
        created = seed(db, settings)
        logging.info("Seeding completed", extra=created)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
