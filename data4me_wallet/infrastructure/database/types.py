"""Custom column types"""

from decimal import Decimal
from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from data4me_wallet.domain.money import to_amount


class Money(TypeDecorator):
    """
    Naira amount stored as an exact decimal string ("1250.00").

    Keeps arithmetic in Python Decimal on every backend; SQLite has no native
    fixed-point type and would otherwise coerce to binary floats.
    """

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(to_amount(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)
