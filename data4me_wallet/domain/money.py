"""Currency arithmetic - naira amounts as exact 2-place decimals"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from data4me_wallet.domain.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

AmountLike = Union[Decimal, int, str]


def to_amount(value: AmountLike) -> Decimal:
    """
    Coerce a value into a currency amount rounded half-up to the kobo.

    Floats are refused: they cannot represent most decimal amounts exactly and
    would drift across repeated additions.

    Raises:
        ValidationError: If the value is not a finite decimal number
    """
    if isinstance(value, float):
        raise ValidationError("Amounts must be given as decimal strings, not floats")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_naira(amount: Decimal) -> str:
    """Render an amount the way it appears in transaction descriptions: ₦500 or ₦500.50"""
    amount = to_amount(amount)
    if amount == amount.to_integral_value():
        return f"₦{int(amount)}"
    return f"₦{amount}"
