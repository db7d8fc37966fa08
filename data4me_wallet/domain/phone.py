"""Nigerian phone number normalization"""

import re

from data4me_wallet.domain.exceptions import ValidationError

PHONE_PATTERN = re.compile(r"^\+234\d{10}$")


def normalize_phone_number(raw: str) -> str:
    """
    Bring a Nigerian mobile number into +234XXXXXXXXXX form.

    Accepts the shapes users and Telegram contacts actually produce:
    "+2348012345678", "2348012345678", "08012345678", with spaces or dashes.

    Raises:
        ValidationError: If the result is not a +234 number with 10 digits after the prefix
    """
    digits = re.sub(r"[\s\-()]", "", raw or "")
    if digits.startswith("0") and len(digits) == 11:
        digits = "+234" + digits[1:]
    elif digits.startswith("234"):
        digits = "+" + digits

    if not PHONE_PATTERN.match(digits):
        raise ValidationError("Invalid phone number")
    return digits
