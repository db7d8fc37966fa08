"""Identifier helpers"""

import uuid

from data4me_wallet.domain.exceptions import ValidationError


def parse_id(value: str | uuid.UUID, label: str = "id") -> uuid.UUID:
    """Parse a UUID given as text, rejecting malformed values with a ValidationError"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {label} format") from e
