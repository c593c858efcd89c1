"""Input checks shared by the record services.

Every check raises ValidationError before the store is touched.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from flockbook.domain.errors import (
    ValidationError,
    must_be_positive,
    must_not_be_negative,
    required_field,
    unknown_product_type,
)

CENT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    """Round an amount to paisa."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def require_product_type(product_type: str, product_types: Sequence[str]) -> None:
    if product_type not in product_types:
        raise ValidationError(unknown_product_type(product_type))


def require_positive(value: Optional[Decimal], field_name: str) -> None:
    if value is None or value <= 0:
        raise ValidationError(must_be_positive(field_name))


def require_not_negative(value: Optional[Decimal], field_name: str) -> None:
    if value is None or value < 0:
        raise ValidationError(must_not_be_negative(field_name))


def require_text(value: Optional[str], field_name: str) -> str:
    """Return the stripped text, rejecting blanks."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(required_field(field_name))
    return text
