"""Models module initialization"""

from swish_client.models.payment import (
    PaymentRecord,
    canonical_amount,
    parse_amount,
)
from swish_client.models.error import ApiErrorDetail, first_error

__all__ = [
    "PaymentRecord",
    "canonical_amount",
    "parse_amount",
    "ApiErrorDetail",
    "first_error",
]
