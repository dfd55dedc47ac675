"""Payment request and refund models"""

from decimal import Context, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


AmountInput = Union[Decimal, str, int, float]

# Largest magnitude, in either direction, of an amount's leading digit
AMOUNT_EXPONENT_LIMIT = 30


def parse_amount(value: AmountInput) -> Decimal:
    """
    Convert an amount to Decimal without binary rounding

    Floats go through their shortest repr, so 100.1 becomes Decimal("100.1")
    rather than the exact binary value.
    """
    if isinstance(value, bool):
        raise ValueError("amount must be a number or numeric string")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"invalid amount: {value!r}") from e
    else:
        raise ValueError(f"unsupported amount type: {type(value).__name__}")

    if not amount.is_finite():
        raise ValueError(f"amount must be finite: {value!r}")
    if amount.is_zero():
        return Decimal(0)
    if abs(amount.adjusted()) > AMOUNT_EXPONENT_LIMIT:
        raise ValueError(f"amount out of range: {value!r}")
    return amount


def canonical_amount(amount: Decimal) -> str:
    """Plain-notation text with trailing zeros removed, e.g. 100.50 -> '100.5'"""
    # normalize under a context wide enough to never round
    precision = max(len(amount.as_tuple().digits), 1)
    text = format(amount.normalize(Context(prec=precision)), "f")
    return "0" if text == "-0" else text


class PaymentRecord(BaseModel):
    """
    A Swish payment request or refund

    Every field is optional; only the fields present on the wire are set and
    unset fields are left out when serializing.
    """

    id: Optional[str] = Field(None, description="Identifier assigned by Swish")
    amount: Optional[Decimal] = Field(None, description="Amount, decimal-safe")
    currency: Optional[str] = Field(None, description="Currency code, e.g. SEK")
    payer_alias: Optional[str] = Field(None, description="Payer's Swish number")
    payee_alias: Optional[str] = Field(None, description="Payee's Swish number")
    payee_payment_reference: Optional[str] = Field(None, description="Payee reference")
    payer_payment_reference: Optional[str] = Field(None, description="Payer reference")
    payment_reference: Optional[str] = Field(None, description="Reference assigned by Swish")
    original_payment_reference: Optional[str] = Field(
        None, description="Payment reference of the payment being refunded"
    )
    message: Optional[str] = Field(None, description="Message shown to the payer")
    callback_url: Optional[str] = Field(None, description="Callback URL for status updates")
    status: Optional[str] = Field(None, description="CREATED, PAID, DECLINED, ERROR, ...")
    date_created: Optional[str] = Field(None, description="Creation time (ISO 8601)")
    date_paid: Optional[str] = Field(None, description="Payment time (ISO 8601)")
    error_code: Optional[str] = Field(None, description="Error code on failed payments")
    error_message: Optional[str] = Field(None, description="Error message on failed payments")
    additional_information: Optional[str] = Field(None, description="Extra error details")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Optional[AmountInput]) -> Optional[Decimal]:
        if v is None:
            return None
        return parse_amount(v)

    @field_serializer("amount")
    def serialize_amount(self, v: Optional[Decimal]) -> Optional[str]:
        if v is None:
            return None
        return canonical_amount(v)

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for create calls; the identifier is never sent"""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"id"},
        )

    def to_dict(self) -> Dict[str, Any]:
        """All set fields, camelCase, including the identifier"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
