"""Inbound request validation and normalization.

Runs before any remote call. Each check raises the matching `ValidationError`
subclass so the HTTP layer can answer 400 with a field-specific message.
"""

import json
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from donatepay.common.config import CommonSettings
from donatepay.services.subscriptions.errors import (
    InvalidAmount,
    InvalidCurrency,
    InvalidEmail,
    InvalidName,
    InvalidPaymentMethod,
    MalformedInput,
    MethodNotAllowed,
)
from donatepay.services.subscriptions.schemas import Address, DonationRequest

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CURRENCY_RE = re.compile(r"^[a-z]{3}$")
ADDRESS_FIELDS = ("line1", "line2", "city", "state", "postal_code", "country")


def _clean(value: Any) -> str | None:
    """Trim strings; anything else (or an empty string) becomes None."""

    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_body(raw_body: bytes | str | None) -> dict[str, Any]:
    if raw_body is None:
        raise MalformedInput()
    try:
        data = json.loads(raw_body)
    except (TypeError, ValueError, UnicodeDecodeError) as exc:
        raise MalformedInput() from exc
    if not isinstance(data, dict):
        raise MalformedInput()
    return data


def normalize_amount(value: Any) -> int:
    """Round an amount in minor units half-up and require it to be positive."""

    if value is None or isinstance(value, bool):
        raise InvalidAmount()
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidAmount() from exc
    if not amount.is_finite():
        raise InvalidAmount()
    rounded = int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if rounded <= 0:
        raise InvalidAmount()
    return rounded


def normalize_payment_method(value: Any, prefix: str) -> str:
    payment_method_id = _clean(value)
    if payment_method_id is None:
        raise InvalidPaymentMethod()
    if prefix and not payment_method_id.startswith(prefix):
        raise InvalidPaymentMethod("Invalid payment method ID")
    return payment_method_id


def normalize_email(value: Any) -> str:
    email = _clean(value)
    if email is None or not EMAIL_RE.match(email):
        raise InvalidEmail()
    return email.lower()


def normalize_name(value: Any) -> str:
    name = _clean(value)
    if name is None or len(name) < 2:
        raise InvalidName()
    return name


def normalize_currency(value: Any, default: str) -> str:
    currency = _clean(value)
    if currency is None:
        return default.lower()
    currency = currency.lower()
    if not CURRENCY_RE.match(currency):
        raise InvalidCurrency()
    return currency


def normalize_address(value: Any, default_country: str) -> Address | None:
    """Keep only known address fields; default the country when missing."""

    if not isinstance(value, dict):
        return None
    fields = {key: _clean(value.get(key)) for key in ADDRESS_FIELDS}
    if not any(fields.values()):
        return None
    fields["country"] = (fields["country"] or default_country).upper()
    return Address(**fields)


def validate_donation(method: str, raw_body: bytes | str | None, settings: CommonSettings) -> DonationRequest:
    """Turn a raw HTTP request into a normalized `DonationRequest` or raise."""

    if method.upper() != "POST":
        raise MethodNotAllowed()
    data = parse_body(raw_body)
    amount = normalize_amount(data.get("amount"))
    payment_method_id = normalize_payment_method(data.get("paymentMethodId"), settings.payment_method_prefix)
    email = normalize_email(data.get("email"))
    name = normalize_name(data.get("name"))
    currency = normalize_currency(data.get("currency"), settings.default_currency)
    return DonationRequest(
        amount=amount,
        currency=currency,
        name=name,
        email=email,
        phone=_clean(data.get("phone")),
        address=normalize_address(data.get("address"), settings.default_country),
        donation_by=_clean(data.get("donation_by")),
        payment_method_id=payment_method_id,
    )
