"""Request validation: every rejection happens before any remote call."""

import json

import pytest

from donatepay.services.subscriptions.errors import (
    InvalidAmount,
    InvalidCurrency,
    InvalidEmail,
    InvalidName,
    InvalidPaymentMethod,
    MalformedInput,
    MethodNotAllowed,
)
from donatepay.services.subscriptions.validation import validate_donation


def _validate(body, settings, method="POST"):
    raw = body if isinstance(body, (str, bytes)) else json.dumps(body)
    return validate_donation(method, raw, settings)


def test_normalizes_valid_request(valid_body, settings):
    donation = _validate(valid_body, settings)

    assert donation.amount == 1500
    assert donation.currency == "eur"
    assert donation.name == "Aoife Byrne"
    assert donation.email == "aoife@example.ie"
    assert donation.payment_method_id == "pm_card_visa"
    assert donation.address.country == "IE"
    assert donation.address.line2 is None
    assert donation.donation_by == "The Byrne family"


def test_defaults_currency(valid_body, settings):
    del valid_body["currency"]

    assert _validate(valid_body, settings).currency == "eur"


def test_rounds_amount_to_nearest_minor_unit(valid_body, settings):
    valid_body["amount"] = 999.5

    assert _validate(valid_body, settings).amount == 1000


def test_address_keeps_given_country(valid_body, settings):
    valid_body["address"]["country"] = "gb"

    assert _validate(valid_body, settings).address.country == "GB"


def test_missing_address_stays_absent(valid_body, settings):
    del valid_body["address"]

    assert _validate(valid_body, settings).address is None


def test_rejects_non_post(valid_body, settings):
    with pytest.raises(MethodNotAllowed):
        _validate(valid_body, settings, method="GET")


@pytest.mark.parametrize("raw", ["{not json", "", "[1, 2]", "null"])
def test_rejects_malformed_body(raw, settings):
    with pytest.raises(MalformedInput):
        _validate(raw, settings)


@pytest.mark.parametrize("amount", [None, 0, -5, 0.4, "abc", True, [100]])
def test_rejects_bad_amount(amount, valid_body, settings):
    valid_body["amount"] = amount

    with pytest.raises(InvalidAmount):
        _validate(valid_body, settings)


def test_rejects_missing_amount(valid_body, settings):
    del valid_body["amount"]

    with pytest.raises(InvalidAmount) as excinfo:
        _validate(valid_body, settings)
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize("payment_method_id", [None, "", "   "])
def test_rejects_missing_payment_method(payment_method_id, valid_body, settings):
    valid_body["paymentMethodId"] = payment_method_id

    with pytest.raises(InvalidPaymentMethod) as excinfo:
        _validate(valid_body, settings)
    assert excinfo.value.message == "Payment method ID required"


def test_rejects_payment_method_without_prefix(valid_body, settings):
    valid_body["paymentMethodId"] = "tok_visa"

    with pytest.raises(InvalidPaymentMethod) as excinfo:
        _validate(valid_body, settings)
    assert excinfo.value.message == "Invalid payment method ID"


def test_prefix_check_can_be_disabled(valid_body, settings):
    valid_body["paymentMethodId"] = "tok_visa"
    relaxed = settings.model_copy(update={"payment_method_prefix": ""})

    assert _validate(valid_body, relaxed).payment_method_id == "tok_visa"


@pytest.mark.parametrize("email", [None, "", "donor.example.ie", "donor@example", "do nor@example.ie"])
def test_rejects_malformed_email(email, valid_body, settings):
    valid_body["email"] = email

    with pytest.raises(InvalidEmail):
        _validate(valid_body, settings)


@pytest.mark.parametrize("name", [None, "", " A ", 42])
def test_rejects_short_name(name, valid_body, settings):
    valid_body["name"] = name

    with pytest.raises(InvalidName):
        _validate(valid_body, settings)


@pytest.mark.parametrize("currency", ["euro", "e1r", "€"])
def test_rejects_bad_currency(currency, valid_body, settings):
    valid_body["currency"] = currency

    with pytest.raises(InvalidCurrency):
        _validate(valid_body, settings)


def test_amount_checked_before_email(valid_body, settings):
    valid_body["amount"] = 0
    valid_body["email"] = "nope"

    with pytest.raises(InvalidAmount):
        _validate(valid_body, settings)
