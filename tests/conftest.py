"""Shared fixtures: an in-memory processor and settings for the orchestrator."""

import os

os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

import pytest

from donatepay.common.config import CommonSettings
from donatepay.services.subscriptions.processor import SubscriptionCreated
from donatepay.services.subscriptions.errors import ProcessorFailure


class FakeProcessor:
    """Records every remote call; fails on demand for named operations."""

    def __init__(self, outcome=None, fail_on=()):
        self.calls: list[tuple] = []
        self.outcome = outcome or SubscriptionCreated(subscription_id="sub_123", status="active")
        self.fail_on = set(fail_on)

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise ProcessorFailure()

    @property
    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def create_customer(self, donation):
        self._record("create_customer", donation)
        return "cus_123"

    async def attach_payment_method(self, payment_method_id, customer_id):
        self._record("attach_payment_method", payment_method_id, customer_id)

    async def set_default_payment_method(self, customer_id, payment_method_id):
        self._record("set_default_payment_method", customer_id, payment_method_id)

    async def create_product(self, name, description):
        self._record("create_product", name, description)
        return "prod_123"

    async def create_monthly_price(self, product_id, amount, currency):
        self._record("create_monthly_price", product_id, amount, currency)
        return "price_123"

    async def create_subscription(self, customer_id, price_id):
        self._record("create_subscription", customer_id, price_id)
        return self.outcome

    async def delete_customer(self, customer_id):
        self._record("delete_customer", customer_id)

    async def archive_product(self, product_id):
        self._record("archive_product", product_id)

    async def deactivate_price(self, price_id):
        self._record("deactivate_price", price_id)


@pytest.fixture
def settings():
    return CommonSettings(
        _env_file=None,
        stripe_secret_key="sk_test_dummy",
        default_currency="eur",
        default_country="IE",
        allowed_origin="https://donate.example.org",
        tracing_enabled=False,
    )


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def valid_body():
    return {
        "amount": 1500,
        "currency": "EUR",
        "name": "  Aoife Byrne ",
        "email": " Aoife@Example.IE ",
        "phone": "+353 1 234 5678",
        "donation_by": "The Byrne family",
        "address": {"line1": "1 Main St", "city": "Dublin", "postal_code": "D01 F5P2"},
        "paymentMethodId": "pm_card_visa",
    }
