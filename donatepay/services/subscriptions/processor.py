"""Payment processor collaborator.

`PaymentProcessor` is the narrow interface the orchestrator depends on.
`StripeProcessor` implements it with the Stripe SDK's async resource methods.
Provisioning calls raise `ProcessorFailure` on any Stripe error; subscription
creation instead returns one variant of `SubscriptionOutcome` so the
orchestrator can match over the processor's failure modes.
"""

from dataclasses import dataclass
from typing import Any, Protocol

import stripe

from donatepay.common.logging import logger
from donatepay.services.subscriptions.errors import ProcessorFailure
from donatepay.services.subscriptions.schemas import DonationRequest

AUTHENTICATION_CODES = {"authentication_required"}
EXPAND_CONFIRMATION = ["latest_invoice.payment_intent"]


@dataclass(frozen=True)
class SubscriptionCreated:
    subscription_id: str
    status: str
    payment_intent_status: str | None = None
    client_secret: str | None = None


@dataclass(frozen=True)
class RequiresAction:
    """Processor error carrying a partial subscription awaiting authentication."""

    subscription_id: str | None
    client_secret: str | None


@dataclass(frozen=True)
class CardDeclined:
    message: str
    decline_code: str | None = None


@dataclass(frozen=True)
class ProcessorRejected:
    cause: Exception


SubscriptionOutcome = SubscriptionCreated | RequiresAction | CardDeclined | ProcessorRejected


class PaymentProcessor(Protocol):
    """Capabilities the orchestrator needs from the remote processor."""

    async def create_customer(self, donation: DonationRequest) -> str: ...

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None: ...

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None: ...

    async def create_product(self, name: str, description: str) -> str: ...

    async def create_monthly_price(self, product_id: str, amount: int, currency: str) -> str: ...

    async def create_subscription(self, customer_id: str, price_id: str) -> SubscriptionOutcome: ...

    async def delete_customer(self, customer_id: str) -> None: ...

    async def archive_product(self, product_id: str) -> None: ...

    async def deactivate_price(self, price_id: str) -> None: ...


def _field(obj: Any, key: str) -> Any:
    """Read `key` from a plain dict or a StripeObject; missing keys give None."""

    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def classify_subscription_error(exc: stripe.StripeError) -> SubscriptionOutcome:
    """Map a Stripe error raised by subscription creation onto an outcome."""

    body = _field(exc.json_body, "error") or {}
    code = getattr(exc, "code", None) or _field(body, "code")
    payment_intent = _field(body, "payment_intent")
    intent_status = _field(payment_intent, "status")
    subscription = _field(body, "subscription")
    subscription_id = subscription if isinstance(subscription, str) else _field(subscription, "id")

    if code in AUTHENTICATION_CODES or intent_status == "requires_action":
        return RequiresAction(
            subscription_id=subscription_id,
            client_secret=_field(payment_intent, "client_secret"),
        )
    if isinstance(exc, stripe.CardError):
        return CardDeclined(
            message=exc.user_message or "card declined",
            decline_code=_field(body, "decline_code") or code,
        )
    return ProcessorRejected(cause=exc)


class StripeProcessor:
    """`PaymentProcessor` backed by the Stripe API."""

    def __init__(self, api_key: str, api_version: str | None = None) -> None:
        stripe.api_key = api_key
        if api_version:
            stripe.api_version = api_version
        stripe.max_network_retries = 0

    async def _call(self, operation: str, coro) -> Any:
        try:
            return await coro
        except stripe.StripeError as exc:
            logger.error(
                "processor_call_failed operation=%s type=%s code=%s request_id=%s",
                operation,
                type(exc).__name__,
                getattr(exc, "code", None),
                getattr(exc, "request_id", None),
            )
            raise ProcessorFailure() from exc

    async def create_customer(self, donation: DonationRequest) -> str:
        params: dict[str, Any] = {
            "name": donation.name,
            "email": donation.email,
            "metadata": {"donation_by": donation.donation_by or ""},
        }
        if donation.phone:
            params["phone"] = donation.phone
        if donation.address:
            params["address"] = donation.address.to_processor()
        customer = await self._call("create_customer", stripe.Customer.create_async(**params))
        return customer.id

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        await self._call(
            "attach_payment_method",
            stripe.PaymentMethod.attach_async(payment_method_id, customer=customer_id),
        )

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        await self._call(
            "set_default_payment_method",
            stripe.Customer.modify_async(
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
            ),
        )

    async def create_product(self, name: str, description: str) -> str:
        product = await self._call(
            "create_product",
            stripe.Product.create_async(name=name, description=description),
        )
        return product.id

    async def create_monthly_price(self, product_id: str, amount: int, currency: str) -> str:
        price = await self._call(
            "create_price",
            stripe.Price.create_async(
                unit_amount=amount,
                currency=currency,
                recurring={"interval": "month"},
                product=product_id,
            ),
        )
        return price.id

    async def create_subscription(self, customer_id: str, price_id: str) -> SubscriptionOutcome:
        try:
            subscription = await stripe.Subscription.create_async(
                customer=customer_id,
                items=[{"price": price_id}],
                payment_settings={
                    "payment_method_types": ["card"],
                    "save_default_payment_method": "on_subscription",
                },
                expand=EXPAND_CONFIRMATION,
            )
        except stripe.StripeError as exc:
            outcome = classify_subscription_error(exc)
            logger.warning(
                "subscription_create_error type=%s code=%s outcome=%s",
                type(exc).__name__,
                getattr(exc, "code", None),
                type(outcome).__name__,
            )
            return outcome

        payment_intent = _field(_field(subscription, "latest_invoice"), "payment_intent")
        return SubscriptionCreated(
            subscription_id=subscription.id,
            status=subscription.status,
            payment_intent_status=_field(payment_intent, "status"),
            client_secret=_field(payment_intent, "client_secret"),
        )

    async def delete_customer(self, customer_id: str) -> None:
        await self._call("delete_customer", stripe.Customer.delete_async(customer_id))

    async def archive_product(self, product_id: str) -> None:
        await self._call("archive_product", stripe.Product.modify_async(product_id, active=False))

    async def deactivate_price(self, price_id: str) -> None:
        await self._call("deactivate_price", stripe.Price.modify_async(price_id, active=False))
