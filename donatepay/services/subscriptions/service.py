"""Donation subscription saga.

Validates the request, provisions a customer and a monthly price through the
payment processor, creates the subscription, and classifies the outcome into
a caller-facing result. Remote calls run strictly one after another; when a
step fails the configured compensation policy decides whether the objects
already created are undone.
"""

from donatepay.common.config import CommonSettings, settings as default_settings
from donatepay.common.logging import customer_id_ctx, logger, subscription_id_ctx
from donatepay.common.metrics import (
    donation_outcomes_total,
    donation_requests_total,
    validation_failures_total,
)
from donatepay.common.saga import Saga, SagaStep
from donatepay.common.state_machine import status_to_state, validate_transition
from donatepay.services.subscriptions.errors import (
    CardDeclined,
    DonationError,
    MethodNotAllowed,
    ProcessorFailure,
    ValidationError,
)
from donatepay.services.subscriptions.processor import (
    CardDeclined as CardDeclinedOutcome,
    PaymentProcessor,
    ProcessorRejected,
    RequiresAction,
    SubscriptionCreated,
    SubscriptionOutcome,
)
from donatepay.services.subscriptions.schemas import DonationRequest, ErrorResponse, OrchestratorResult
from donatepay.services.subscriptions.validation import validate_donation

FALLBACK_DESCRIPTION = "Recurring monthly donation"
REQUIRES_ACTION = "requires_action"


def product_description(donation_by: str | None) -> str:
    if donation_by:
        return f"Monthly donation by {donation_by}"
    return FALLBACK_DESCRIPTION


class RequestLifecycle:
    """Tracks one request through the lifecycle state machine."""

    def __init__(self) -> None:
        self.state = "RECEIVED"

    def advance(self, new_state: str, reason: str) -> None:
        validate_transition(self.state, new_state)
        logger.info("lifecycle_transition from=%s to=%s reason=%s", self.state, new_state, reason)
        self.state = new_state


class SubscriptionOrchestrator:
    """Runs the customer → catalog → subscription workflow for one request at a time."""

    def __init__(self, processor: PaymentProcessor, settings: CommonSettings | None = None) -> None:
        self.processor = processor
        self.settings = settings or default_settings
        self.service_name = self.settings.service_name

    def customer_steps(self, donation: DonationRequest) -> list[SagaStep]:
        """Create the customer, attach the payment method, make it the invoice default."""

        async def create_customer(_ctx):
            customer_id = await self.processor.create_customer(donation)
            customer_id_ctx.set(customer_id)
            return customer_id

        async def attach(ctx):
            await self.processor.attach_payment_method(donation.payment_method_id, ctx["customer"])
            return donation.payment_method_id

        async def set_default(ctx):
            await self.processor.set_default_payment_method(ctx["customer"], donation.payment_method_id)
            return donation.payment_method_id

        return [
            SagaStep("customer", create_customer, self.processor.delete_customer),
            SagaStep("payment_method", attach),
            SagaStep("default_payment_method", set_default),
        ]

    def catalog_steps(self, donation: DonationRequest) -> list[SagaStep]:
        """Create a fresh product and a monthly price for the exact validated amount."""

        async def create_product(_ctx):
            return await self.processor.create_product(
                self.settings.product_name,
                product_description(donation.donation_by),
            )

        async def create_price(ctx):
            return await self.processor.create_monthly_price(ctx["product"], donation.amount, donation.currency)

        return [
            SagaStep("product", create_product, self.processor.archive_product),
            SagaStep("price", create_price, self.processor.deactivate_price),
        ]

    async def provision_customer(self, saga: Saga, donation: DonationRequest) -> str:
        await saga.run(self.customer_steps(donation))
        return saga.context["customer"]

    async def provision_catalog(self, saga: Saga, donation: DonationRequest) -> str:
        await saga.run(self.catalog_steps(donation))
        return saga.context["price"]

    async def initiate_subscription(self, customer_id: str, price_id: str) -> SubscriptionOutcome:
        outcome = await self.processor.create_subscription(customer_id, price_id)
        subscription_id = getattr(outcome, "subscription_id", None)
        if subscription_id:
            subscription_id_ctx.set(subscription_id)
        return outcome

    def classify_outcome(self, outcome: SubscriptionOutcome, customer_id: str) -> OrchestratorResult:
        """Turn the processor's subscription outcome into a result or raise."""

        match outcome:
            case SubscriptionCreated(subscription_id=sub_id, status=status, payment_intent_status=intent_status):
                if intent_status != REQUIRES_ACTION:
                    return OrchestratorResult(status=status, subscription_id=sub_id, customer_id=customer_id)
                return self._requires_action(sub_id, outcome.client_secret, customer_id)
            case RequiresAction(subscription_id=sub_id, client_secret=secret):
                return self._requires_action(sub_id, secret, customer_id)
            case CardDeclinedOutcome(decline_code=decline_code):
                logger.warning("card_declined decline_code=%s", decline_code)
                raise CardDeclined()
            case ProcessorRejected(cause=cause):
                raise ProcessorFailure() from cause
        raise ProcessorFailure()

    def _requires_action(
        self, subscription_id: str | None, client_secret: str | None, customer_id: str
    ) -> OrchestratorResult:
        if not client_secret:
            logger.error("requires_action_without_client_secret subscription=%s", subscription_id)
            raise ProcessorFailure()
        if not subscription_id:
            logger.warning("requires_action_without_subscription customer=%s", customer_id)
        return OrchestratorResult(
            status=REQUIRES_ACTION,
            subscription_id=subscription_id,
            customer_id=customer_id,
            client_secret=client_secret,
        )

    async def create_subscription(self, donation: DonationRequest, lifecycle: RequestLifecycle) -> OrchestratorResult:
        """Run the remote workflow for an already validated donation."""

        saga = Saga(policy=self.settings.compensation_policy, service_name=self.service_name)
        try:
            customer_id = await self.provision_customer(saga, donation)
            lifecycle.advance("CUSTOMER_READY", "customer_provisioned")
            price_id = await self.provision_catalog(saga, donation)
            lifecycle.advance("CATALOG_READY", "catalog_provisioned")
            outcome = await self.initiate_subscription(customer_id, price_id)
            result = self.classify_outcome(outcome, customer_id)
        except CardDeclined:
            lifecycle.advance("DECLINED", "card_declined")
            if await saga.unwind():
                lifecycle.advance("COMPENSATED", "card_declined")
            raise
        except Exception:
            lifecycle.advance("FAILED", "processor_failure")
            if saga.compensated or await saga.unwind():
                lifecycle.advance("COMPENSATED", "processor_failure")
            raise
        lifecycle.advance(status_to_state(result.status), f"subscription_{result.status}")
        return result

    async def handle(self, method: str, raw_body: bytes | str | None) -> tuple[int, dict]:
        """Full request pipeline: validate, orchestrate, classify."""

        lifecycle = RequestLifecycle()
        try:
            donation = validate_donation(method, raw_body, self.settings)
        except DonationError as exc:
            lifecycle.advance("REJECTED", type(exc).__name__)
            validation_failures_total.labels(service=self.service_name, error_type=type(exc).__name__).inc()
            return classify_response(exc)
        lifecycle.advance("VALIDATED", "request_validated")
        donation_requests_total.labels(service=self.service_name).inc()

        try:
            result = await self.create_subscription(donation, lifecycle)
        except DonationError as exc:
            donation_outcomes_total.labels(service=self.service_name, outcome=type(exc).__name__).inc()
            return classify_response(exc)
        except Exception as exc:
            logger.exception("unexpected orchestration error: %s", exc)
            donation_outcomes_total.labels(service=self.service_name, outcome="ProcessorFailure").inc()
            return classify_response(ProcessorFailure())
        donation_outcomes_total.labels(service=self.service_name, outcome=result.status).inc()
        logger.info("subscription_created status=%s", result.status)
        return classify_response(result)


def classify_response(outcome: OrchestratorResult | DonationError) -> tuple[int, dict]:
    """Map a terminal outcome onto an HTTP status and JSON body."""

    if isinstance(outcome, OrchestratorResult):
        return 200, outcome.to_body()
    if isinstance(outcome, (ValidationError, CardDeclined, MethodNotAllowed)):
        return outcome.status_code, ErrorResponse(error=outcome.message).model_dump()
    return 500, ErrorResponse(error=ProcessorFailure.message).model_dump()
