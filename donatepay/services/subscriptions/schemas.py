"""Request/response schemas for the subscription endpoint."""

from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    """Postal address as sent to the processor; absent parts are None."""

    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def to_processor(self) -> dict[str, str]:
        """Processor payload: every sub-field present, empty string when unset."""

        return {key: value or "" for key, value in self.model_dump().items()}


class DonationRequest(BaseModel):
    """Validated, normalized donation request."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    name: str = Field(min_length=2)
    email: str
    phone: str | None = None
    address: Address | None = None
    donation_by: str | None = None
    payment_method_id: str = Field(min_length=1)


class OrchestratorResult(BaseModel):
    """Caller-facing outcome of one subscription request."""

    status: str
    subscription_id: str | None = Field(default=None, serialization_alias="subscriptionId")
    customer_id: str | None = Field(default=None, serialization_alias="customerId")
    client_secret: str | None = Field(default=None, serialization_alias="clientSecret")

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True)


class ErrorResponse(BaseModel):
    error: str
