"""Error taxonomy for the donation subscription endpoint.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller. Processor internals stay on the chained `__cause__`.
"""


class DonationError(Exception):
    """Base class for errors converted into JSON error responses."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(DonationError):
    status_code = 400


class MethodNotAllowed(DonationError):
    status_code = 405
    message = "Method Not Allowed"


class MalformedInput(ValidationError):
    message = "Invalid JSON"


class InvalidAmount(ValidationError):
    message = "Invalid amount"


class InvalidPaymentMethod(ValidationError):
    message = "Payment method ID required"


class InvalidEmail(ValidationError):
    message = "Invalid email address"


class InvalidName(ValidationError):
    message = "Name must be at least 2 characters"


class InvalidCurrency(ValidationError):
    message = "Invalid currency"


class CardDeclined(DonationError):
    status_code = 402
    message = "Your card was declined."


class ProcessorFailure(DonationError):
    """Any remote failure that is not a decline or a pending authentication."""

    status_code = 500
    message = "Internal server error"
