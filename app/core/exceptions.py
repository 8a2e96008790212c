"""
Domain errors raised by the service layer.

Routes never build HTTP responses for these by hand: the handler registered in
app.main maps each class to its status code.
"""


class JobBoardError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, detail: str = None):
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class ValidationError(JobBoardError):
    status_code = 400
    code = "validation_error"


class NotFoundError(JobBoardError):
    status_code = 404
    code = "not_found"


class PermissionDeniedError(JobBoardError):
    status_code = 403
    code = "forbidden"


class InvalidTransitionError(JobBoardError):
    """A state machine move the current status does not allow."""
    status_code = 409
    code = "invalid_transition"


class InsufficientCreditsError(JobBoardError):
    status_code = 402
    code = "insufficient_credits"


class ConcurrentUpdateError(JobBoardError):
    """Another transaction won the race for the same row."""
    status_code = 409
    code = "concurrent_update"


class PaymentProviderError(JobBoardError):
    status_code = 502
    code = "payment_provider_error"


class ProviderNotConfiguredError(PaymentProviderError):
    status_code = 503
    code = "payment_provider_not_configured"
