class NotarizationError(Exception):
    """Base exception for all notarization failures surfaced to callers."""

    code = "notarization_error"


class InvalidInputError(NotarizationError):
    """Raised when the file or payment reference is missing or malformed."""

    code = "invalid_input"


class ConflictError(NotarizationError):
    """Raised when the same content is already being notarized."""

    code = "conflict"


class PaymentReusedError(NotarizationError):
    """Raised when a payment reference has already funded a notarization."""

    code = "payment_reused"


class PaymentInvalidError(NotarizationError):
    """Raised when the payment receipt is missing, failed or mismatched."""

    code = "payment_invalid"


class InsufficientOperatorFundsError(NotarizationError):
    """Raised when the operator account cannot cover the ledger writes."""

    code = "insufficient_operator_funds"


class ServiceError(NotarizationError):
    """Raised when an external store, token or log call fails."""

    code = "service_error"


class ServiceTimeoutError(ServiceError):
    """Raised when an external call does not complete in time."""

    code = "service_timeout"
