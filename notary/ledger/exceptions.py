class LedgerError(Exception):
    """Raised when an external ledger operation fails or is not acknowledged."""


class LedgerTimeoutError(LedgerError):
    """Raised when an external ledger operation does not complete in time."""


class TokenSupplyExhaustedError(LedgerError):
    """Raised when minting beyond a token collection's max supply."""


class ObjectSealedError(LedgerError):
    """Raised when writing to an object whose owning keys were revoked."""
