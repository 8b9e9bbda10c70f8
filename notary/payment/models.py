from dataclasses import dataclass


@dataclass(frozen=True)
class TransferReceipt:
    """What the ledger reports about a settled funds transfer."""

    succeeded: bool
    sender: str
    recipient: str
    value: int


@dataclass(frozen=True)
class PaymentRequirement:
    """Who must pay whom, and at least how much."""

    payer: str
    recipient: str
    min_amount: int
