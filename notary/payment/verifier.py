import re
import time
from collections.abc import Callable

from notary.logging.logger import Log
from notary.payment.models import PaymentRequirement, TransferReceipt
from notary.payment.sources import TransactionSource

_EVM_TX_HASH = re.compile(r"0x[0-9a-f]{64}", re.IGNORECASE)


def normalize_payment_ref(payment_ref: str) -> str:
    """Canonical form of a payment reference, the key of the single-use check.

    EVM transaction hashes resolve in any letter case, so they are lowercased.
    Other references are only trimmed.
    """
    ref = payment_ref.strip()
    if _EVM_TX_HASH.fullmatch(ref):
        return ref.lower()
    return ref


class PaymentVerifier:
    """Confirms a payment reference paid the notarization price.

    The receipt may take a few seconds to propagate, so lookups are retried
    with a fixed interval before giving up.
    """

    def __init__(
        self,
        source: TransactionSource,
        *,
        attempts: int = 12,
        interval_seconds: float = 2.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._source = source
        self._attempts = attempts
        self._interval_seconds = interval_seconds
        self._sleep = sleep

    def verify(self, payment_ref: str, requirement: PaymentRequirement) -> bool:
        """Return True only for a successful, exact-party transfer of enough value."""
        transfer = self._wait_for_transfer(payment_ref)
        if transfer is None:
            Log.warning("Payment receipt not found", payment_ref=payment_ref)
            return False
        problems = self._mismatches(transfer, requirement)
        if problems:
            Log.warning(
                f"Payment rejected: {', '.join(problems)}", payment_ref=payment_ref
            )
            return False
        Log.info("Payment verified", payment_ref=payment_ref, value=transfer.value)
        return True

    def _wait_for_transfer(self, payment_ref: str) -> TransferReceipt | None:
        for attempt in range(1, self._attempts + 1):
            transfer = self._source.find_transfer(payment_ref)
            if transfer is not None:
                return transfer
            if attempt < self._attempts:
                Log.debug(
                    f"Receipt not visible yet (attempt {attempt}/{self._attempts})",
                    payment_ref=payment_ref,
                )
                self._sleep(self._interval_seconds)
        return None

    @staticmethod
    def _mismatches(
        transfer: TransferReceipt, requirement: PaymentRequirement
    ) -> list[str]:
        problems = []
        if not transfer.succeeded:
            problems.append("transaction failed")
        if not requirement.recipient:
            problems.append("no recipient configured")
        elif transfer.recipient.lower() != requirement.recipient.lower():
            problems.append("wrong recipient")
        if transfer.sender.lower() != requirement.payer.lower():
            problems.append("wrong sender")
        if transfer.value < requirement.min_amount:
            problems.append("insufficient value")
        return problems
