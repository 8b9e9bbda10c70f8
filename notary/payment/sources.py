import threading
from abc import ABC, abstractmethod

from web3 import HTTPProvider, Web3
from web3.exceptions import TransactionNotFound

from notary.payment.models import TransferReceipt


class TransactionSource(ABC):
    """Contract for looking up a payment transaction by reference."""

    @abstractmethod
    def find_transfer(self, payment_ref: str) -> TransferReceipt | None:
        """Return the settled transfer, or None while it is not visible yet."""


class Web3TransactionSource(TransactionSource):
    """Reads receipts and transactions from an EVM JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, timeout_seconds: float = 30.0) -> None:
        self._w3 = Web3(HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_seconds}))

    def find_transfer(self, payment_ref: str) -> TransferReceipt | None:
        try:
            receipt = self._w3.eth.get_transaction_receipt(payment_ref)
        except TransactionNotFound:
            return None
        if receipt is None:
            return None
        try:
            tx = self._w3.eth.get_transaction(payment_ref)
        except TransactionNotFound:
            return None
        return TransferReceipt(
            succeeded=receipt["status"] == 1,
            sender=tx.get("from") or "",
            recipient=tx.get("to") or "",
            value=int(tx.get("value") or 0),
        )


class MemoryTransactionSource(TransactionSource):
    """Transfers recorded in process, for local development and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._transfers: dict[str, TransferReceipt] = {}

    def record(
        self,
        payment_ref: str,
        *,
        sender: str,
        recipient: str,
        value: int,
        succeeded: bool = True,
    ) -> None:
        with self._lock:
            self._transfers[payment_ref] = TransferReceipt(
                succeeded=succeeded, sender=sender, recipient=recipient, value=value
            )

    def find_transfer(self, payment_ref: str) -> TransferReceipt | None:
        with self._lock:
            return self._transfers.get(payment_ref)
