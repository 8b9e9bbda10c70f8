import threading
import time

from notary.database.models import AttestationEntry, DocumentRecord, UsedTransaction
from notary.database.repositories.base import NotaryRepository
from notary.notarization.exceptions import ConflictError, PaymentReusedError


class MemoryNotaryRepository(NotaryRepository):
    """Process-local store for development and tests. Nothing survives a restart."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, DocumentRecord] = {}
        self._used: dict[str, UsedTransaction] = {}
        self._pending: dict[str, float] = {}
        self._attestations: dict[str, list[AttestationEntry]] = {}

    def get_document(self, content_hash: str) -> DocumentRecord | None:
        with self._lock:
            return self._documents.get(content_hash)

    def try_add_pending(self, content_hash: str) -> bool:
        with self._lock:
            if content_hash in self._pending:
                return False
            self._pending[content_hash] = time.monotonic()
            return True

    def remove_pending(self, content_hash: str) -> None:
        with self._lock:
            self._pending.pop(content_hash, None)

    def is_pending(self, content_hash: str) -> bool:
        with self._lock:
            return content_hash in self._pending

    def clear_stale_pending(self, max_age_seconds: float) -> int:
        cutoff = time.monotonic() - max_age_seconds
        with self._lock:
            stale = [h for h, started in self._pending.items() if started <= cutoff]
            for content_hash in stale:
                del self._pending[content_hash]
        return len(stale)

    def is_transaction_used(self, payment_ref: str) -> bool:
        with self._lock:
            return payment_ref in self._used

    def used_transaction(self, payment_ref: str) -> UsedTransaction | None:
        with self._lock:
            return self._used.get(payment_ref)

    def commit_notarization(self, record: DocumentRecord) -> None:
        with self._lock:
            if record.hash in self._documents:
                raise ConflictError(f"Document {record.hash} is already notarized")
            if record.payment_ref in self._used:
                raise PaymentReusedError(
                    f"Payment {record.payment_ref} was already consumed"
                )
            self._documents[record.hash] = record
            self._used[record.payment_ref] = UsedTransaction(
                payment_ref=record.payment_ref,
                payer_address=record.payer_address,
                timestamp=record.timestamp,
            )

    def add_attestation(self, entry: AttestationEntry) -> None:
        with self._lock:
            self._attestations.setdefault(entry.hash, []).append(entry)

    def list_attestations(self, content_hash: str) -> list[AttestationEntry]:
        with self._lock:
            return list(self._attestations.get(content_hash, []))
