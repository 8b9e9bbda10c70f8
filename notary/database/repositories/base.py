from abc import ABC, abstractmethod

from notary.database.models import AttestationEntry, DocumentRecord


class NotaryRepository(ABC):
    """Contract for the store holding documents, payments, pending hashes and attestations.

    Every mutating method is durable when it returns.
    """

    @abstractmethod
    def get_document(self, content_hash: str) -> DocumentRecord | None:
        """Return the record notarized for ``content_hash``, if any."""

    def document_exists(self, content_hash: str) -> bool:
        return self.get_document(content_hash) is not None

    @abstractmethod
    def try_add_pending(self, content_hash: str) -> bool:
        """Atomically mark ``content_hash`` as in flight.

        Returns:
            False if the hash was already pending, True if this call claimed it.
        """

    @abstractmethod
    def remove_pending(self, content_hash: str) -> None:
        """Release the in-flight marker. Removing an absent hash is a no-op."""

    @abstractmethod
    def is_pending(self, content_hash: str) -> bool: ...

    @abstractmethod
    def clear_stale_pending(self, max_age_seconds: float) -> int:
        """Drop pending markers older than ``max_age_seconds``; return how many."""

    @abstractmethod
    def is_transaction_used(self, payment_ref: str) -> bool: ...

    @abstractmethod
    def commit_notarization(self, record: DocumentRecord) -> None:
        """Store ``record`` and consume its payment reference in one durable step.

        Raises:
            ConflictError: if a record for the hash already exists.
            PaymentReusedError: if the payment reference was consumed meanwhile.
        """

    @abstractmethod
    def add_attestation(self, entry: AttestationEntry) -> None: ...

    @abstractmethod
    def list_attestations(self, content_hash: str) -> list[AttestationEntry]:
        """Return attestations for ``content_hash`` oldest first."""

    def has_attestation(self, content_hash: str, source_object_id: str) -> bool:
        return any(
            entry.source_object_id == source_object_id
            for entry in self.list_attestations(content_hash)
        )
