"""Publishes byte blobs as permanently unmodifiable ledger files.

A publish runs three acknowledged phases against the same file:

    create (first chunk) -> append (remainder) -> seal (revoke all keys)

The ledger offers no delete for files, so a publish that fails midway leaves
an orphaned, still-mutable file behind. ``PublishSaga`` records how far a
publish got so that the caller can ``resume()`` it instead of starting over.
"""

import enum
from dataclasses import dataclass

from notary.ledger.gateway import LedgerGateway
from notary.ledger.timeouts import bounded_call
from notary.logging.logger import Log


class PublishPhase(enum.Enum):
    NEW = "new"
    CREATED = "created"
    APPENDED = "appended"
    SEALED = "sealed"


@dataclass
class PublishSaga:
    """Progress of one immutable publish."""

    payload: bytes
    phase: PublishPhase = PublishPhase.NEW
    object_id: str | None = None

    @property
    def complete(self) -> bool:
        return self.phase is PublishPhase.SEALED


class ImmutableObjectStore:
    """Immutable object store client built on ledger files."""

    def __init__(
        self,
        gateway: LedgerGateway,
        *,
        chunk_bytes: int = 4096,
        timeout_seconds: float = 60.0,
        memo: str = "notary",
    ) -> None:
        if chunk_bytes <= 0:
            raise ValueError("chunk_bytes must be positive")
        self._gateway = gateway
        self._chunk_bytes = chunk_bytes
        self._timeout_seconds = timeout_seconds
        self._memo = memo

    def publish(self, payload: bytes) -> str:
        """Publish ``payload`` and return the sealed object's identifier.

        Raises:
            LedgerError: if any phase fails; nothing is rolled back.
        """
        saga = PublishSaga(payload=payload)
        return self.resume(saga)

    def resume(self, saga: PublishSaga) -> str:
        """Drive ``saga`` forward from its last completed phase."""
        if saga.phase is PublishPhase.NEW:
            first_chunk = saga.payload[: self._chunk_bytes]
            saga.object_id = bounded_call(
                "file create",
                self._timeout_seconds,
                lambda: self._gateway.create_file(first_chunk, self._memo),
            )
            saga.phase = PublishPhase.CREATED
            Log.debug("Object created", object_id=saga.object_id, bytes=len(first_chunk))

        object_id = saga.object_id
        if object_id is None:
            raise ValueError(f"saga in phase {saga.phase.value} has no object id")

        if saga.phase is PublishPhase.CREATED:
            remainder = saga.payload[self._chunk_bytes :]
            if remainder:
                bounded_call(
                    "file append",
                    self._timeout_seconds,
                    lambda: self._gateway.append_file(object_id, remainder),
                )
                Log.debug("Object appended", object_id=object_id, bytes=len(remainder))
            saga.phase = PublishPhase.APPENDED

        if saga.phase is PublishPhase.APPENDED:
            bounded_call(
                "file seal",
                self._timeout_seconds,
                lambda: self._gateway.seal_file(object_id),
            )
            saga.phase = PublishPhase.SEALED
            Log.info("Immutable object published", object_id=object_id, bytes=len(saga.payload))

        return object_id

    def fetch(self, object_id: str) -> bytes:
        return bounded_call(
            "file read",
            self._timeout_seconds,
            lambda: self._gateway.read_file(object_id),
        )
